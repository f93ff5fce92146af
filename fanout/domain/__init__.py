"""Domain Layer: models, events and interfaces (ports) of the dispatcher."""
