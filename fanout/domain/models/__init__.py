"""Domain Models: value objects, outcomes and the error taxonomy."""
