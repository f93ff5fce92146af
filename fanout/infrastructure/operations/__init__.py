"""Operation capabilities that can be dispatched."""
