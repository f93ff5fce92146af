"""Console user interface."""
