"""Core Application Layer: Orchestrates use cases and application logic.

Contains the dispatch service, the outcome aggregator and the command handler.
"""
