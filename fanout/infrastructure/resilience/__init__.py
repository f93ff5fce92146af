"""Resilience: retry execution and exponential backoff."""
