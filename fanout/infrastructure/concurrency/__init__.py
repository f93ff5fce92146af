"""Concurrency admission control."""
