"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the dispatcher to the outside world (console, configuration files,
remote operations) and hosts the resilience and concurrency machinery.
"""
