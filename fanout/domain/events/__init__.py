"""Domain Event definitions.

Represents significant occurrences during a dispatch (admission, attempts,
retries, settlement) that the UI or logs may react to.
"""
