"""Domain Event definitions.

Represents significant occurrences within the client (requests, retries,
wake attempts, session invalidation) that other parts of the system might
react to.
"""
