"""Domain-specific realtime publishers.

These modules should contain *publish* helpers only (build payload + deliver).
They must not define consumers or connection handlers.
"""
