"""Rate limiting adapters.

A small abstraction so the service can start with the in-memory limiter and
later move to a shared store without touching the HTTP layer.
"""
