"""HTTP API for the customer site registry.

Validates requests, authenticates them, and maps them onto the active
storage backend. Responses are JSON envelopes.
"""
