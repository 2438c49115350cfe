"""Customer site registry: password-gated CRUD service and client cache."""

__version__ = "0.1.0"
