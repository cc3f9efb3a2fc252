"""High-level clients."""

from .authenticated import AuthenticatedClient

__all__ = ["AuthenticatedClient"]
