"""REST adapters for the identity and persistence services."""

from .base import RestClient
from .identity import IdentityClient
from .persistence import PersistenceClient

__all__ = ["RestClient", "IdentityClient", "PersistenceClient"]
