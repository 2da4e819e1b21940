"""
Adapters layer - External integrations (hosted data store).
"""

from .memory_store import InMemoryStore
from .rest_store import RestStoreClient

__all__ = ["InMemoryStore", "RestStoreClient"]
