"""In-memory marketplace store and the capability interface it satisfies."""

from classifieds.storage.base import MarketplaceStore
from classifieds.storage.memory import MemoryStore, open_store
from classifieds.storage.seed import seed_store

__all__ = [
    "MarketplaceStore",
    "MemoryStore",
    "open_store",
    "seed_store",
]
