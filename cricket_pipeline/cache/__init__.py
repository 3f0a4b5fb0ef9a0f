"""TTL cache store and its persistence backends."""

from .persistence import DiskPersistence, RedisPersistence, build_persistence
from .store import CacheEntry, CacheStore

__all__ = ["CacheEntry", "CacheStore", "DiskPersistence", "RedisPersistence", "build_persistence"]
