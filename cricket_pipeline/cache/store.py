"""
Cache Store: keyed TTL cache for scraped collections.

Keys look like ``points-table-2025``, ``matches-2019``, ``teams``, ``news``.
Expired entries are evicted lazily on ``get``; there is no background sweep.
Replacing an entry is a single dict assignment of a new ``CacheEntry``, so a
reader sees either the old or the new collection, never a mix.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .persistence import CachePersistence


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    data: Any
    timestamp: int
    ttl_ms: int

    def is_valid(self, now: int) -> bool:
        return now - self.timestamp < self.ttl_ms

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "data": self.data, "timestamp": self.timestamp, "ttlMs": self.ttl_ms}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "CacheEntry":
        return cls(
            key=raw["key"],
            data=raw.get("data"),
            timestamp=int(raw["timestamp"]),
            ttl_ms=int(raw["ttlMs"]),
        )


@dataclass
class KeyStats:
    hits: int = 0
    misses: int = 0
    last_access: Optional[int] = None


@dataclass
class CacheStore:
    """In-memory TTL store with optional write-through persistence."""

    persistence: Optional[CachePersistence] = None
    clock: Callable[[], int] = now_ms
    on_lookup: Optional[Callable[[str, bool], None]] = None
    _entries: dict[str, CacheEntry] = field(default_factory=dict, init=False, repr=False)
    _stats: dict[str, KeyStats] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        self.logger = logging.getLogger("cache_store")
        if self.persistence is not None:
            self._load()

    def _load(self) -> None:
        now = self.clock()
        loaded = 0
        for raw in self.persistence.load_all():
            try:
                entry = CacheEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                self.logger.warning(f"Skipping unreadable cache entry: {e}")
                continue
            if entry.is_valid(now):
                self._entries[entry.key] = entry
                loaded += 1
            else:
                self.persistence.delete(entry.key)
        self.logger.info(f"Loaded {loaded} cache entries from {self.persistence.name}")

    def _record(self, key: str, hit: bool) -> None:
        stats = self._stats.setdefault(key, KeyStats())
        if hit:
            stats.hits += 1
        else:
            stats.misses += 1
        stats.last_access = self.clock()
        if self.on_lookup is not None:
            self.on_lookup(key, hit)

    def _evict(self, key: str) -> None:
        self._entries.pop(key, None)
        if self.persistence is not None:
            self.persistence.delete(key)

    def get(self, key: str, *, evict: bool = True) -> Optional[Any]:
        """Valid data or None. ``evict=False`` keeps an expired entry for ``peek``."""
        entry = self._entries.get(key)
        if entry is None:
            self._record(key, hit=False)
            return None
        if not entry.is_valid(self.clock()):
            if evict:
                self._evict(key)
            self._record(key, hit=False)
            self.logger.debug(f"Cache entry expired: {key}")
            return None
        self._record(key, hit=True)
        return entry.data

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Raw entry, expired or not; touches neither stats nor storage."""
        return self._entries.get(key)

    def has_valid(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.is_valid(self.clock())

    def set(self, key: str, data: Any, ttl_minutes: float) -> CacheEntry:
        entry = CacheEntry(key=key, data=data, timestamp=self.clock(), ttl_ms=int(ttl_minutes * 60 * 1000))
        self._entries[key] = entry
        if self.persistence is not None:
            self.persistence.save(entry.to_dict(), entry.ttl_ms)
        self.logger.debug(f"Cached {key} for {ttl_minutes} min")
        return entry

    def invalidate(self, key: str) -> bool:
        existed = key in self._entries
        self._evict(key)
        return existed

    def clear(self) -> None:
        for key in list(self._entries):
            self._evict(key)
        self._stats.clear()

    def keys(self) -> list[str]:
        return list(self._entries)

    def entry_status(self, key: str) -> dict[str, Any]:
        """hit / expired / miss plus remaining TTL (minutes) and age (ms)."""
        entry = self._entries.get(key)
        if entry is None:
            return {"status": "miss", "remainingTtl": 0, "age": None}
        now = self.clock()
        age = now - entry.timestamp
        if not entry.is_valid(now):
            return {"status": "expired", "remainingTtl": 0, "age": age}
        return {
            "status": "hit",
            "remainingTtl": round((entry.ttl_ms - age) / 60000),
            "age": age,
        }

    def stats(self) -> dict[str, Any]:
        hits = sum(s.hits for s in self._stats.values())
        misses = sum(s.misses for s in self._stats.values())
        total = hits + misses
        return {
            "cacheSize": len(self._entries),
            "hits": hits,
            "misses": misses,
            "hitRate": f"{(hits / total * 100):.2f}%" if total else "0%",
            "entries": {
                key: {"hits": s.hits, "misses": s.misses, "lastAccess": s.last_access}
                for key, s in self._stats.items()
            },
        }
