"""Write-through persistence backends for the cache store.

Persistence is best effort: a failed write is logged and the in-memory entry
still serves readers.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol

import redis

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class CachePersistence(Protocol):
    name: str

    def load_all(self) -> Iterator[dict[str, Any]]: ...

    def save(self, entry: dict[str, Any], ttl_ms: int) -> None: ...

    def delete(self, key: str) -> None: ...


class DiskPersistence:
    """One JSON document per key under ``cache_dir``."""

    name = "disk"

    def __init__(self, cache_dir: str | Path = ".cache"):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger("cache_store.disk")

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def load_all(self) -> Iterator[dict[str, Any]]:
        for path in sorted(self.cache_dir.glob("*.json")):
            try:
                yield json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                self.logger.warning(f"Unreadable cache file {path.name}: {e}")

    def save(self, entry: dict[str, Any], ttl_ms: int) -> None:
        path = self.path_for(entry["key"])
        tmp = path.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps(entry, ensure_ascii=False), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            self.logger.warning(f"Could not persist {entry['key']}: {e}")

    def delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning(f"Could not delete cache file for {key}: {e}")


class RedisPersistence:
    """JSON entries under ``{prefix}{key}``; Redis expires them on its own as well."""

    name = "redis"

    def __init__(self, redis_url: str = "redis://localhost:6379", *, prefix: str = "ipl-cache:", client: Optional[Any] = None):
        self.prefix = prefix
        self.client = client if client is not None else redis.from_url(redis_url, decode_responses=True)
        self.logger = logging.getLogger("cache_store.redis")

    def load_all(self) -> Iterator[dict[str, Any]]:
        try:
            keys = list(self.client.scan_iter(match=f"{self.prefix}*"))
        except redis.RedisError as e:
            self.logger.warning(f"Redis unavailable, starting with an empty cache: {e}")
            return
        for redis_key in keys:
            try:
                raw = self.client.get(redis_key)
            except redis.RedisError as e:
                self.logger.warning(f"Could not read {redis_key}: {e}")
                continue
            if raw:
                try:
                    yield json.loads(raw)
                except ValueError as e:
                    self.logger.warning(f"Corrupt cache entry {redis_key}: {e}")

    def save(self, entry: dict[str, Any], ttl_ms: int) -> None:
        try:
            self.client.set(f"{self.prefix}{entry['key']}", json.dumps(entry, ensure_ascii=False), px=max(ttl_ms, 1))
        except redis.RedisError as e:
            self.logger.warning(f"Could not persist {entry['key']} to Redis: {e}")

    def delete(self, key: str) -> None:
        try:
            self.client.delete(f"{self.prefix}{key}")
        except redis.RedisError as e:
            self.logger.warning(f"Could not delete {key} from Redis: {e}")


def build_persistence(settings) -> Optional[CachePersistence]:
    """Backend selected by ``settings.cache_persistence`` (none | disk | redis)."""
    backend = (settings.cache_persistence or "none").lower()
    if backend == "disk":
        return DiskPersistence(settings.cache_dir)
    if backend == "redis":
        return RedisPersistence(settings.redis_url, prefix=settings.redis_key_prefix)
    if backend != "none":
        raise ValueError(f"Unknown cache persistence backend: {settings.cache_persistence}")
    return None
