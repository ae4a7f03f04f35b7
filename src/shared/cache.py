"""Tag-based cache on a Redis client.

Keys are namespaced with ``CACHE_PREFIX``. Every entry can carry tags; a tag
is a Redis set holding the keys stored under it, so ``clear_by_tags`` deletes
all of them at once. ``CACHE_URL=memory://`` uses ``fakeredis`` in-process.

Cache errors never fail a request: ``remember`` falls back to the callback
and logs a warning.
"""

import hashlib
import json
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import fakeredis
import redis
import structlog

from shared import config

logger = structlog.get_logger(__name__)

_TAG_KEY = "tag:"


def _default(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _build_client(url: str) -> redis.Redis:
    if url.startswith("memory://"):
        return fakeredis.FakeRedis(decode_responses=True)
    return redis.Redis.from_url(url, decode_responses=True)


class TaggedCache:
    def __init__(self, client: redis.Redis, prefix: str = "", driver: str = "redis"):
        self.client = client
        self.prefix = prefix
        self.driver = driver

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self.prefix}{_TAG_KEY}{tag}"

    def get(self, key: str) -> Any | None:
        raw = self.client.get(self._key(key))
        return None if raw is None else json.loads(raw)

    def put(self, key: str, value: Any, ttl: int, tags: list[str] | None = None) -> None:
        full_key = self._key(key)
        pipe = self.client.pipeline()
        pipe.set(full_key, json.dumps(value, default=_default), ex=ttl)
        for tag in tags or []:
            pipe.sadd(self._tag_key(tag), full_key)
        pipe.execute()

    def forget(self, key: str) -> None:
        self.client.delete(self._key(key))

    def remember(self, key: str, ttl: int, callback: Callable[[], Any], tags: list[str] | None = None) -> Any:
        """Return the cached value for ``key``, computing and storing it on a miss."""
        try:
            cached = self.get(key)
        except redis.RedisError as exc:
            logger.warning("Cache read failed, falling back to source", key=key, error=str(exc))
            return callback()

        if cached is not None:
            logger.debug("Cache hit", key=key)
            return cached

        value = callback()
        try:
            self.put(key, value, ttl, tags)
        except redis.RedisError as exc:
            logger.warning("Cache write failed", key=key, error=str(exc))
        return value

    def clear_by_tags(self, tags: list[str]) -> int:
        """Delete every key stored under any of ``tags``. Returns the number of keys removed."""
        removed = 0
        try:
            for tag in tags:
                tag_key = self._tag_key(tag)
                keys = list(self.client.smembers(tag_key))
                if keys:
                    removed += self.client.delete(*keys)
                self.client.delete(tag_key)
        except redis.RedisError as exc:
            logger.warning("Cache tag flush failed", tags=tags, error=str(exc))
            return removed

        logger.info("Cache cleared by tags", tags=tags, keys_removed=removed)
        return removed

    def clear_by_pattern(self, pattern: str) -> int:
        keys = list(self.client.scan_iter(match=self._key(pattern)))
        if not keys:
            return 0
        return self.client.delete(*keys)

    def flush(self) -> int:
        """Delete every key under the prefix, tag sets included."""
        removed = self.clear_by_pattern("*")
        logger.info("Cache flushed", keys_removed=removed)
        return removed

    def count(self, pattern: str = "*") -> int:
        return sum(1 for _ in self.client.scan_iter(match=self._key(pattern)))

    def statistics(self) -> dict:
        stats = {
            f"{name}_cache_keys": self.count(f"{group['prefix']}*")
            for name, group in config.CACHE_GROUPS.items()
        }
        stats["tag_sets"] = self.count(f"{_TAG_KEY}*")
        stats["total_keys"] = self.count()
        return stats

    def info(self) -> dict:
        details = {"driver": self.driver, "prefix": self.prefix}
        try:
            self.client.ping()
        except redis.RedisError as exc:
            return {**details, "connected": False, "error": str(exc)}

        details["connected"] = True
        details["groups"] = {
            name: {"ttl": group["ttl"], "prefix": group["prefix"], "tags": group["tags"]}
            for name, group in config.CACHE_GROUPS.items()
        }

        # the in-memory driver has no server stats
        if self.driver == "redis":
            try:
                server = self.client.info()
            except redis.RedisError as exc:
                details["error"] = str(exc)
            else:
                details["redis_version"] = server.get("redis_version", "unknown")
                details["used_memory"] = server.get("used_memory_human", "unknown")
        return details


def make_key(group: str, params: dict | None = None, user_id: str | None = None) -> str:
    """Build a deterministic cache key from a group name and request parameters."""
    prefix = config.CACHE_GROUPS[group]["prefix"]
    payload = {k: v for k, v in sorted((params or {}).items()) if v is not None}
    digest = hashlib.md5(json.dumps(payload, default=_default, sort_keys=True).encode()).hexdigest()
    if user_id is not None:
        return f"{prefix}user:{user_id}:{digest}"
    return f"{prefix}{digest}"


def remember(group: str, key: str, callback: Callable[[], Any], extra_tags: list[str] | None = None) -> Any:
    """Cache ``callback()`` under ``key`` with the TTL and tags of ``group``."""
    settings = config.CACHE_GROUPS[group]
    tags = list(settings["tags"]) + list(extra_tags or [])
    return get_cache().remember(key, settings["ttl"], callback, tags)


_cache: TaggedCache | None = None


def get_cache() -> TaggedCache:
    global _cache
    if _cache is None:
        driver = "memory" if config.CACHE_URL.startswith("memory://") else "redis"
        _cache = TaggedCache(_build_client(config.CACHE_URL), prefix=config.CACHE_PREFIX, driver=driver)
    return _cache


def reset_cache() -> None:
    """Drop every cached entry (used by tests and ``DELETE /admin/cache``)."""
    get_cache().flush()
