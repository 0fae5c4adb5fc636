"""
Redis adapter - Repository result cache.

Provides:
- Key-value caching with TTL (SETEX)
- Tag index per table, so every key of a table can be flushed at once

Values are pickled, so ORM instances and Paginator pages round-trip intact.
Connection errors (redis.exceptions.RedisError) are not swallowed: a cached
repository whose backend is down fails loudly instead of silently serving
stale data.
"""

import functools
import pickle
from typing import Any, Iterable, Optional

import redis

from repokit.adapters.cache_store import CacheStore
from repokit.config.settings import settings
from repokit.core.logging import get_logger

logger = get_logger(__name__)


class RedisCacheStore(CacheStore):
    """
    Cache store backed by Redis.

    Handles:
    - Namespacing keys with a prefix
    - Pickle serialization
    - Tag sets (``<prefix>:tag:<tag>``) for bulk invalidation
    """

    supports_tags = True

    def __init__(
        self,
        url: Optional[str] = None,
        prefix: Optional[str] = None,
        client: Optional[redis.Redis] = None,
    ):
        """
        Initialize Redis cache store.

        Args:
            url: Redis URL (redis://host:port/db)
            prefix: Namespace for every key written by this store
            client: Pre-built client (tests pass a fakeredis instance)
        """
        self.url = url or settings.REDIS_URL
        self.prefix = settings.CACHE_PREFIX if prefix is None else prefix
        self._client = client

    @property
    def client(self) -> redis.Redis:
        """Lazy-loaded Redis client."""
        if self._client is None:
            # Binary responses: values are pickles
            self._client = redis.from_url(self.url)
        return self._client

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    def _tag_key(self, tag: str) -> str:
        return self._key(f"tag:{tag}")

    def has(self, key: str) -> bool:
        """
        Check if a key exists.

        Args:
            key: Cache key

        Returns:
            True if key exists
        """
        return bool(self.client.exists(self._key(key)))

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a value from cache.

        Args:
            key: Cache key
            default: Returned when the key is absent

        Returns:
            Unpickled value or default
        """
        raw = self.client.get(self._key(key))
        if raw is None:
            return default
        return pickle.loads(raw)

    def put(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> None:
        """
        Set a value in cache.

        Args:
            key: Cache key
            value: Picklable value
            ttl: Time-to-live in seconds
            tags: Tag sets the key is added to. Each set lives as long as
                its longest-lived member.
        """
        full_key = self._key(key)
        pipe = self.client.pipeline()
        pipe.setex(full_key, ttl, pickle.dumps(value))
        for tag in tags:
            tag_key = self._tag_key(tag)
            pipe.sadd(tag_key, full_key)
            pipe.expire(tag_key, ttl, nx=True)
            pipe.expire(tag_key, ttl, gt=True)
        pipe.execute()

    def forget(self, key: str) -> bool:
        """
        Delete a key from cache.

        Args:
            key: Cache key

        Returns:
            True if key was deleted
        """
        return bool(self.client.delete(self._key(key)))

    def flush(self, tag: str) -> int:
        """
        Delete every key recorded under a tag, then the tag set itself.

        Args:
            tag: Tag name (the repository table name)

        Returns:
            Number of cached entries deleted
        """
        tag_key = self._tag_key(tag)
        members = list(self.client.smembers(tag_key))
        removed = self.client.delete(*members) if members else 0
        self.client.delete(tag_key)

        logger.debug("Cache tag flushed", tag=tag, removed=removed)
        return removed

    def ping(self) -> bool:
        """
        Check Redis connectivity.

        Returns:
            True if connected

        Raises:
            redis.exceptions.ConnectionError: If Redis is unreachable
        """
        return bool(self.client.ping())


@functools.lru_cache(maxsize=1)
def get_redis_adapter() -> RedisCacheStore:
    """Get or create Redis cache store singleton."""
    return RedisCacheStore()
