"""
Cache store contract.

Every backend the CacheService talks to implements this interface. Keys are
plain strings; values are arbitrary picklable Python objects; TTLs are in
seconds.

Tags:
=====
Stores that set ``supports_tags = True`` remember which keys were written
under each tag, so ``flush(tag)`` drops them all at once. The CacheService
tags every entry with the repository's table name.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable

_MISSING = object()


class CacheStore(ABC):
    """Abstract key-value store with TTL and optional tag support."""

    supports_tags: bool = False

    @abstractmethod
    def has(self, key: str) -> bool:
        """Return True if ``key`` holds a value."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value under ``key`` or ``default`` when absent."""

    @abstractmethod
    def put(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""

    @abstractmethod
    def forget(self, key: str) -> bool:
        """Remove ``key``. Returns True if something was removed."""

    @abstractmethod
    def flush(self, tag: str) -> int:
        """Remove every key written under ``tag``. Returns the number removed."""

    def remember(
        self,
        key: str,
        ttl: int,
        producer: Callable[[], Any],
        tags: Iterable[str] = (),
    ) -> Any:
        """
        Return the cached value, or compute, store and return it.

        A cached None counts as a hit.

        Args:
            key: Cache key
            ttl: Time-to-live in seconds
            producer: Zero-argument callable computing the value on a miss
            tags: Tags to record the key under

        Returns:
            Cached or freshly produced value
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value

        value = producer()
        self.put(key, value, ttl, tags)
        return value
