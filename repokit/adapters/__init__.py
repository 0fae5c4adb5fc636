"""
Cache adapters.

    from repokit.adapters import RedisCacheStore

    store = RedisCacheStore("redis://localhost:6379/0")
    repo = UserRepository(session, cache=store)
"""

from repokit.adapters.cache_store import CacheStore
from repokit.adapters.redis_adapter import RedisCacheStore, get_redis_adapter

__all__ = [
    "CacheStore",
    "RedisCacheStore",
    "get_redis_adapter",
]
