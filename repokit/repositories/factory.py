"""
Repository factory.

Builds a repository with the strategy chosen by configuration:

    CACHE_ENABLED=true  → CacheService over Redis (get_redis_adapter())
    CACHE_ENABLED=false → DatabaseService only
"""

from typing import Optional, TypeVar

from sqlalchemy.orm import Session

from repokit.adapters.cache_store import CacheStore
from repokit.adapters.redis_adapter import get_redis_adapter
from repokit.config.settings import Settings, get_settings
from repokit.core.logging import get_logger
from repokit.repositories.base import Repository

logger = get_logger(__name__)

RepositoryType = TypeVar("RepositoryType", bound=Repository)


def make_repository(
    repository_class: type[RepositoryType],
    session: Session,
    *,
    cache: Optional[CacheStore] = None,
    settings: Optional[Settings] = None,
) -> RepositoryType:
    """
    Create a repository, cached or direct depending on settings.

    Args:
        repository_class: Repository subclass to build
        session: Database session
        cache: Cache store to use when caching is enabled (default: Redis singleton)
        settings: Settings to read (default: get_settings())

    Returns:
        Repository instance

    Example:
        with adapter.session() as session:
            users = make_repository(UserRepository, session)
            users.fetch(page=1, filter={"active": "true"})
    """
    settings = settings or get_settings()

    if not settings.CACHE_ENABLED:
        return repository_class(session)

    store = cache if cache is not None else get_redis_adapter()
    lifetime = repository_class.lifetime or settings.CACHE_LIFETIME

    logger.debug(
        "Cached repository created",
        repository=repository_class.__name__,
        lifetime=lifetime,
    )
    return repository_class(session, cache=store, lifetime=lifetime)
