"""
Repository Services

Services hold the behaviour behind a repository's public operations.

Service Pattern:
================
    Repository → CacheService → DatabaseService → Session
                      ↘ CacheStore
    Repository → TransformService (results)
    DatabaseService → SearchService / query pipeline

Available Services:
===================
- DatabaseService: Direct execution against the session
- CacheService: Read-through / write-through cache over DatabaseService
- CriteriaStack: One-shot criteria applied to the next query
- SearchService: Relevance-ranked text search
- TransformService: Result post-processing
"""

from repokit.services.base import RepositoryBackend
from repokit.services.cache_service import CacheService
from repokit.services.criteria_service import Criteria, CriteriaStack, CriteriaState
from repokit.services.database_service import DatabaseService
from repokit.services.search_service import SearchService
from repokit.services.transform_service import TransformService, Transformer

__all__ = [
    "RepositoryBackend",
    "CacheService",
    "Criteria",
    "CriteriaStack",
    "CriteriaState",
    "DatabaseService",
    "SearchService",
    "TransformService",
    "Transformer",
]
