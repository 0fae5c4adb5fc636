"""
Cache Service

Read-through / write-through caching in front of a DatabaseService.

Cache Keys:
===========
    "<table>:" + md5(canonical JSON of {
        "operation":  "find",
        "parameters": {"identifier": 7, "columns": ["*"]},
        "criteria":   [<fingerprint of every pending criteria>],
        "eager":      ["password", "posts.author"],
    })

Canonical JSON sorts mapping keys, so keyword order never changes the key.
Sorts are stored as ordered [column, direction] pairs; their order changes
the result.

Read Flow:
==========
    key = cache_key(operation, parameters)
    hit  → return cached value, discard pending criteria (no SQL)
    miss → store(): forget the bare "all" entry, run the operation,
           put the result for <lifetime> minutes, tagged with the table

Write Flow:
===========
    create → write, flush table tag, put entity under its find key
    update → write, flush table tag, refresh its find key
    delete → delete in the database first, flush table tag, forget find key

Cache backend errors are never caught here.
"""

import datetime
import decimal
import hashlib
import json
import uuid
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

from repokit.adapters.cache_store import _MISSING, CacheStore
from repokit.core.logging import get_logger
from repokit.query.builder import ALL_COLUMNS, is_all_columns
from repokit.schemas.pagination import Paginator
from repokit.services.base import Columns, RepositoryBackend
from repokit.services.database_service import DatabaseService

if TYPE_CHECKING:
    from repokit.repositories.base import Repository

logger = get_logger(__name__)

DEFAULT_LIFETIME = 30  # minutes


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (uuid.UUID, decimal.Decimal)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, bytes):
        return value.hex()
    return repr(value)


def normalize_columns(columns: Columns) -> list[str]:
    if is_all_columns(columns):
        return [ALL_COLUMNS]
    if isinstance(columns, str):
        return [columns]
    return list(columns)


def normalize_sort(sort: Any) -> list[list[str]]:
    if not sort:
        return []
    entries = sort.items() if isinstance(sort, Mapping) else sort
    return [[column, direction] for column, direction in entries]


class CacheService(RepositoryBackend):
    """
    Cached repository strategy.

    Attributes:
        repository: Owning repository (criteria, eager loads, table name)
        database: DatabaseService run on cache misses and writes
        cache: CacheStore holding results
        lifetime: Entry lifetime in minutes
        tag: Table name every entry is tagged with
    """

    def __init__(
        self,
        repository: "Repository",
        database: DatabaseService,
        store: CacheStore,
        lifetime: Optional[int] = None,
    ) -> None:
        self.repository = repository
        self.database = database
        self.cache = store
        self.lifetime = lifetime or DEFAULT_LIFETIME
        self.tag = repository.table_name()

    @property
    def ttl(self) -> int:
        """Entry lifetime in seconds."""
        return self.lifetime * 60

    # ═══════════════════════════════════════════════════════════════════════════
    # KEYS
    # ═══════════════════════════════════════════════════════════════════════════

    def cache_key(self, operation: str, parameters: Optional[Mapping[str, Any]] = None, scoped: bool = True) -> str:
        """
        Deterministic key for an operation call.

        Args:
            operation: Operation name ("all", "find", ...)
            parameters: Keyword arguments of the call
            scoped: Include pending criteria. False gives the key the same
                call would have with no criteria.

        Returns:
            "<table>:<md5 hex digest>"
        """
        payload = {
            "operation": operation,
            "parameters": dict(parameters or {}),
            "criteria": self.repository.criteria().fingerprint() if scoped else [],
            "eager": list(self.repository.eager),
        }
        encoded = json.dumps(payload, sort_keys=True, default=_json_default, separators=(",", ":"))
        return f"{self.tag}:{hashlib.md5(encoded.encode('utf-8')).hexdigest()}"

    def _all_key(self) -> str:
        return self.cache_key("all", {"columns": [ALL_COLUMNS]}, scoped=False)

    def _find_key(self, identifier: Any) -> str:
        return self.cache_key("find", self._find_parameters(identifier), scoped=False)

    @staticmethod
    def _find_parameters(identifier: Any, columns: Columns = None) -> dict[str, Any]:
        return {"identifier": identifier, "columns": normalize_columns(columns)}

    # ═══════════════════════════════════════════════════════════════════════════
    # CACHE PRIMITIVES
    # ═══════════════════════════════════════════════════════════════════════════

    def has(self, key: str) -> bool:
        return self.cache.has(key)

    def retrieve(self, key: str, default: Any = None) -> Any:
        """Cached value under key, or default."""
        return self.cache.get(key, default)

    def retrieve_or_store(self, operation: str, parameters: Mapping[str, Any]) -> Any:
        """
        Return the cached result of an operation, computing it on a miss.

        A hit never touches the database and discards pending criteria, so
        criteria stay one-shot whether or not the result was cached.
        """
        key = self.cache_key(operation, parameters)
        value = self.retrieve(key, _MISSING)
        if value is not _MISSING:
            self.repository.criteria().remove_criteria()
            logger.debug("Cache hit", tag=self.tag, operation=operation, key=key)
            return value

        logger.debug("Cache miss", tag=self.tag, operation=operation, key=key)
        return self.store(operation, parameters)

    def store(self, operation: str, parameters: Mapping[str, Any]) -> Any:
        """Forget the bare "all" listing, then run the operation and cache it."""
        self.cache.forget(self._all_key())

        key = self.cache_key(operation, parameters)
        return self.cache.remember(
            key,
            self.ttl,
            lambda: self.database.dispatch(operation, parameters),
            tags=[self.tag],
        )

    def refresh(self, operation: str, parameters: Mapping[str, Any]) -> Any:
        """Drop the cached result of an operation and compute it again."""
        self.forget(operation, parameters)
        return self.store(operation, parameters)

    def forget(self, operation: str, parameters: Mapping[str, Any]) -> bool:
        return self.cache.forget(self.cache_key(operation, parameters))

    def invalidate(self) -> None:
        """Drop every entry of the table (or the "all" listing without tags)."""
        if self.cache.supports_tags:
            removed = self.cache.flush(self.tag)
            logger.info("Cache invalidated", tag=self.tag, removed=removed)
        else:
            self.cache.forget(self._all_key())

    # ═══════════════════════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def all(self, columns: Columns = None) -> list[Any]:
        return self.retrieve_or_store("all", {"columns": normalize_columns(columns)})

    def where(
        self,
        column: Any,
        value: Any = None,
        operator: str = "=",
        boolean: str = "and",
        columns: Columns = None,
    ) -> list[Any]:
        if isinstance(column, Mapping):
            column = dict(column)
        return self.retrieve_or_store(
            "where",
            {
                "column": column,
                "value": value,
                "operator": operator,
                "boolean": boolean,
                "columns": normalize_columns(columns),
            },
        )

    def find(self, identifier: Any, columns: Columns = None) -> Optional[Any]:
        identifier = self.database.identity_of(identifier)
        return self.retrieve_or_store("find", self._find_parameters(identifier, columns))

    def find_by(self, column: str, value: Any, columns: Columns = None) -> Optional[Any]:
        return self.retrieve_or_store(
            "find_by",
            {"column": column, "value": value, "columns": normalize_columns(columns)},
        )

    def find_where(self, wheres: Mapping[str, Any], columns: Columns = None) -> Optional[Any]:
        return self.retrieve_or_store(
            "find_where",
            {"wheres": dict(wheres), "columns": normalize_columns(columns)},
        )

    def find_many(self, identifiers: Sequence[Any], columns: Columns = None) -> list[Any]:
        return self.retrieve_or_store(
            "find_many",
            {"identifiers": list(identifiers), "columns": normalize_columns(columns)},
        )

    def count(self) -> int:
        return self.retrieve_or_store("count", {})

    def paginate(self, per_page: int = 15, columns: Columns = None, page: int = 1) -> Paginator:
        return self.retrieve_or_store(
            "paginate",
            {"per_page": per_page, "columns": normalize_columns(columns), "page": page},
        )

    def search(
        self,
        phrase: str,
        columns: Optional[Mapping[str, float]] = None,
        threshold: Optional[float] = None,
    ) -> list[Any]:
        return self.retrieve_or_store(
            "search",
            {"phrase": phrase, "columns": dict(columns) if columns else None, "threshold": threshold},
        )

    def fetch(
        self,
        page: int = 1,
        per_page: int = 15,
        columns: Columns = None,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Any = None,
        search: Optional[str] = None,
    ) -> Paginator:
        return self.retrieve_or_store("fetch", self._grid_parameters(page, per_page, columns, filter, sort, search))

    def simple_fetch(
        self,
        page: int = 1,
        per_page: int = 15,
        columns: Columns = None,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Any = None,
        search: Optional[str] = None,
    ) -> list[Any]:
        return self.retrieve_or_store(
            "simple_fetch", self._grid_parameters(page, per_page, columns, filter, sort, search)
        )

    @staticmethod
    def _grid_parameters(page, per_page, columns, filter, sort, search) -> dict[str, Any]:
        return {
            "page": page,
            "per_page": per_page,
            "columns": normalize_columns(columns),
            "filter": dict(filter or {}),
            "sort": normalize_sort(sort),
            "search": search,
        }

    # ═══════════════════════════════════════════════════════════════════════════
    # WRITE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def create(self, attributes: Mapping[str, Any]) -> Any:
        """Insert, invalidate the table, cache the new entity through find."""
        instance = self.database.create(attributes)
        self.invalidate()

        self.refresh("find", self._find_parameters(self.database.identity_of(instance)))
        return instance

    def update(self, identifier: Any, attributes: Mapping[str, Any]) -> Any:
        """Update, invalidate the table, re-cache the entity through find."""
        record_id = self.database.identity_of(identifier)
        instance = self.database.update(identifier, attributes)
        self.invalidate()

        self.refresh("find", self._find_parameters(record_id))
        return instance

    def delete(self, identifier: Any) -> bool:
        """Delete in the database first, then purge the table and the find key."""
        record_id = self.database.identity_of(identifier)
        deleted = self.database.delete(identifier)
        self.invalidate()

        self.cache.forget(self._find_key(record_id))
        return deleted
