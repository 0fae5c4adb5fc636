"""
Base Repository

This module provides the declarative Repository every model repository
inherits from.

What This Provides:
===================
- all()           → Every record
- find(id)        → Single record by primary key (None when absent)
- find_by()       → First record with column == value
- find_where()    → First record matching a column → value mapping
- find_many()     → Records by primary keys
- where()         → Records matching a comparison
- count()         → Number of records
- paginate()      → One page plus total
- fetch()         → Filter + sort + page (the "grid"), with total
- simple_fetch()  → Same as fetch without the count
- search()        → Relevance-ranked text search
- create()        → Insert
- update()        → Update by primary key
- delete()        → Delete by primary key
- criteria()      → Push one-shot query criteria
- with_relations()→ Eager-load relations on every read

Declaring a Repository:
=======================
    class UserRepository(Repository[User]):
        model = User
        searchable = {"email": 2}          # search weights
        transformer = UserTransformer      # optional result mapping
        lifetime = 60                      # cache minutes

    repo = UserRepository(session)                 # direct
    repo = UserRepository(session, cache=store)    # cached

Strategy Selection:
===================
┌─────────────────────────────────────────────────────────────────────────────┐
│                        REPOSITORY CALL FLOW                                 │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                             │
│   repo.fetch(page=1, filter={...})                                          │
│       │                                                                     │
│       ▼                                                                     │
│   backend  (chosen once, in __init__)                                       │
│   ┌─────────────────────────────┐    ┌─────────────────────────────┐       │
│   │ CacheService (cache given)  │───►│ DatabaseService             │       │
│   │ key → hit? return           │miss│ make_query() → criteria     │       │
│   │       miss? store + return  │    │ → filters → sorts → window  │       │
│   └─────────────────────────────┘    └─────────────────────────────┘       │
│       │                                                                     │
│       ▼                                                                     │
│   TransformService (after caching, so cached values stay raw)               │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘
"""

from typing import Any, Generic, Iterable, Mapping, Optional, Sequence, TypeVar, Union

from sqlalchemy import inspect, select
from sqlalchemy.orm import Mapper, Session, selectinload

from repokit.adapters.cache_store import CacheStore
from repokit.config.settings import settings
from repokit.core.exceptions import InvalidModel, UnknownOperation
from repokit.core.logging import get_logger
from repokit.query.builder import GridQuery, resolve_relations
from repokit.schemas.pagination import Paginator
from repokit.services.base import Columns, RepositoryBackend
from repokit.services.cache_service import CacheService
from repokit.services.criteria_service import Criteria, CriteriaStack
from repokit.services.database_service import DatabaseService
from repokit.services.transform_service import TransformService, validate_transformer

logger = get_logger(__name__)

ModelType = TypeVar("ModelType")


class Repository(Generic[ModelType]):
    """
    Declarative repository over one mapped model.

    Class Attributes:
        model: SQLAlchemy mapped class
        searchable: Column path → search weight (empty: every string column)
        transformer: Transformer subclass applied to results, or None
        lifetime: Cache lifetime in minutes, or None for the default

    Attributes:
        session: SQLAlchemy session
        eager: Relation paths eager-loaded on every read
        path: Base path of pagination links
        backend: DatabaseService or CacheService
    """

    model: type = None
    searchable: dict[str, float] = {}
    transformer: Optional[type] = None
    lifetime: Optional[int] = None

    def __init__(
        self,
        session: Session,
        cache: Optional[CacheStore] = None,
        *,
        lifetime: Optional[int] = None,
        path: Optional[str] = None,
    ) -> None:
        """
        Initialize the repository.

        Args:
            session: Database session
            cache: Cache store; when given, reads and writes go through the cache
            lifetime: Cache lifetime in minutes, overrides the class attribute
            path: Base path of pagination links

        Raises:
            InvalidModel: If model is not a mapped class
        """
        if not isinstance(inspect(self.model, raiseerr=False), Mapper):
            raise InvalidModel(self.model)

        self.session = session
        self.eager: list[str] = []
        self.path = path or settings.PAGINATION_PATH
        self._criteria = CriteriaStack()
        self._transform_service = TransformService(self.transformer)

        self.database = DatabaseService(self)
        self.backend: RepositoryBackend = self.database
        if cache is not None:
            self.backend = CacheService(self, self.database, cache, lifetime or self.lifetime)

    # ═══════════════════════════════════════════════════════════════════════════
    # CONFIGURATION
    # ═══════════════════════════════════════════════════════════════════════════

    def table_name(self) -> str:
        return inspect(self.model).local_table.name

    def is_cached(self) -> bool:
        return isinstance(self.backend, CacheService)

    @property
    def dialect(self) -> str:
        return self.session.get_bind().dialect.name

    def criteria(self, criteria: Optional[Criteria] = None) -> Union["Repository", CriteriaStack]:
        """
        Push a criteria for the next read, or return the stack.

        Raises:
            InvalidCriteria: If criteria is not a Criteria instance
        """
        if criteria is None:
            return self._criteria
        self._criteria.add_criteria(criteria)
        return self

    def with_relations(self, *relations: Union[str, Iterable[str]]) -> "Repository":
        """
        Eager-load relations on every following read.

        Args:
            relations: Relation paths ("posts", "posts.author"), or lists of them

        Raises:
            RelationNotFound: If a path does not resolve
        """
        for relation in relations:
            paths = [relation] if isinstance(relation, str) else list(relation)
            for path in paths:
                resolve_relations(self.model, path)
                if path not in self.eager:
                    self.eager.append(path)
        return self

    def set_transformer(self, transformer: type) -> "Repository":
        """
        Replace the result transformer.

        Raises:
            InvalidTransformer: If transformer is not a Transformer subclass
        """
        self.transformer = validate_transformer(transformer)
        self._transform_service.transformer = self.transformer
        return self

    def make_query(self) -> GridQuery:
        """
        Base query: criteria applied (and consumed), eager loads attached.
        """
        statement = self._criteria.execute_on(select(self.model))

        for path in self.eager:
            relations = resolve_relations(self.model, path)
            option = selectinload(relations[0].class_attribute)
            for relation in relations[1:]:
                option = option.selectinload(relation.class_attribute)
            statement = statement.options(option)

        return GridQuery.for_model(self.model, self.dialect, statement)

    # ═══════════════════════════════════════════════════════════════════════════
    # TRANSFORMATION
    # ═══════════════════════════════════════════════════════════════════════════

    def _transform_many(self, items: Iterable[Any]) -> list[Any]:
        return self._transform_service.execute_on(items)

    def _transform_one(self, item: Any) -> Any:
        if item is None:
            return None
        return self._transform_service.execute_on([item])[0]

    def _transform_page(self, page: Paginator) -> Paginator:
        return page.model_copy(update={"items": self._transform_many(page.items)})

    # ═══════════════════════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def all(self, columns: Columns = None) -> list[ModelType]:
        return self._transform_many(self.backend.all(columns=columns))

    def where(
        self,
        column: Any,
        value: Any = None,
        operator: str = "=",
        boolean: str = "and",
        columns: Columns = None,
    ) -> list[ModelType]:
        """
        Records matching a comparison.

        Example:
            repo.where("active", True)
            repo.where({"active": True, "email": "a@example.com"})
            repo.where("id", 10, operator=">")
        """
        return self._transform_many(
            self.backend.where(column=column, value=value, operator=operator, boolean=boolean, columns=columns)
        )

    def find(self, identifier: Any, columns: Columns = None) -> Optional[ModelType]:
        return self._transform_one(self.backend.find(identifier=identifier, columns=columns))

    def find_by(self, column: str, value: Any, columns: Columns = None) -> Optional[ModelType]:
        return self._transform_one(self.backend.find_by(column=column, value=value, columns=columns))

    def find_where(self, wheres: Mapping[str, Any], columns: Columns = None) -> Optional[ModelType]:
        return self._transform_one(self.backend.find_where(wheres=wheres, columns=columns))

    def find_many(self, identifiers: Sequence[Any], columns: Columns = None) -> list[ModelType]:
        return self._transform_many(self.backend.find_many(identifiers=identifiers, columns=columns))

    def count(self) -> int:
        return self.backend.count()

    def paginate(self, per_page: Optional[int] = None, columns: Columns = None, page: int = 1) -> Paginator:
        if per_page is None:
            per_page = settings.DEFAULT_PER_PAGE
        return self._transform_page(self.backend.paginate(per_page=per_page, columns=columns, page=page))

    def search(
        self,
        phrase: str,
        columns: Optional[Mapping[str, float]] = None,
        threshold: Optional[float] = None,
    ) -> list[ModelType]:
        return self._transform_many(self.backend.search(phrase=phrase, columns=columns, threshold=threshold))

    def fetch(
        self,
        page: int = 1,
        per_page: Optional[int] = None,
        columns: Columns = None,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Any = None,
        search: Optional[str] = None,
    ) -> Paginator:
        """
        Filtered, sorted page of records with the total of the filtered set.

        Args:
            page: 1-based page
            per_page: Page size (default from settings)
            columns: Columns to load
            filter: Column path → value ("true"/"false" compare booleans,
                anything else is a case-insensitive substring match)
            sort: Column path → "asc"/"desc", applied in order
            search: Relevance search phrase, replaces filter and sort

        Example:
            repo.fetch(1, 5, filter={"password.token": "not"}, sort={"id": "desc"})
        """
        if per_page is None:
            per_page = settings.DEFAULT_PER_PAGE
        return self._transform_page(
            self.backend.fetch(
                page=page, per_page=per_page, columns=columns, filter=filter, sort=sort, search=search
            )
        )

    def simple_fetch(
        self,
        page: int = 1,
        per_page: Optional[int] = None,
        columns: Columns = None,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Any = None,
        search: Optional[str] = None,
    ) -> list[ModelType]:
        if per_page is None:
            per_page = settings.DEFAULT_PER_PAGE
        return self._transform_many(
            self.backend.simple_fetch(
                page=page, per_page=per_page, columns=columns, filter=filter, sort=sort, search=search
            )
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # WRITE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def create(self, attributes: Mapping[str, Any]) -> ModelType:
        return self._transform_one(self.backend.create(attributes=attributes))

    def update(self, identifier: Any, attributes: Mapping[str, Any]) -> ModelType:
        """
        Raises:
            NotFoundError: If no record has that primary key
        """
        return self._transform_one(self.backend.update(identifier=identifier, attributes=attributes))

    def delete(self, identifier: Any) -> bool:
        return self.backend.delete(identifier=identifier)

    # ═══════════════════════════════════════════════════════════════════════════
    # MODEL FORWARDING
    # ═══════════════════════════════════════════════════════════════════════════

    def __getattr__(self, name: str) -> Any:
        """
        Forward unknown attributes to callables on the model class.

        Raises:
            UnknownOperation: If the model has no such callable
        """
        if name.startswith("_"):
            raise AttributeError(name)

        target = getattr(self.model, name, None)
        if callable(target):
            return target

        raise UnknownOperation(name, getattr(self.model, "__name__", repr(self.model)))
