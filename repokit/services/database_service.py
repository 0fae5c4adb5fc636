"""
Database Service

Runs repository operations directly against the SQLAlchemy session.

Every read starts from ``repository.make_query()``, which applies (and
consumes) the pending criteria and the eager-load options, then narrows the
statement for the operation at hand.

Write Flow:
===========
    create → Model(**attributes) → add → flush → refresh
    update → load by key (NotFoundError if missing) → setattr → flush → refresh
    delete → load by key (False if missing) → delete → flush

Writes flush but never commit; the owner of the session commits.
"""

from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Sequence

from sqlalchemy import and_, inspect, or_
from sqlalchemy.sql.elements import ColumnElement

from repokit.core.exceptions import NotFoundError, UnknownOperation, ValidationError
from repokit.core.logging import get_logger
from repokit.query.builder import GridQuery, count_results, for_page, resolve_column, select_columns
from repokit.query.filtering import multi_filter_by
from repokit.query.sorting import multi_sort_by
from repokit.schemas.pagination import Paginator
from repokit.services.base import Columns, RepositoryBackend
from repokit.services.search_service import SearchService

if TYPE_CHECKING:
    from repokit.repositories.base import Repository

logger = get_logger(__name__)

OPERATORS: dict[str, Callable[[Any, Any], ColumnElement]] = {
    "=": lambda column, value: column == value,
    "!=": lambda column, value: column != value,
    "<>": lambda column, value: column != value,
    "<": lambda column, value: column < value,
    "<=": lambda column, value: column <= value,
    ">": lambda column, value: column > value,
    ">=": lambda column, value: column >= value,
    "like": lambda column, value: column.like(value),
    "not like": lambda column, value: column.not_like(value),
    "ilike": lambda column, value: column.ilike(value),
    "in": lambda column, value: column.in_(value),
    "not in": lambda column, value: column.not_in(value),
}

BOOLEANS = {"and": and_, "or": or_}

# Operations CacheService may replay through dispatch()
READ_OPERATIONS = frozenset(
    {
        "all",
        "where",
        "find",
        "find_by",
        "find_where",
        "find_many",
        "count",
        "paginate",
        "search",
        "fetch",
        "simple_fetch",
    }
)


class DatabaseService(RepositoryBackend):
    """
    Direct (uncached) repository strategy.

    Attributes:
        repository: Owning repository (model, session, criteria, eager loads)
    """

    def __init__(self, repository: "Repository") -> None:
        self.repository = repository

    @property
    def model(self) -> type:
        return self.repository.model

    @property
    def session(self):
        return self.repository.session

    @property
    def primary_key(self):
        return inspect(self.model).primary_key[0]

    def identity_of(self, identifier: Any) -> Any:
        """Primary key value of an instance, or the identifier itself."""
        if isinstance(identifier, self.model):
            return inspect(self.model).primary_key_from_instance(identifier)[0]
        return identifier

    # ═══════════════════════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════════════════════

    def _query(self, columns: Columns = None) -> GridQuery:
        return select_columns(self.repository.make_query(), columns)

    def _compare(self, column: str, operator: str, value: Any) -> ColumnElement:
        comparator = OPERATORS.get(str(operator).lower())
        if comparator is None:
            raise ValidationError(
                f"Unsupported operator '{operator}'",
                details={"operator": operator, "supported": sorted(OPERATORS)},
            )
        return comparator(resolve_column(self.model, column), value)

    def _where_clause(self, column: Any, value: Any, operator: str, boolean: str) -> ColumnElement:
        combine = BOOLEANS.get(str(boolean).lower())
        if combine is None:
            raise ValidationError(f"Unsupported boolean '{boolean}'", details={"boolean": boolean})

        if isinstance(column, Mapping):
            clauses = [self._compare(name, operator, val) for name, val in column.items()]
        else:
            clauses = [self._compare(column, operator, value)]
        return combine(*clauses)

    def _grid(
        self,
        filter: Optional[Mapping[str, Any]],
        sort: Any,
        search: Optional[str],
    ) -> GridQuery:
        grid = self.repository.make_query()
        if search:
            return SearchService(grid, self.repository.searchable).search(search)
        grid = multi_filter_by(grid, filter)
        return multi_sort_by(grid, sort)

    def _load(self, identifier: Any) -> Optional[Any]:
        # Instances may be detached copies read back from the cache
        record_id = self.identity_of(identifier)
        statement = self.repository.make_query().statement.where(self.primary_key == record_id)
        return self.session.scalars(statement).first()

    # ═══════════════════════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def all(self, columns: Columns = None) -> list[Any]:
        """Every row of the model (criteria applied)."""
        return list(self.session.scalars(self._query(columns).statement).all())

    def where(
        self,
        column: Any,
        value: Any = None,
        operator: str = "=",
        boolean: str = "and",
        columns: Columns = None,
    ) -> list[Any]:
        """
        Rows matching a comparison.

        Args:
            column: Column name, or mapping of column → value
            value: Compared value (ignored when column is a mapping)
            operator: One of OPERATORS, applied to every comparison
            boolean: "and" / "or" between the comparisons of a mapping
            columns: Columns to load

        Raises:
            ValidationError: Unknown operator or boolean
            ColumnNotFound: Column not mapped on the model
        """
        statement = self._query(columns).statement.where(self._where_clause(column, value, operator, boolean))
        return list(self.session.scalars(statement).all())

    def find(self, identifier: Any, columns: Columns = None) -> Optional[Any]:
        """Row with the given primary key, or None."""
        statement = self._query(columns).statement.where(self.primary_key == identifier)
        return self.session.scalars(statement).first()

    def find_by(self, column: str, value: Any, columns: Columns = None) -> Optional[Any]:
        """First row whose column equals value, or None."""
        return self.find_where({column: value}, columns=columns)

    def find_where(self, wheres: Mapping[str, Any], columns: Columns = None) -> Optional[Any]:
        """First row matching every column → value equality, or None."""
        statement = self._query(columns).statement.where(self._where_clause(wheres, None, "=", "and")).limit(1)
        return self.session.scalars(statement).first()

    def find_many(self, identifiers: Sequence[Any], columns: Columns = None) -> list[Any]:
        """Rows whose primary key is in identifiers."""
        identifiers = list(identifiers)
        if not identifiers:
            return []
        statement = self._query(columns).statement.where(self.primary_key.in_(identifiers))
        return list(self.session.scalars(statement).all())

    def count(self) -> int:
        """Number of rows (criteria applied)."""
        return count_results(self.session, self.repository.make_query())

    def paginate(self, per_page: int = 15, columns: Columns = None, page: int = 1) -> Paginator:
        """
        One page of every row plus the total.

        Raises:
            ValidationError: If per_page < 1
        """
        return self._paginate(self._query(columns), page, per_page)

    def search(
        self,
        phrase: str,
        columns: Optional[Mapping[str, float]] = None,
        threshold: Optional[float] = None,
    ) -> list[Any]:
        """
        Rows relevant to a phrase, best match first.

        Args:
            phrase: Free-text phrase
            columns: Column path → weight, defaults to the repository's searchable
            threshold: Minimum relevance, defaults to a quarter of the weights
        """
        searchable = columns or self.repository.searchable
        grid = SearchService(self.repository.make_query(), searchable, threshold).search(phrase)
        return list(self.session.scalars(grid.statement).all())

    # ═══════════════════════════════════════════════════════════════════════════
    # GRID OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def fetch(
        self,
        page: int = 1,
        per_page: int = 15,
        columns: Columns = None,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Any = None,
        search: Optional[str] = None,
    ) -> Paginator:
        """
        Filter, sort and window the model, with the total of the filtered set.

        Composition order: criteria → filters → sorts → count → window.
        A non-empty search phrase replaces filters and sorts.

        Args:
            page: 1-based page
            per_page: Page size
            columns: Columns to load
            filter: Column path → value
            sort: Column path → "asc"/"desc" (mapping or pairs)
            search: Relevance search phrase

        Returns:
            Paginator with items, total, page, page size and link context
        """
        grid = select_columns(self._grid(filter, sort, search), columns)
        return self._paginate(grid, page, per_page)

    def simple_fetch(
        self,
        page: int = 1,
        per_page: int = 15,
        columns: Columns = None,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Any = None,
        search: Optional[str] = None,
    ) -> list[Any]:
        """Same composition as fetch(), without the count query."""
        grid = select_columns(self._grid(filter, sort, search), columns)
        windowed = for_page(grid, page, per_page)
        return list(self.session.scalars(windowed.statement).all())

    def _paginate(self, grid: GridQuery, page: int, per_page: int) -> Paginator:
        windowed = for_page(grid, page, per_page)
        total = count_results(self.session, grid)
        items = list(self.session.scalars(windowed.statement).all())
        page = max(int(page), 1)

        return Paginator(
            items=items,
            total=total,
            per_page=per_page,
            current_page=page,
            path=self.repository.path,
            query={"page": page, "per_page": per_page},
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # WRITE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def create(self, attributes: Mapping[str, Any]) -> Any:
        """
        Insert a row.

        Returns:
            The created instance with database-generated values loaded
        """
        instance = self.model(**dict(attributes))
        self.session.add(instance)
        self.session.flush()
        self.session.refresh(instance)

        logger.info("Record created", model=self.model.__name__, id=self.identity_of(instance))
        return instance

    def update(self, identifier: Any, attributes: Mapping[str, Any]) -> Any:
        """
        Update a row by primary key (or instance).

        Attributes that are not mapped on the model are ignored.

        Raises:
            NotFoundError: If no row has that primary key
        """
        instance = self._load(identifier)
        if instance is None:
            raise NotFoundError(self.model.__name__, identifier)

        known = inspect(self.model).attrs.keys()
        ignored = []
        for field, value in attributes.items():
            if field in known:
                setattr(instance, field, value)
            else:
                ignored.append(field)

        if ignored:
            logger.warning("Unknown attributes ignored on update", model=self.model.__name__, fields=ignored)

        self.session.flush()
        self.session.refresh(instance)

        logger.info("Record updated", model=self.model.__name__, id=self.identity_of(instance))
        return instance

    def delete(self, identifier: Any) -> bool:
        """
        Delete a row by primary key (or instance).

        Returns:
            True if deleted, False if not found
        """
        instance = self._load(identifier)
        if instance is None:
            return False

        record_id = self.identity_of(instance)
        self.session.delete(instance)
        self.session.flush()

        logger.info("Record deleted", model=self.model.__name__, id=record_id)
        return True

    # ═══════════════════════════════════════════════════════════════════════════
    # DISPATCH
    # ═══════════════════════════════════════════════════════════════════════════

    def dispatch(self, operation: str, parameters: Mapping[str, Any]) -> Any:
        """
        Run a read operation by name.

        Raises:
            UnknownOperation: If operation is not a read operation
        """
        if operation not in READ_OPERATIONS:
            raise UnknownOperation(operation, self.model.__name__)
        return getattr(self, operation)(**parameters)
