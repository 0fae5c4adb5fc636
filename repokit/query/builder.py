"""
Grid query builder.

A GridQuery is an immutable value holding the statement under construction,
the model it hydrates, the dialect name and the aliases joined so far.
Every composition step (filter, sort, window) takes a GridQuery and returns
a new one; nothing is kept on the repository between steps.

Column Paths:
=============
    "email"                 → users.email
    "password.token"        → relation hop "password", column "token"
    "author.password.token" → hops "author" then "password", column "token"

The separator is "." and the leaf column is everything after the last one.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import Select, func, inspect, select
from sqlalchemy.orm import RelationshipProperty, Session, aliased, load_only

from repokit.core.exceptions import ColumnNotFound, RelationNotFound, ValidationError

PATH_SEPARATOR = "."
LIKE_ESCAPE = "\\"
ALL_COLUMNS = "*"


@dataclass(frozen=True)
class GridQuery:
    """
    Statement under construction plus the context needed to extend it.

    Attributes:
        model: Mapped class the statement selects
        statement: SQLAlchemy Select
        dialect: Dialect name of the bound engine ("postgresql", "sqlite", ...)
        joins: Relation path → alias already joined for sorting
    """

    model: type
    statement: Select
    dialect: str = "default"
    joins: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_model(cls, model: type, dialect: str = "default", statement: Optional[Select] = None) -> "GridQuery":
        return cls(model=model, statement=select(model) if statement is None else statement, dialect=dialect)

    def with_statement(self, statement: Select) -> "GridQuery":
        return replace(self, statement=statement)


# ═══════════════════════════════════════════════════════════════════════════════
# PATH RESOLUTION
# ═══════════════════════════════════════════════════════════════════════════════


def split_path(path: str) -> tuple[str, str]:
    """
    Split a column path on its last separator.

    Example:
        split_path("author.password.token")  # ("author.password", "token")
        split_path("email")                  # ("", "email")
    """
    chain, _, column = path.rpartition(PATH_SEPARATOR)
    return chain, column


def resolve_relations(model: type, chain: str) -> list[RelationshipProperty]:
    """
    Resolve every hop of a relation chain.

    Args:
        model: Mapped class the chain starts from
        chain: Dotted relation names ("author.password")

    Returns:
        One RelationshipProperty per hop, in order

    Raises:
        RelationNotFound: If a hop is not a relationship of its model
    """
    relations = []
    current = model
    for name in chain.split(PATH_SEPARATOR):
        relation = inspect(current).relationships.get(name)
        if relation is None:
            raise RelationNotFound(current.__name__, name)
        relations.append(relation)
        current = relation.mapper.class_
    return relations


def resolve_column(entity: Any, name: str):
    """
    Return the mapped column attribute of a class or alias.

    Raises:
        ColumnNotFound: If name is not a column attribute of the entity
    """
    mapper = inspect(entity).mapper
    if name not in mapper.column_attrs:
        raise ColumnNotFound(mapper.class_.__name__, name)
    return getattr(entity, name)


def join_relation(grid: GridQuery, chain: str) -> tuple[GridQuery, Any]:
    """
    LEFT OUTER JOIN every hop of a relation chain.

    Each hop path gets its own alias, so two sorts through the same relation
    share the join while sorts through different paths never collide.

    Args:
        grid: Current grid query
        chain: Dotted relation names

    Returns:
        (new grid query, alias of the last hop)
    """
    relations = resolve_relations(grid.model, chain)
    statement = grid.statement
    joins = dict(grid.joins)

    parent: Any = grid.model
    hops: list[str] = []
    for relation in relations:
        hops.append(relation.key)
        path = PATH_SEPARATOR.join(hops)
        alias = joins.get(path)
        if alias is None:
            alias = aliased(relation.mapper.class_)
            statement = statement.join(getattr(parent, relation.key).of_type(alias), isouter=True)
            joins[path] = alias
        parent = alias

    return replace(grid, statement=statement, joins=joins), parent


# ═══════════════════════════════════════════════════════════════════════════════
# PROJECTION / WINDOW / COUNT
# ═══════════════════════════════════════════════════════════════════════════════


def is_all_columns(columns: Optional[Iterable[str]]) -> bool:
    if columns is None:
        return True
    if isinstance(columns, str):
        return columns == ALL_COLUMNS
    columns = list(columns)
    return not columns or ALL_COLUMNS in columns


def select_columns(grid: GridQuery, columns: Optional[Sequence[str]] = None) -> GridQuery:
    """
    Restrict loaded columns. The primary key is always loaded.

    Args:
        grid: Current grid query
        columns: Column names, or None / ["*"] for every column
    """
    if is_all_columns(columns):
        return grid
    if isinstance(columns, str):
        columns = [columns]
    attributes = [resolve_column(grid.model, name) for name in columns]
    return grid.with_statement(grid.statement.options(load_only(*attributes)))


def count_results(session: Session, grid: GridQuery) -> int:
    """
    Count rows matched by the statement, ignoring ordering and window.

    Runs SELECT COUNT(*) FROM (<statement without ORDER BY/LIMIT/OFFSET>).
    """
    inner = grid.statement.order_by(None).limit(None).offset(None).subquery()
    return session.scalar(select(func.count()).select_from(inner)) or 0


def for_page(grid: GridQuery, page: int, per_page: int) -> GridQuery:
    """
    Window the statement to a 1-based page.

    Raises:
        ValidationError: If per_page is lower than 1
    """
    if per_page < 1:
        raise ValidationError("per_page must be at least 1", details={"per_page": per_page})
    page = max(int(page), 1)
    return grid.with_statement(grid.statement.limit(per_page).offset((page - 1) * per_page))


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
