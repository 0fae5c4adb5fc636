"""
Grid filters.

Each filter entry maps a column path to a user-supplied value:

    {"email": "example.com"}        → users.email ILIKE '%example.com%'
    {"active": "true"}              → users.active = true
    {"password.token": "not"}       → EXISTS (password_resets.token ILIKE '%not%')

Relation filters use existential clauses (EXISTS sub-selects via
relationship any()/has()), never joins, so one-to-many relations cannot
duplicate rows. All entries are ANDed.
"""

from typing import Any, Mapping, Optional

from sqlalchemy import String, cast, func
from sqlalchemy.sql.elements import ColumnElement

from repokit.query.builder import (
    LIKE_ESCAPE,
    PATH_SEPARATOR,
    GridQuery,
    escape_like,
    resolve_column,
    resolve_relations,
    split_path,
)

# Dialects with a native case-insensitive LIKE operator
ILIKE_DIALECTS = frozenset({"postgresql"})


def coerce_boolean(value: Any) -> Optional[bool]:
    """
    Interpret "true"/"false" (any case) and Python bools as booleans.

    Returns:
        True / False, or None when value is not boolean-like
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


def match_predicate(column, value: Any, dialect: str) -> ColumnElement:
    """
    Build the predicate for one filter value.

    Boolean-like values become equality; everything else becomes a
    case-insensitive substring match with wildcards escaped.
    """
    flag = coerce_boolean(value)
    if flag is not None:
        return column == flag

    if not isinstance(column.type, String):
        column = cast(column, String)
    pattern = f"%{escape_like(str(value))}%"

    if dialect in ILIKE_DIALECTS:
        return column.ilike(pattern, escape=LIKE_ESCAPE)
    return func.lower(column).like(pattern.lower(), escape=LIKE_ESCAPE)


def filter_by(grid: GridQuery, column: str, value: Any) -> GridQuery:
    """
    Filter on a column of the repository model.

    Raises:
        ColumnNotFound: If column is not mapped on the model
    """
    attribute = resolve_column(grid.model, column)
    return grid.with_statement(grid.statement.where(match_predicate(attribute, value, grid.dialect)))


def filter_by_relation(grid: GridQuery, path: str, value: Any) -> GridQuery:
    """
    Filter on a column reached through one or more relation hops.

    The predicate is wrapped from the innermost hop outwards:
    ``Post.author.has(User.password.has(PasswordReset.token LIKE ...))``.

    Raises:
        RelationNotFound: If a hop is not a relationship
        ColumnNotFound: If the leaf is not a column of the last related model
    """
    chain, leaf = split_path(path)
    relations = resolve_relations(grid.model, chain)
    target = relations[-1].mapper.class_

    clause = match_predicate(resolve_column(target, leaf), value, grid.dialect)
    for relation in reversed(relations):
        attribute = relation.class_attribute
        clause = attribute.any(clause) if relation.uselist else attribute.has(clause)

    return grid.with_statement(grid.statement.where(clause))


def multi_filter_by(grid: GridQuery, filters: Optional[Mapping[str, Any]]) -> GridQuery:
    """
    Apply every filter entry in insertion order.

    Keys containing the path separator always go through filter_by_relation.
    An empty or missing mapping leaves the query untouched.
    """
    if not filters:
        return grid

    for column, value in filters.items():
        if PATH_SEPARATOR in column:
            grid = filter_by_relation(grid, column, value)
        else:
            grid = filter_by(grid, column, value)
    return grid
