"""
Grid sorting.

Sort entries are applied in order; each later entry only breaks ties left
by the earlier ones. Relation sorts need the related value in the row, so
they join (LEFT OUTER, one alias per hop path) instead of using EXISTS.
The statement keeps selecting the repository model, so rows still hydrate
as that model whatever was joined.
"""

from typing import Any, Iterable, Mapping, Optional, Union

from repokit.core.exceptions import ValidationError
from repokit.query.builder import PATH_SEPARATOR, GridQuery, join_relation, resolve_column, split_path

DIRECTIONS = ("asc", "desc")

SortSpec = Union[Mapping[str, str], Iterable[tuple[str, str]]]


def normalize_direction(direction: str) -> str:
    """
    Lower-case and validate a sort direction.

    Raises:
        ValidationError: If direction is not asc/desc
    """
    normalized = str(direction).strip().lower()
    if normalized not in DIRECTIONS:
        raise ValidationError(
            f"Sort direction must be one of {DIRECTIONS}, got '{direction}'",
            details={"direction": direction},
        )
    return normalized


def _order(attribute: Any, direction: str):
    return attribute.desc() if normalize_direction(direction) == "desc" else attribute.asc()


def sort_by(grid: GridQuery, column: str, direction: str = "asc") -> GridQuery:
    """Order by a column of the repository model."""
    attribute = resolve_column(grid.model, column)
    return grid.with_statement(grid.statement.order_by(_order(attribute, direction)))


def sort_by_relation(grid: GridQuery, path: str, direction: str = "asc") -> GridQuery:
    """
    Order by a column reached through relation hops.

    Raises:
        RelationNotFound: If a hop is not a relationship
        ColumnNotFound: If the leaf is not a column of the last related model
    """
    chain, leaf = split_path(path)
    grid, alias = join_relation(grid, chain)
    attribute = resolve_column(alias, leaf)
    return grid.with_statement(grid.statement.order_by(_order(attribute, direction)))


def multi_sort_by(grid: GridQuery, sorts: Optional[SortSpec]) -> GridQuery:
    """
    Apply sort entries in order.

    Args:
        grid: Current grid query
        sorts: Mapping or sequence of (column path, direction) pairs
    """
    if not sorts:
        return grid

    entries = sorts.items() if isinstance(sorts, Mapping) else sorts
    for column, direction in entries:
        if PATH_SEPARATOR in column:
            grid = sort_by_relation(grid, column, direction)
        else:
            grid = sort_by(grid, column, direction)
    return grid
