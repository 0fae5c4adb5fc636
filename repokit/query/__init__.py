"""
Grid query pipeline: filter, sort, count and window a model query.

Usage:
======
    from repokit.query import GridQuery, multi_filter_by, multi_sort_by, for_page

    grid = GridQuery.for_model(User, dialect="postgresql")
    grid = multi_filter_by(grid, {"email": "example", "active": "true"})
    grid = multi_sort_by(grid, {"password.token": "desc"})
    items = session.scalars(for_page(grid, page=2, per_page=15).statement).all()
"""

from repokit.query.builder import (
    GridQuery,
    count_results,
    escape_like,
    for_page,
    join_relation,
    resolve_column,
    resolve_relations,
    select_columns,
    split_path,
)
from repokit.query.filtering import coerce_boolean, filter_by, filter_by_relation, multi_filter_by
from repokit.query.sorting import multi_sort_by, normalize_direction, sort_by, sort_by_relation

__all__ = [
    "GridQuery",
    "count_results",
    "escape_like",
    "for_page",
    "join_relation",
    "resolve_column",
    "resolve_relations",
    "select_columns",
    "split_path",
    "coerce_boolean",
    "filter_by",
    "filter_by_relation",
    "multi_filter_by",
    "multi_sort_by",
    "normalize_direction",
    "sort_by",
    "sort_by_relation",
]
