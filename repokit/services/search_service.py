"""
Search Service

Relevance-ranked text search over repository columns.

Scoring:
========
The phrase is lower-cased and split on whitespace. For every searchable
column (weight w) and every word:

    exact match   lower(col) LIKE 'word'     → w * 15
    prefix match  lower(col) LIKE 'word%'    → w * 5
    substring     lower(col) LIKE '%word%'   → w * 1

Rows whose total score exceeds the threshold are kept, best first. The
default threshold is a quarter of the summed column weights.

Usage:
======
    service = SearchService(grid, searchable={"email": 2, "posts.title": 1})
    grid = service.search("john doe")
"""

from typing import Mapping, Optional

from sqlalchemy import String, case, cast, func, inspect, literal
from sqlalchemy.sql.elements import ColumnElement

from repokit.core.logging import get_logger
from repokit.query.builder import (
    LIKE_ESCAPE,
    PATH_SEPARATOR,
    GridQuery,
    escape_like,
    join_relation,
    resolve_column,
    split_path,
)
from repokit.query.filtering import ILIKE_DIALECTS

logger = get_logger(__name__)

# (multiplier, prefix wildcard, suffix wildcard)
MATCH_RULES = (
    (15, "", ""),
    (5, "", "%"),
    (1, "%", "%"),
)


class SearchService:
    """
    Builds a relevance-filtered, relevance-ordered query.

    Attributes:
        grid: Base query the search narrows
        columns: Column path → weight
        threshold: Minimum score, None for the default
    """

    def __init__(
        self,
        grid: GridQuery,
        searchable: Optional[Mapping[str, float]] = None,
        threshold: Optional[float] = None,
    ) -> None:
        self.grid = grid
        self.columns = dict(searchable) if searchable else self.default_columns(grid.model)
        self.threshold = threshold

    @staticmethod
    def default_columns(model: type) -> dict[str, float]:
        """Every string column of the model with weight 1."""
        return {
            attr.key: 1
            for attr in inspect(model).column_attrs
            if isinstance(attr.columns[0].type, String)
        }

    def relevance_total(self) -> float:
        return float(sum(self.columns.values()))

    def get_threshold(self) -> float:
        if not self.threshold:
            return self.relevance_total() / 4
        return float(self.threshold)

    @staticmethod
    def split_words(phrase: str) -> list[str]:
        return phrase.strip().lower().split()

    def _compare(self, column, pattern: str) -> ColumnElement:
        if self.grid.dialect in ILIKE_DIALECTS:
            return column.ilike(pattern, escape=LIKE_ESCAPE)
        return func.lower(column).like(pattern, escape=LIKE_ESCAPE)

    def search(self, phrase: str) -> GridQuery:
        """
        Narrow the base query to rows relevant to a phrase.

        A blank phrase leaves the query unchanged.

        Args:
            phrase: Free-text search phrase

        Returns:
            GridQuery filtered on score > threshold, ordered by score desc

        Raises:
            RelationNotFound: If a dotted column has an unknown relation
            ColumnNotFound: If a column is not mapped
        """
        words = self.split_words(phrase or "")
        if not words:
            return self.grid

        grid = self.grid
        scores: list[ColumnElement] = []

        for path, weight in self.columns.items():
            if PATH_SEPARATOR in path:
                chain, leaf = split_path(path)
                grid, entity = join_relation(grid, chain)
            else:
                entity, leaf = grid.model, path

            column = resolve_column(entity, leaf)
            if not isinstance(column.type, String):
                column = cast(column, String)

            for multiplier, prefix, suffix in MATCH_RULES:
                for word in words:
                    pattern = f"{prefix}{escape_like(word)}{suffix}"
                    scores.append(case((self._compare(column, pattern), weight * multiplier), else_=0))

        score = sum(scores[1:], scores[0]) if scores else literal(0)
        threshold = self.get_threshold()

        logger.debug(
            "Search query built",
            model=grid.model.__name__,
            words=words,
            columns=list(self.columns),
            threshold=threshold,
        )
        statement = grid.statement.where(score > threshold).order_by(score.desc())
        return grid.with_statement(statement)
