"""
Criteria Service

Reusable query constraints applied once, in insertion order.

A Criteria wraps one predicate (or ordering, or limit) as a class so it can
be named, reused across repositories and fingerprinted for cache keys.

State Machine:
==============
    IDLE ──add_criteria──► LOADED ──execute_on──► EXECUTED (stack cleared)
      ▲                      │                        │
      └────remove_criteria───┘◄──────add_criteria─────┘

A pending criteria list applies to exactly one query: execute_on folds the
stack over the statement and clears it, so a later unrelated call sees no
leftover constraints.

Usage:
======
    class ActiveUsers(Criteria):
        def apply(self, query):
            return query.where(User.active.is_(True))

    repo.criteria(ActiveUsers()).all()   # filtered
    repo.all()                           # unfiltered again
"""

import enum
from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy import Select

from repokit.core.exceptions import InvalidCriteria
from repokit.core.logging import get_logger

logger = get_logger(__name__)


class Criteria(ABC):
    """
    Base class for query criteria.

    Subclasses implement apply(). Constructor arguments stored as instance
    attributes become part of the cache key via fingerprint().
    """

    @abstractmethod
    def apply(self, query: Select) -> Select:
        """
        Apply the constraint to a statement.

        Args:
            query: Statement built so far

        Returns:
            Constrained statement
        """

    def fingerprint(self) -> dict[str, Any]:
        """
        Structural identity used when building cache keys.

        Two criteria with the same class and the same attributes produce the
        same fingerprint. Override when behaviour depends on something that
        is not stored in the instance dictionary (closures, module state).
        """
        cls = type(self)
        return {
            "criteria": f"{cls.__module__}.{cls.__qualname__}",
            "attributes": dict(vars(self)),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {vars(self)!r}>"


class CriteriaState(str, enum.Enum):
    """Lifecycle of a criteria stack."""

    IDLE = "idle"
    LOADED = "loaded"
    EXECUTED = "executed"


class CriteriaStack:
    """
    Ordered, one-shot list of criteria.

    Attributes:
        state: Current CriteriaState
    """

    def __init__(self) -> None:
        self._stack: list[Criteria] = []
        self.state = CriteriaState.IDLE

    def add_criteria(self, criteria: Criteria) -> "CriteriaStack":
        """
        Push a criteria on the stack. Duplicates are kept.

        Raises:
            InvalidCriteria: If criteria is not a Criteria instance
        """
        if not isinstance(criteria, Criteria):
            raise InvalidCriteria(criteria)

        self._stack.append(criteria)
        self.state = CriteriaState.LOADED
        return self

    def remove_criteria(self, criteria_type: Optional[type] = None) -> bool:
        """
        Remove criteria from the stack.

        Args:
            criteria_type: Remove only instances of this class. None clears
                the whole stack.

        Returns:
            True
        """
        if criteria_type is None:
            self._stack.clear()
        else:
            self._stack = [c for c in self._stack if not isinstance(c, criteria_type)]

        if not self._stack and self.state is CriteriaState.LOADED:
            self.state = CriteriaState.IDLE
        return True

    def has_criteria(self) -> bool:
        return bool(self._stack)

    def get_criteria(self) -> list[Criteria]:
        """Snapshot of the pending criteria, in application order."""
        return list(self._stack)

    def execute_on(self, query: Select) -> Select:
        """
        Fold the stack over a statement, then clear it.

        Each criteria receives the statement returned by the previous one.

        Args:
            query: Base statement

        Returns:
            Statement with every pending criteria applied
        """
        if not self._stack:
            return query

        applied = self._stack
        self._stack = []
        for criteria in applied:
            query = criteria.apply(query)

        self.state = CriteriaState.EXECUTED
        logger.debug(
            "Criteria applied",
            criteria=[type(c).__name__ for c in applied],
        )
        return query

    def fingerprint(self) -> list[dict[str, Any]]:
        """Fingerprints of the pending criteria, in application order."""
        return [c.fingerprint() for c in self._stack]

    def __len__(self) -> int:
        return len(self._stack)
