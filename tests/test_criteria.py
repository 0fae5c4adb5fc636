"""
Unit tests for the criteria stack.

Tests ordering, one-shot execution and state transitions following AAA pattern.
"""

import pytest
from sqlalchemy import select

from conftest import ActiveOnly, EmailContains, User
from repokit.core.exceptions import InvalidCriteria
from repokit.services.criteria_service import Criteria, CriteriaStack, CriteriaState


class RecordingCriteria(Criteria):
    """Appends its name to a shared log when applied."""

    def __init__(self, name: str, log: list) -> None:
        self.name = name
        self.log = log

    def apply(self, query):
        self.log.append(self.name)
        return query


class TestAddCriteria:
    """Test suite for add_criteria."""

    def test_rejects_non_criteria(self):
        """
        Test that a plain object never reaches the stack.

        Arrange: Empty stack
        Act: Add a string
        Assert: InvalidCriteria raised, stack still empty
        """
        stack = CriteriaStack()

        with pytest.raises(InvalidCriteria) as exc_info:
            stack.add_criteria("not a criteria")

        assert exc_info.value.error_code == "INVALID_CRITERIA"
        assert not stack.has_criteria()
        assert stack.state is CriteriaState.IDLE

    def test_duplicates_are_kept(self):
        stack = CriteriaStack()
        criteria = ActiveOnly()

        stack.add_criteria(criteria).add_criteria(criteria)

        assert len(stack) == 2
        assert stack.state is CriteriaState.LOADED


class TestExecuteOn:
    """Test suite for execute_on."""

    def test_applies_in_insertion_order(self):
        """
        Test FIFO application.

        Arrange: Three recording criteria
        Act: Execute on a statement
        Assert: Applied first-in first-out
        """
        log = []
        stack = CriteriaStack()
        for name in ("first", "second", "third"):
            stack.add_criteria(RecordingCriteria(name, log))

        stack.execute_on(select(User))

        assert log == ["first", "second", "third"]

    def test_clears_stack_after_execution(self):
        stack = CriteriaStack()
        stack.add_criteria(ActiveOnly())

        stack.execute_on(select(User))

        assert not stack.has_criteria()
        assert stack.state is CriteriaState.EXECUTED

    def test_each_criteria_receives_previous_statement(self):
        stack = CriteriaStack()
        stack.add_criteria(ActiveOnly()).add_criteria(EmailContains("example"))

        statement = stack.execute_on(select(User))
        sql = str(statement)

        assert "users.active IS 1" in sql or "users.active IS true" in sql
        assert "LIKE" in sql

    def test_empty_stack_returns_statement_unchanged(self):
        stack = CriteriaStack()
        statement = select(User)

        assert stack.execute_on(statement) is statement
        assert stack.state is CriteriaState.IDLE


class TestRemoveCriteria:
    """Test suite for remove_criteria."""

    def test_remove_all(self):
        stack = CriteriaStack()
        stack.add_criteria(ActiveOnly()).add_criteria(EmailContains("a"))

        assert stack.remove_criteria() is True
        assert not stack.has_criteria()
        assert stack.state is CriteriaState.IDLE

    def test_remove_by_type(self):
        """
        Test removing only one criteria class.

        Arrange: Stack with two ActiveOnly and one EmailContains
        Act: Remove ActiveOnly
        Assert: Only EmailContains remains
        """
        stack = CriteriaStack()
        stack.add_criteria(ActiveOnly()).add_criteria(EmailContains("a")).add_criteria(ActiveOnly())

        stack.remove_criteria(ActiveOnly)

        remaining = stack.get_criteria()
        assert len(remaining) == 1
        assert isinstance(remaining[0], EmailContains)
        assert stack.state is CriteriaState.LOADED


class TestFingerprint:
    """Test suite for criteria fingerprints."""

    def test_same_structure_same_fingerprint(self):
        assert EmailContains("a").fingerprint() == EmailContains("a").fingerprint()

    def test_different_attributes_differ(self):
        assert EmailContains("a").fingerprint() != EmailContains("b").fingerprint()

    def test_stack_fingerprint_keeps_order(self):
        first = CriteriaStack().add_criteria(ActiveOnly()).add_criteria(EmailContains("a"))
        second = CriteriaStack().add_criteria(EmailContains("a")).add_criteria(ActiveOnly())

        assert first.fingerprint() != second.fingerprint()
