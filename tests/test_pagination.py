"""
Unit tests for Paginator.
"""

import pytest
from pydantic import ValidationError

from repokit.schemas.pagination import PaginationMeta, Paginator


class TestPaginator:
    """Test suite for Paginator."""

    def test_page_bounds(self):
        page = Paginator(items=list(range(10)), total=25, per_page=10, current_page=2)

        assert page.last_page == 3
        assert page.has_more_pages
        assert not page.on_first_page
        assert page.first_item == 11
        assert page.last_item == 20

    def test_empty_result(self):
        """
        Test an empty result set.

        Arrange: No items, total 0
        Act: Read the derived properties
        Assert: One page, no more pages, no item positions
        """
        page = Paginator(items=[], total=0, per_page=15)

        assert page.last_page == 1
        assert not page.has_more_pages
        assert page.first_item is None
        assert page.last_item is None
        assert page.next_page_url is None
        assert page.previous_page_url is None

    def test_urls_keep_query(self):
        page = Paginator(
            items=[1],
            total=30,
            per_page=10,
            current_page=2,
            path="/users",
            query={"page": 2, "per_page": 10},
        )

        assert page.next_page_url == "/users?page=3&per_page=10"
        assert page.previous_page_url == "/users?page=1&per_page=10"

    def test_url_appends_to_existing_query_string(self):
        page = Paginator(items=[1], total=30, per_page=10, path="/users?active=1")

        assert page.url(2) == "/users?active=1&page=2"
        assert page.url(0) == "/users?active=1&page=1"

    @pytest.mark.parametrize("field,value", [("per_page", 0), ("total", -1), ("current_page", 0)])
    def test_invalid_bounds(self, field, value):
        arguments = {"items": [], "total": 0, "per_page": 10, "current_page": 1}
        arguments[field] = value

        with pytest.raises(ValidationError):
            Paginator(**arguments)

    def test_to_dict(self):
        page = Paginator(items=["a", "b"], total=3, per_page=2, path="/roles")

        assert page.to_dict() == {
            "data": ["a", "b"],
            "pagination": {
                "page": 1,
                "per_page": 2,
                "total": 3,
                "total_pages": 2,
                "next_page_url": "/roles?page=2",
                "previous_page_url": None,
            },
        }

    def test_meta(self):
        page = Paginator(items=[1], total=1, per_page=5)

        assert page.meta() == PaginationMeta(page=1, per_page=5, total=1, total_pages=1)
