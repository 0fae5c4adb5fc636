"""
Pagination Schemas

Result of paginate() and fetch(): one page of items plus the total count of
the filtered set and enough context to build page links.

Usage:
======
    page = repo.fetch(page=2, per_page=10, filter={"email": "example"})

    page.total          # rows matching the filter, independent of the window
    page.last_page      # ceil(total / per_page), at least 1
    page.next_page_url  # "/users?page=3&per_page=10"
    page.to_dict()      # {"data": [...], "pagination": {...}}
"""

import math
from typing import Any, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field


class PaginationMeta(BaseModel):
    """
    Pagination metadata.

    Provides all pagination info for clients to navigate results.
    """

    page: int = Field(description="Current page number")
    per_page: int = Field(description="Items per page")
    total: int = Field(description="Total number of items")
    total_pages: int = Field(description="Total number of pages")


class Paginator(BaseModel):
    """
    Length-aware page of results.

    Attributes:
        items: Items on the current page
        total: Item count before windowing
        per_page: Page size
        current_page: 1-based page index
        path: Base path for page links
        query: Extra query-string parameters carried into page links
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    items: list[Any] = Field(default_factory=list)
    total: int = Field(ge=0)
    per_page: int = Field(ge=1)
    current_page: int = Field(default=1, ge=1)
    path: str = "/"
    query: dict[str, Any] = Field(default_factory=dict)

    @property
    def last_page(self) -> int:
        return max(math.ceil(self.total / self.per_page), 1)

    @property
    def has_more_pages(self) -> bool:
        return self.current_page < self.last_page

    @property
    def on_first_page(self) -> bool:
        return self.current_page <= 1

    @property
    def first_item(self) -> Optional[int]:
        """1-based position of the first item on this page, None when empty."""
        if not self.items:
            return None
        return (self.current_page - 1) * self.per_page + 1

    @property
    def last_item(self) -> Optional[int]:
        if not self.items:
            return None
        return self.first_item + len(self.items) - 1

    def url(self, page: int) -> str:
        """
        Build the link for a page.

        Args:
            page: Target page, clamped to at least 1

        Returns:
            path with the query string, page replaced
        """
        params = {**self.query, "page": max(page, 1)}
        separator = "&" if "?" in self.path else "?"
        return f"{self.path}{separator}{urlencode(params)}"

    @property
    def next_page_url(self) -> Optional[str]:
        if not self.has_more_pages:
            return None
        return self.url(self.current_page + 1)

    @property
    def previous_page_url(self) -> Optional[str]:
        if self.on_first_page:
            return None
        return self.url(self.current_page - 1)

    def meta(self) -> PaginationMeta:
        return PaginationMeta(
            page=self.current_page,
            per_page=self.per_page,
            total=self.total,
            total_pages=self.last_page,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializable envelope: items under "data", metadata and links under "pagination"."""
        return {
            "data": list(self.items),
            "pagination": {
                **self.meta().model_dump(),
                "next_page_url": self.next_page_url,
                "previous_page_url": self.previous_page_url,
            },
        }
