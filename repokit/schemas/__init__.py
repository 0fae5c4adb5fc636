"""
Result schemas.

Usage:
======
    from repokit.schemas import Paginator
"""

from repokit.schemas.pagination import PaginationMeta, Paginator

__all__ = [
    "PaginationMeta",
    "Paginator",
]
