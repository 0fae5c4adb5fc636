"""
Model base classes.

Usage:
======
    from repokit.models import Base, TimestampMixin
"""

from repokit.models.base import Base, TimestampMixin

__all__ = [
    "Base",
    "TimestampMixin",
]
