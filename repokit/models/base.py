"""
Base Model Classes

Declarative base and timestamp mixin for models managed by repositories.

Repositories accept any SQLAlchemy mapped class; these are provided so host
applications (and the test-suite) share one metadata object.

Usage:
======
    from repokit.models.base import Base, TimestampMixin

    class User(Base, TimestampMixin):
        __tablename__ = "users"
        id: Mapped[int] = mapped_column(primary_key=True)
        email: Mapped[str] = mapped_column(String(255), unique=True)
"""

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class TimestampMixin:
    """
    Mixin that adds automatic timestamp tracking to models.

    Both columns are filled by the database; updated_at is bumped by every
    ORM UPDATE. Repositories refresh after writes, so both are loaded on the
    returned instance.
    """

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
