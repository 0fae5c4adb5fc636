"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- Test models (users, password resets, posts, roles)
- In-memory SQLite engine and session
- fakeredis-backed cache store
- SQL statement counter
"""

import os

# Set test environment variables BEFORE any imports
# This must happen first to ensure settings load with test values
os.environ["APP_ENV"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_PREFIX"] = "test"
os.environ["CACHE_ENABLED"] = "true"

from typing import Optional

import fakeredis
import pytest
from sqlalchemy import Boolean, Column, ForeignKey, String, Table, create_engine, event
from sqlalchemy.orm import Mapped, mapped_column, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from repokit.adapters.redis_adapter import RedisCacheStore
from repokit.models.base import Base, TimestampMixin
from repokit.repositories.base import Repository
from repokit.services.criteria_service import Criteria


# ═══════════════════════════════════════════════════════════════════════════════
# MODELS
# ═══════════════════════════════════════════════════════════════════════════════

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", ForeignKey("users.id"), primary_key=True),
    Column("role_id", ForeignKey("roles.id"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255))
    password: Mapped[str] = mapped_column(String(255), default="secret")
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    remember_token: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    password_reset: Mapped[Optional["PasswordReset"]] = relationship(back_populates="user", uselist=False)
    posts: Mapped[list["Post"]] = relationship(back_populates="author")
    roles: Mapped[list["Role"]] = relationship(secondary=user_roles)

    @staticmethod
    def normalize_email(email: str) -> str:
        return email.strip().lower()


class PasswordReset(Base):
    __tablename__ = "password_resets"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    token: Mapped[str] = mapped_column(String(64))

    user: Mapped[User] = relationship(back_populates="password_reset")


class Post(Base, TimestampMixin):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    title: Mapped[str] = mapped_column(String(255))

    author: Mapped[User] = relationship(back_populates="posts")


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50))


# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIES / CRITERIA
# ═══════════════════════════════════════════════════════════════════════════════


class UserRepository(Repository[User]):
    model = User


class PostRepository(Repository[Post]):
    model = Post


class ActiveOnly(Criteria):
    def apply(self, query):
        return query.where(User.active.is_(True))


class EmailContains(Criteria):
    def __init__(self, needle: str) -> None:
        self.needle = needle

    def apply(self, query):
        return query.where(User.email.contains(self.needle))


class StatementCounter:
    """Counts SQL statements sent to the database."""

    def __init__(self) -> None:
        self.count = 0

    def __call__(self, conn, cursor, statement, parameters, context, executemany) -> None:
        self.count += 1

    def reset(self) -> None:
        self.count = 0


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def engine():
    """
    Create an in-memory SQLite engine with the schema.

    Yields:
        Engine shared by every connection of the test
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def session(engine):
    """Provide a database session for tests."""
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = factory()

    yield session

    session.close()


@pytest.fixture
def statements(engine):
    """Count statements executed against the engine."""
    counter = StatementCounter()
    event.listen(engine, "before_cursor_execute", counter)

    yield counter

    event.remove(engine, "before_cursor_execute", counter)


@pytest.fixture
def redis_client():
    """Isolated fakeredis client (binary responses)."""
    return fakeredis.FakeRedis(server=fakeredis.FakeServer())


@pytest.fixture
def store(redis_client):
    return RedisCacheStore(prefix="test", client=redis_client)


@pytest.fixture
def repo(session):
    """Direct (uncached) user repository."""
    return UserRepository(session)


@pytest.fixture
def cached_repo(session, store):
    """Cached user repository."""
    return UserRepository(session, cache=store)


@pytest.fixture
def make_users(session):
    """
    Create users with sequential emails.

    Returns:
        Callable (count, **overrides) → list[User]
    """
    sequence = {"n": 0}

    def _make(count: int = 1, **overrides):
        users = []
        for _ in range(count):
            sequence["n"] += 1
            attributes = {
                "email": f"user{sequence['n']:03d}@example.com",
                "password": "secret",
                "active": True,
            }
            attributes.update(overrides)
            user = User(**attributes)
            session.add(user)
            users.append(user)
        session.flush()
        return users

    return _make
