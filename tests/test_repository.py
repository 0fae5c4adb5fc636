"""
Tests for the Repository surface on the direct (uncached) strategy.

Covers CRUD, lookups, model forwarding, transformers, search, eager loading
and the factory following AAA pattern.
"""

import pytest
from sqlalchemy import inspect

from conftest import ActiveOnly, Post, PostRepository, User, UserRepository
from repokit.adapters.redis_adapter import get_redis_adapter
from repokit.config.settings import Settings
from repokit.core.exceptions import (
    ColumnNotFound,
    InvalidModel,
    InvalidTransformer,
    NotFoundError,
    RelationNotFound,
    UnknownOperation,
    ValidationError,
)
from repokit.repositories.base import Repository
from repokit.repositories.factory import make_repository
from repokit.services.cache_service import CacheService
from repokit.services.database_service import DatabaseService
from repokit.services.transform_service import Transformer


class EmailTransformer(Transformer):
    def transform(self, item):
        return item.email


class SearchableUserRepository(UserRepository):
    searchable = {"email": 1}


class TestConstruction:
    """Test suite for repository construction."""

    def test_direct_strategy_without_cache(self, repo):
        assert isinstance(repo.backend, DatabaseService)
        assert not repo.is_cached()
        assert repo.table_name() == "users"

    def test_cached_strategy_with_cache(self, cached_repo):
        assert isinstance(cached_repo.backend, CacheService)
        assert cached_repo.is_cached()

    @pytest.mark.parametrize("model", [None, dict, "users"])
    def test_invalid_model(self, session, model):
        """
        Test that a non-mapped model is rejected.

        Arrange: Repository declaring a non-mapped model
        Act: Instantiate it
        Assert: InvalidModel raised before any query
        """
        bad = type("BadRepository", (Repository,), {"model": model})

        with pytest.raises(InvalidModel) as exc_info:
            bad(session)

        assert exc_info.value.to_dict()["error"]["code"] == "INVALID_MODEL"


class TestReads:
    """Test suite for read operations."""

    def test_all(self, repo, make_users):
        make_users(3)

        assert [u.id for u in repo.all()] == [1, 2, 3]

    def test_all_with_columns(self, session, repo, make_users):
        make_users(2)
        session.expunge_all()

        users = repo.all(columns=["email"])

        assert "password" in inspect(users[0]).unloaded
        assert users[0].id == 1
        assert users[0].email == "user001@example.com"

    def test_unknown_column(self, repo):
        with pytest.raises(ColumnNotFound):
            repo.all(columns=["nickname"])

    def test_find(self, repo, make_users):
        user = make_users(1)[0]

        assert repo.find(user.id).email == user.email

    def test_find_missing_returns_none(self, repo):
        assert repo.find(999) is None

    def test_find_by(self, repo, make_users):
        make_users(3)

        assert repo.find_by("email", "user002@example.com").id == 2
        assert repo.find_by("email", "nobody@example.com") is None

    def test_find_where(self, repo, make_users):
        make_users(2, active=True)
        make_users(1, active=False)

        found = repo.find_where({"active": False})

        assert found.id == 3
        assert repo.find_where({"active": False, "email": "user001@example.com"}) is None

    def test_find_many(self, repo, make_users):
        make_users(5)

        assert sorted(u.id for u in repo.find_many([1, 3, 5])) == [1, 3, 5]
        assert repo.find_many([]) == []

    def test_where_operators(self, repo, make_users):
        make_users(5)

        assert [u.id for u in repo.where("id", 3, operator=">")] == [4, 5]
        assert [u.id for u in repo.where("id", [1, 2], operator="in")] == [1, 2]

    def test_where_mapping_with_or(self, repo, make_users):
        make_users(5)

        users = repo.where({"email": "user001@example.com", "id": 4}, boolean="or")

        assert [u.id for u in users] == [1, 4]

    def test_where_invalid_operator(self, repo):
        with pytest.raises(ValidationError):
            repo.where("id", 1, operator="~~")

    def test_count(self, repo, make_users):
        make_users(4, active=True)
        make_users(2, active=False)

        assert repo.count() == 6
        assert repo.criteria(ActiveOnly()).count() == 4

    def test_criteria_are_one_shot(self, repo, make_users):
        """
        Test criteria do not leak into the next call.

        Arrange: 3 active and 2 inactive users
        Act: all() with ActiveOnly, then all() without
        Assert: 3 then 5 records
        """
        make_users(3, active=True)
        make_users(2, active=False)

        assert len(repo.criteria(ActiveOnly()).all()) == 3
        assert len(repo.all()) == 5


class TestWrites:
    """Test suite for create / update / delete."""

    def test_create(self, repo):
        user = repo.create({"email": "new@example.com", "password": "secret"})

        assert user.id is not None
        assert repo.find(user.id).email == "new@example.com"

    def test_create_loads_server_defaults(self, session, make_users):
        author = make_users(1)[0]

        post = PostRepository(session).create({"user_id": author.id, "title": "hello"})

        assert post.created_at is not None
        assert post.updated_at is not None

    def test_update(self, repo, make_users):
        user = make_users(1)[0]

        updated = repo.update(user.id, {"email": "changed@example.com", "nickname": "ignored"})

        assert updated.email == "changed@example.com"
        assert repo.find_by("email", "changed@example.com").id == user.id

    def test_update_accepts_instance(self, repo, make_users):
        user = make_users(1)[0]

        assert repo.update(user, {"active": False}).active is False

    def test_update_missing_raises(self, repo):
        with pytest.raises(NotFoundError):
            repo.update(404, {"email": "x@example.com"})

    def test_delete(self, repo, make_users):
        user = make_users(1)[0]

        assert repo.delete(user.id) is True
        assert repo.find(user.id) is None

    def test_delete_missing_returns_false(self, repo):
        assert repo.delete(404) is False


class TestModelForwarding:
    """Test suite for attribute forwarding to the model."""

    def test_forwards_model_callables(self, repo):
        assert repo.normalize_email("  John@Example.COM ") == "john@example.com"

    def test_unknown_operation(self, repo):
        """
        Test unknown attributes.

        Arrange: Direct repository
        Act: Access a name neither repository nor model defines
        Assert: UnknownOperation, which is also an AttributeError
        """
        with pytest.raises(UnknownOperation) as exc_info:
            repo.very_bad_method()

        assert isinstance(exc_info.value, AttributeError)
        assert exc_info.value.details == {"operation": "very_bad_method", "model": "User"}
        assert not hasattr(repo, "another_bad_method")

    def test_non_callable_model_attribute_is_unknown(self, repo):
        with pytest.raises(UnknownOperation):
            repo.email


class TestTransformers:
    """Test suite for result transformers."""

    def test_list_results_are_transformed(self, repo, make_users):
        make_users(2)

        repo.set_transformer(EmailTransformer)

        assert repo.all() == ["user001@example.com", "user002@example.com"]

    def test_single_and_page_results_are_transformed(self, repo, make_users):
        make_users(3)
        repo.set_transformer(EmailTransformer)

        assert repo.find(2) == "user002@example.com"
        assert repo.find(99) is None
        assert repo.fetch(1, 2).items == ["user001@example.com", "user002@example.com"]

    def test_set_invalid_transformer(self, repo):
        with pytest.raises(InvalidTransformer):
            repo.set_transformer(dict)

    def test_invalid_declared_transformer(self, session, make_users):
        make_users(1)
        bad = type("BadTransformerRepository", (UserRepository,), {"transformer": dict})

        with pytest.raises(InvalidTransformer):
            bad(session).all()

    def test_empty_results_skip_transformer(self, session):
        bad = type("BadTransformerRepository", (UserRepository,), {"transformer": dict})

        assert bad(session).all() == []


class TestSearch:
    """Test suite for relevance search."""

    @pytest.fixture
    def people(self, session):
        session.add_all(
            [
                User(email="john.doe@example.com"),
                User(email="jane@example.com"),
                User(email="doe.family@example.org"),
            ]
        )
        session.flush()

    def test_ranked_results(self, session, people):
        """
        Test prefix matches outrank substring matches.

        Arrange: Two emails containing "doe", one starting with it
        Act: Search "doe"
        Assert: Prefix match first, non-matching email excluded
        """
        repo = SearchableUserRepository(session)

        results = repo.search("doe")

        assert [u.email for u in results] == ["doe.family@example.org", "john.doe@example.com"]

    def test_search_is_case_insensitive(self, session, people):
        repo = SearchableUserRepository(session)

        assert len(repo.search("DOE")) == 2

    def test_fetch_with_search_replaces_filters(self, session, people):
        repo = SearchableUserRepository(session)

        page = repo.fetch(1, 10, filter={"email": "jane"}, search="doe")

        assert page.total == 2

    def test_blank_phrase_returns_everything(self, session, people):
        repo = SearchableUserRepository(session)

        assert len(repo.search("   ")) == 3


class TestEagerLoading:
    """Test suite for with_relations."""

    def test_relations_are_loaded(self, session, repo, make_users):
        user = make_users(1)[0]
        session.add(Post(user_id=user.id, title="hello"))
        session.flush()
        session.expunge_all()

        loaded = repo.with_relations("posts").find(user.id)

        assert "posts" not in inspect(loaded).unloaded
        assert [p.title for p in loaded.posts] == ["hello"]

    def test_eager_loads_persist_across_calls(self, repo):
        repo.with_relations("posts", ["roles", "posts"])

        assert repo.eager == ["posts", "roles"]

    def test_unknown_relation(self, repo):
        with pytest.raises(RelationNotFound):
            repo.with_relations("nickname")


class TestFactory:
    """Test suite for make_repository."""

    def test_cache_disabled(self, session):
        repo = make_repository(UserRepository, session, settings=Settings(CACHE_ENABLED=False))

        assert not repo.is_cached()

    def test_cache_enabled(self, session, store):
        repo = make_repository(
            UserRepository,
            session,
            cache=store,
            settings=Settings(CACHE_ENABLED=True, CACHE_LIFETIME=5),
        )

        assert repo.is_cached()
        assert repo.backend.lifetime == 5
        assert repo.backend.ttl == 300

    def test_cache_enabled_defaults_to_redis_singleton(self, session):
        repo = make_repository(UserRepository, session, settings=Settings(CACHE_ENABLED=True))

        assert repo.backend.cache is get_redis_adapter()
        assert repo.backend.cache.prefix == "test"
        assert repo.backend.lifetime == 30
