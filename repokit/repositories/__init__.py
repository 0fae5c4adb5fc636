"""
Repository Pattern Implementations

Repositories wrap a mapped model behind one uniform data-access surface,
optionally cached.

Repository Hierarchy:
=====================
    Repository[ModelType]           ← Declarative base (model, searchable, transformer, lifetime)
         │
         └── <YourModel>Repository  ← Declared by the host application

Usage Example:
==============
    from repokit.repositories import Repository, make_repository

    class UserRepository(Repository[User]):
        model = User

    with adapter.session() as session:
        users = make_repository(UserRepository, session)
        page = users.fetch(page=1, per_page=20, sort={"email": "asc"})
"""

from repokit.repositories.base import Repository
from repokit.repositories.factory import make_repository

__all__ = [
    "Repository",
    "make_repository",
]
