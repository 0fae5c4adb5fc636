"""
repokit

Repository layer for SQLAlchemy models: read-through/write-through caching,
one-shot criteria, filter/sort/paginate grids and result transformers.

Package Structure:
==================
    repokit/
    ├── config/        ← Settings (pydantic-settings)
    ├── core/          ← Logging (structlog) and exceptions
    ├── db/            ← Engine and session management
    ├── models/        ← Declarative base
    ├── adapters/      ← Cache stores (Redis)
    ├── query/         ← Filter / sort / count / window pipeline
    ├── services/      ← Database, cache, criteria, search, transform
    ├── schemas/       ← Paginator
    └── repositories/  ← Repository base and factory
"""

from repokit.repositories import Repository, make_repository
from repokit.schemas import Paginator
from repokit.services import Criteria, Transformer

__all__ = [
    "Criteria",
    "Paginator",
    "Repository",
    "Transformer",
    "make_repository",
]

__version__ = "1.0.0"
