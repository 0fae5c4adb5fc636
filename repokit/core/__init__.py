"""
Core Module

Provides core functionality shared across the library:
- Structured logging
- Custom exceptions

Usage:
======
    from repokit.core.logging import logger, get_logger
    from repokit.core.exceptions import RepositoryException, InvalidCriteria

    logger.info("Repository created", model="User")
"""

from repokit.core.logging import (
    logger,
    get_logger,
    log_context,
    clear_log_context,
)
from repokit.core.exceptions import (
    RepositoryException,
    InvalidModel,
    InvalidCriteria,
    InvalidTransformer,
    UnknownOperation,
    RelationNotFound,
    ColumnNotFound,
    ValidationError,
    NotFoundError,
)

__all__ = [
    # Logging
    "logger",
    "get_logger",
    "log_context",
    "clear_log_context",
    # Exceptions
    "RepositoryException",
    "InvalidModel",
    "InvalidCriteria",
    "InvalidTransformer",
    "UnknownOperation",
    "RelationNotFound",
    "ColumnNotFound",
    "ValidationError",
    "NotFoundError",
]
