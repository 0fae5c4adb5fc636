"""
Custom Exceptions

Repository-layer exceptions with machine-readable error codes.

Exception Hierarchy:
====================
    RepositoryException (base)
       │
       ├── InvalidModel            ← Repository model is not a mapped class
       ├── InvalidCriteria         ← Object pushed on the criteria stack is not a Criteria
       ├── InvalidTransformer      ← Transformer is not a Transformer subclass
       ├── UnknownOperation        ← Neither repository nor model has the attribute
       ├── RelationNotFound        ← Dotted path hop is not a relationship
       ├── ColumnNotFound          ← Column is not mapped on the model
       ├── ValidationError         ← Bad direction, operator or page size
       └── NotFoundError           ← Record to update does not exist

All of them are fatal: nothing in the library catches or retries them.
Cache backend failures (redis.exceptions.RedisError) are not wrapped and
reach the caller unchanged.

Usage:
======
    from repokit.core.exceptions import InvalidCriteria, RelationNotFound

    try:
        repo.fetch(filter={"author.nickname": "bob"})
    except RelationNotFound as e:
        print(e.to_dict())
        # {"error": {"code": "RELATION_NOT_FOUND", "message": "...", "details": {...}}}
"""

from typing import Any, Optional


class RepositoryException(Exception):
    """
    Base exception for all repository layer errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or "REPOSITORY_ERROR"
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to a serializable dictionary.

        Returns:
            Dictionary with error code, message and details
        """
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION ERRORS
# ═══════════════════════════════════════════════════════════════════════════════


class InvalidModel(RepositoryException):
    """
    Repository model is not a SQLAlchemy mapped class.

    Raised when the repository is constructed, before any query runs.
    """

    def __init__(self, model: Any) -> None:
        name = getattr(model, "__name__", type(model).__name__)
        super().__init__(
            message=f"Class '{name}' must be a SQLAlchemy mapped class",
            error_code="INVALID_MODEL",
            details={"model": name},
        )


class InvalidCriteria(RepositoryException):
    """Object pushed on the criteria stack does not extend Criteria."""

    def __init__(self, criteria: Any) -> None:
        name = type(criteria).__name__
        super().__init__(
            message=f"Criteria must extend 'repokit.services.criteria_service.Criteria', got '{name}'",
            error_code="INVALID_CRITERIA",
            details={"criteria": name},
        )


class InvalidTransformer(RepositoryException):
    """Transformer does not extend Transformer."""

    def __init__(self, transformer: Any) -> None:
        name = getattr(transformer, "__name__", type(transformer).__name__)
        super().__init__(
            message=f"Transformer must extend 'repokit.services.transform_service.Transformer', got '{name}'",
            error_code="INVALID_TRANSFORMER",
            details={"transformer": name},
        )


class UnknownOperation(RepositoryException, AttributeError):
    """
    Attribute matches neither the repository nor its model.

    Inherits AttributeError so hasattr() and getattr(default) keep working.
    """

    def __init__(self, operation: str, model: str) -> None:
        super().__init__(
            message=f"Call to undefined operation '{operation}' on repository for '{model}'",
            error_code="UNKNOWN_OPERATION",
            details={"operation": operation, "model": model},
        )


# ═══════════════════════════════════════════════════════════════════════════════
# QUERY ERRORS
# ═══════════════════════════════════════════════════════════════════════════════


class RelationNotFound(RepositoryException):
    """
    A hop in a dotted column path is not a relationship of its model.

    Example:
        raise RelationNotFound("User", "nickname")
        # Message: "Relation 'nickname' is not defined on 'User'"
    """

    def __init__(self, model: str, relation: str) -> None:
        super().__init__(
            message=f"Relation '{relation}' is not defined on '{model}'",
            error_code="RELATION_NOT_FOUND",
            details={"model": model, "relation": relation},
        )


class ColumnNotFound(RepositoryException):
    """Column is not a mapped column of its model."""

    def __init__(self, model: str, column: str) -> None:
        super().__init__(
            message=f"Column '{column}' is not mapped on '{model}'",
            error_code="COLUMN_NOT_FOUND",
            details={"model": model, "column": column},
        )


class ValidationError(RepositoryException):
    """Invalid argument given to a repository operation."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class NotFoundError(RepositoryException):
    """
    Record not found.

    Only raised where a record is required (update). Lookups return None.

    Example:
        raise NotFoundError("User", 42)
        # Message: "User with id '42' not found"
    """

    def __init__(
        self,
        resource: str,
        resource_id: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            details=details,
        )
