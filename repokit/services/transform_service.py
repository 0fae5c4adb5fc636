"""
Transform Service

Post-processing of repository results (presentation mapping, DTOs).

Usage:
======
    class UserEmailTransformer(Transformer):
        def transform(self, item):
            return {"id": item.id, "email": item.email}

    class UserRepository(Repository):
        model = User
        transformer = UserEmailTransformer
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from repokit.core.exceptions import InvalidTransformer


class Transformer(ABC):
    """
    Maps every item of a result list.

    Attributes:
        items: Items to transform
    """

    def __init__(self, items: Iterable[Any]) -> None:
        self.items = list(items)

    @abstractmethod
    def transform(self, item: Any) -> Any:
        """Transform a single item."""

    def execute(self) -> list[Any]:
        return [self.transform(item) for item in self.items]


def validate_transformer(transformer: Any) -> type:
    """
    Ensure transformer is a Transformer subclass.

    Raises:
        InvalidTransformer: If it is not
    """
    if not (isinstance(transformer, type) and issubclass(transformer, Transformer)):
        raise InvalidTransformer(transformer)
    return transformer


class TransformService:
    """Runs a repository's transformer over its results."""

    def __init__(self, transformer: Optional[type] = None) -> None:
        self.transformer = transformer

    def execute_on(self, items: Iterable[Any]) -> list[Any]:
        """
        Transform items with the configured transformer.

        Empty input, or no transformer configured, returns the items as a list.

        Raises:
            InvalidTransformer: If the configured transformer is not a Transformer
        """
        items = list(items)
        if not items or self.transformer is None:
            return items

        transformer = validate_transformer(self.transformer)
        return transformer(items).execute()
