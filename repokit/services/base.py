"""
Repository backend contract.

A Repository delegates every data operation to one backend, chosen when the
repository is built:

    DatabaseService → runs the operation against the session
    CacheService    → read-through / write-through over a DatabaseService

Both expose the same operations with the same keyword arguments, so the
Repository never checks which one it holds.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from repokit.schemas.pagination import Paginator

Columns = Optional[Sequence[str]]


class RepositoryBackend(ABC):
    """Operations every repository strategy implements."""

    @abstractmethod
    def all(self, columns: Columns = None) -> list[Any]:
        ...

    @abstractmethod
    def where(
        self,
        column: Any,
        value: Any = None,
        operator: str = "=",
        boolean: str = "and",
        columns: Columns = None,
    ) -> list[Any]:
        ...

    @abstractmethod
    def find(self, identifier: Any, columns: Columns = None) -> Optional[Any]:
        ...

    @abstractmethod
    def find_by(self, column: str, value: Any, columns: Columns = None) -> Optional[Any]:
        ...

    @abstractmethod
    def find_where(self, wheres: Mapping[str, Any], columns: Columns = None) -> Optional[Any]:
        ...

    @abstractmethod
    def find_many(self, identifiers: Sequence[Any], columns: Columns = None) -> list[Any]:
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def paginate(self, per_page: int = 15, columns: Columns = None, page: int = 1) -> Paginator:
        ...

    @abstractmethod
    def search(self, phrase: str, columns: Optional[Mapping[str, float]] = None, threshold: Optional[float] = None) -> list[Any]:
        ...

    @abstractmethod
    def fetch(
        self,
        page: int = 1,
        per_page: int = 15,
        columns: Columns = None,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Any = None,
        search: Optional[str] = None,
    ) -> Paginator:
        ...

    @abstractmethod
    def simple_fetch(
        self,
        page: int = 1,
        per_page: int = 15,
        columns: Columns = None,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Any = None,
        search: Optional[str] = None,
    ) -> list[Any]:
        ...

    @abstractmethod
    def create(self, attributes: Mapping[str, Any]) -> Any:
        ...

    @abstractmethod
    def update(self, identifier: Any, attributes: Mapping[str, Any]) -> Any:
        ...

    @abstractmethod
    def delete(self, identifier: Any) -> bool:
        ...
