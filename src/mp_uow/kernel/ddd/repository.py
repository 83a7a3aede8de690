"""Repository ports – data accessors bound to one entity type and one unit of work."""

from __future__ import annotations

import abc
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Repository(abc.ABC, Generic[T]):
    """Port: blocking repository for one entity type.

    Concrete implementations live in ``adapters/sqlalchemy``; a custom
    repository registered for an entity type is usually a subclass of the
    generic one adding entity-specific queries.
    """

    @abc.abstractmethod
    def get(self, id: Any) -> T | None: ...

    @abc.abstractmethod
    def get_or_raise(self, id: Any) -> T: ...

    @abc.abstractmethod
    def add(self, entity: T) -> T: ...

    @abc.abstractmethod
    def update(self, entity: T) -> T: ...

    @abc.abstractmethod
    def remove(self, entity: T) -> None: ...

    @abc.abstractmethod
    def find_all(self, limit: int | None = None, offset: int = 0) -> list[T]: ...


class AsyncRepository(abc.ABC, Generic[T]):
    """Port: asyncio repository for one entity type."""

    @abc.abstractmethod
    async def get(self, id: Any) -> T | None: ...

    @abc.abstractmethod
    async def get_or_raise(self, id: Any) -> T: ...

    @abc.abstractmethod
    async def add(self, entity: T) -> T: ...

    @abc.abstractmethod
    async def update(self, entity: T) -> T: ...

    @abc.abstractmethod
    async def remove(self, entity: T) -> None: ...

    @abc.abstractmethod
    async def find_all(self, limit: int | None = None, offset: int = 0) -> list[T]: ...


__all__ = ["AsyncRepository", "Repository"]
