"""SQLAlchemy adapter – generic repositories bound to a unit of work's session."""
from __future__ import annotations

from typing import Any, Generic, Iterable, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from mp_uow.kernel.ddd import AsyncRepository, Repository
from mp_uow.kernel.errors import NotFoundError

T = TypeVar("T")


class SqlAlchemyRepository(Repository[T], Generic[T]):
    """Plain CRUD over a change-tracking :class:`Session`.

    Writes are only tracked here; they reach the database on
    ``save_changes()`` or when the unit of work commits.
    """

    def __init__(self, session: Session, entity_type: type[T]) -> None:
        self._session = session
        self._entity_type = entity_type

    @property
    def session(self) -> Session:
        return self._session

    @property
    def entity_type(self) -> type[T]:
        return self._entity_type

    def get(self, id: Any) -> T | None:
        return self._session.get(self._entity_type, id)

    def get_or_raise(self, id: Any) -> T:
        entity = self.get(id)
        if entity is None:
            raise NotFoundError(self._entity_type.__name__, id)
        return entity

    def add(self, entity: T) -> T:
        self._session.add(entity)
        return entity

    def add_all(self, entities: Iterable[T]) -> list[T]:
        items = list(entities)
        self._session.add_all(items)
        return items

    def update(self, entity: T) -> T:
        return self._session.merge(entity)

    def remove(self, entity: T) -> None:
        self._session.delete(entity)

    def remove_by_id(self, id: Any) -> bool:
        entity = self.get(id)
        if entity is None:
            return False
        self._session.delete(entity)
        return True

    def find_all(self, limit: int | None = None, offset: int = 0) -> list[T]:
        stmt = select(self._entity_type).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self._session.scalars(stmt).all())

    def find_by(self, **criteria: Any) -> list[T]:
        return list(self._session.scalars(select(self._entity_type).filter_by(**criteria)).all())

    def count(self) -> int:
        return self._session.scalar(select(func.count()).select_from(self._entity_type)) or 0


class AsyncSqlAlchemyRepository(AsyncRepository[T], Generic[T]):
    """Plain CRUD over an :class:`AsyncSession`."""

    def __init__(self, session: AsyncSession, entity_type: type[T]) -> None:
        self._session = session
        self._entity_type = entity_type

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def entity_type(self) -> type[T]:
        return self._entity_type

    async def get(self, id: Any) -> T | None:
        return await self._session.get(self._entity_type, id)

    async def get_or_raise(self, id: Any) -> T:
        entity = await self.get(id)
        if entity is None:
            raise NotFoundError(self._entity_type.__name__, id)
        return entity

    async def add(self, entity: T) -> T:
        self._session.add(entity)
        return entity

    async def add_all(self, entities: Iterable[T]) -> list[T]:
        items = list(entities)
        self._session.add_all(items)
        return items

    async def update(self, entity: T) -> T:
        return await self._session.merge(entity)

    async def remove(self, entity: T) -> None:
        await self._session.delete(entity)

    async def remove_by_id(self, id: Any) -> bool:
        entity = await self.get(id)
        if entity is None:
            return False
        await self._session.delete(entity)
        return True

    async def find_all(self, limit: int | None = None, offset: int = 0) -> list[T]:
        stmt = select(self._entity_type).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.scalars(stmt)
        return list(result.all())

    async def find_by(self, **criteria: Any) -> list[T]:
        result = await self._session.scalars(select(self._entity_type).filter_by(**criteria))
        return list(result.all())

    async def count(self) -> int:
        return await self._session.scalar(select(func.count()).select_from(self._entity_type)) or 0


__all__ = ["AsyncSqlAlchemyRepository", "SqlAlchemyRepository"]
