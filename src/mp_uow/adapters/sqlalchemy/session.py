"""SQLAlchemy adapter – session factories for the blocking and asyncio units of work."""
from __future__ import annotations

from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker

from mp_uow.config.settings import UnitOfWorkSettings


def _session_options(options: dict[str, Any] | None) -> dict[str, Any]:
    merged: dict[str, Any] = {"expire_on_commit": False}
    merged.update(options or {})
    return merged


class SqlAlchemySessionFactory:
    """Creates blocking SQLAlchemy sessions from an engine URL."""

    def __init__(
        self,
        database_url: str,
        *,
        session_options: dict[str, Any] | None = None,
        **engine_kwargs: Any,
    ) -> None:
        self._engine = create_engine(database_url, **engine_kwargs)
        self._session_factory = sessionmaker(self._engine, class_=Session, **_session_options(session_options))

    @classmethod
    def from_settings(cls, settings: UnitOfWorkSettings) -> "SqlAlchemySessionFactory":
        return cls(
            settings.database_url,
            session_options={"expire_on_commit": settings.expire_on_commit, "autoflush": settings.autoflush},
            echo=settings.echo,
            pool_pre_ping=settings.pool_pre_ping,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def __call__(self) -> Session:
        return self._session_factory()

    def dispose(self) -> None:
        self._engine.dispose()


class AsyncSqlAlchemySessionFactory:
    """Creates async SQLAlchemy sessions from an engine URL."""

    def __init__(
        self,
        database_url: str,
        *,
        session_options: dict[str, Any] | None = None,
        **engine_kwargs: Any,
    ) -> None:
        self._engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, **_session_options(session_options)
        )

    @classmethod
    def from_settings(cls, settings: UnitOfWorkSettings) -> "AsyncSqlAlchemySessionFactory":
        return cls(
            settings.database_url,
            session_options={"expire_on_commit": settings.expire_on_commit, "autoflush": settings.autoflush},
            echo=settings.echo,
            pool_pre_ping=settings.pool_pre_ping,
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def __call__(self) -> AsyncSession:
        return self._session_factory()

    async def dispose(self) -> None:
        await self._engine.dispose()


__all__ = ["AsyncSqlAlchemySessionFactory", "SqlAlchemySessionFactory"]
