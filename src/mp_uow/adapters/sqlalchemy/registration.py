"""SQLAlchemy adapter – wiring a unit of work, repositories and proxied services.

One registration describes one database: the session factory every unit of
work is built from, the custom repositories handed out by
``get_repository(..., use_custom=True)`` and the services that should be
resolved behind a :class:`TransactionalProxy`.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

from sqlalchemy.ext.asyncio import async_sessionmaker

from mp_uow.adapters.sqlalchemy.async_uow import AsyncSqlAlchemyUnitOfWork
from mp_uow.adapters.sqlalchemy.registry import RepositoryFactory, RepositoryRegistry
from mp_uow.adapters.sqlalchemy.session import AsyncSqlAlchemySessionFactory
from mp_uow.adapters.sqlalchemy.uow import SqlAlchemyUnitOfWork
from mp_uow.application.uow import TransactionInterceptor, TransactionalProxy
from mp_uow.config.validation import ConfigError
from mp_uow.kernel.ddd import AsyncUnitOfWork, UnitOfWork

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[Any], Any]


def _is_async_factory(session_factory: Any) -> bool:
    return isinstance(session_factory, (async_sessionmaker, AsyncSqlAlchemySessionFactory))


class UnitOfWorkRegistration:
    """Registry of the session factory, custom repositories and proxied services."""

    def __init__(self) -> None:
        self._session_factory: Callable[[], Any] | None = None
        self._repositories = RepositoryRegistry()
        self._services: dict[type[Any], ServiceFactory] = {}

    @property
    def session_factory(self) -> Callable[[], Any] | None:
        return self._session_factory

    @property
    def repositories(self) -> RepositoryRegistry:
        return self._repositories

    def add_unit_of_work(self, session_factory: Callable[[], Any]) -> "UnitOfWorkRegistration":
        """Register the session factory; only one per registration."""
        if self._session_factory is not None and self._session_factory is not session_factory:
            raise ConfigError(
                "A unit of work is already registered with another session factory; "
                "only one is supported per registration"
            )
        self._session_factory = session_factory
        logger.debug("uow.registration.unit_of_work factory=%r", session_factory)
        return self

    def add_repository(self, entity_type: type[Any], repository_factory: RepositoryFactory) -> "UnitOfWorkRegistration":
        self._repositories.register(entity_type, repository_factory)
        logger.debug("uow.registration.repository entity=%s", entity_type.__name__)
        return self

    def add_proxied(self, interface: type[Any], implementation_factory: ServiceFactory) -> "UnitOfWorkRegistration":
        """Register a service built as ``implementation_factory(uow)``."""
        self._services[interface] = implementation_factory
        logger.debug("uow.registration.service interface=%s", interface.__name__)
        return self

    def create_unit_of_work(self) -> UnitOfWork | AsyncUnitOfWork:
        if self._session_factory is None:
            raise ConfigError("No unit of work registered; call add_unit_of_work() first")
        if _is_async_factory(self._session_factory):
            return AsyncSqlAlchemyUnitOfWork(self._session_factory, repositories=self._repositories)
        return SqlAlchemyUnitOfWork(self._session_factory, repositories=self._repositories)

    def resolve(self, interface: type[Any], uow: UnitOfWork | AsyncUnitOfWork) -> TransactionalProxy:
        """Build the registered implementation for *uow* behind a transactional proxy."""
        try:
            factory = self._services[interface]
        except KeyError:
            raise ConfigError(f"No service registered for {interface.__name__}") from None
        return TransactionInterceptor(uow).proxy(factory(uow), interface=interface)

    def reset(self) -> None:
        self._session_factory = None
        self._repositories = RepositoryRegistry()
        self._services.clear()


default_registration = UnitOfWorkRegistration()


__all__ = ["ServiceFactory", "UnitOfWorkRegistration", "default_registration"]
