"""SQLAlchemy adapter – RepositoryRegistry for custom repositories."""
from __future__ import annotations

from typing import Any, Callable

RepositoryFactory = Callable[[Any, type[Any]], Any]


class RepositoryRegistry:
    """Custom repository factories keyed by entity type.

    A factory is called as ``factory(session, entity_type)``, so a subclass of
    :class:`SqlAlchemyRepository` registers as itself. Resolved instances are
    kept in the SQLAlchemy session's ``info`` mapping: the session owns them,
    not the unit of work's repository cache.
    """

    INFO_KEY = "mp_uow.custom_repositories"

    def __init__(self) -> None:
        self._factories: dict[type[Any], RepositoryFactory] = {}

    def register(self, entity_type: type[Any], factory: RepositoryFactory) -> None:
        self._factories[entity_type] = factory

    def is_registered(self, entity_type: type[Any]) -> bool:
        return entity_type in self._factories

    def resolve(self, entity_type: type[Any], session: Any) -> Any | None:
        factory = self._factories.get(entity_type)
        if factory is None:
            return None
        instances: dict[type[Any], Any] = session.info.setdefault(self.INFO_KEY, {})
        if entity_type not in instances:
            instances[entity_type] = factory(session, entity_type)
        return instances[entity_type]

    @classmethod
    def release(cls, session: Any) -> None:
        session.info.pop(cls.INFO_KEY, None)

    def __len__(self) -> int:
        return len(self._factories)


__all__ = ["RepositoryFactory", "RepositoryRegistry"]
