"""Application UoW – RepositoryCache."""
from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

R = TypeVar("R")


class RepositoryCache(Generic[R]):
    """Memoize one repository per entity type for the lifetime of a unit of work.

    Entries are built by *factory* on first miss and never rebuilt until
    :meth:`clear`. Not safe for concurrent mutation.
    """

    def __init__(self, factory: Callable[[type[Any]], R]) -> None:
        self._factory = factory
        self._entries: dict[type[Any], R] = {}

    def get(self, entity_type: type[Any]) -> R:
        try:
            return self._entries[entity_type]
        except KeyError:
            repository = self._factory(entity_type)
            self._entries[entity_type] = repository
            return repository

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["RepositoryCache"]
