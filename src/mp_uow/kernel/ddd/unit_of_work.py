"""Unit of Work ports – transactional boundary shared by repositories and raw SQL."""

from __future__ import annotations

import abc
from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol, TypeVar

T = TypeVar("T")

# Mapping, dataclass instance or any object with attributes.
Params = Any


class TransactionState(str, Enum):
    """Lifecycle of the ambient transaction owned by a unit of work."""

    IDLE = "IDLE"
    ACTIVE = "ACTIVE"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"
    FAILED = "FAILED"


class TransactionHandle(Protocol):
    """Port: provider transaction referenced (not owned) by a unit of work.

    ``commit``/``rollback`` return ``None`` for blocking providers and an
    awaitable for asyncio ones. ``connection`` is the driver-level connection
    the transaction is bound to, suitable for raw SQL.
    """

    @property
    def connection(self) -> Any: ...

    @property
    def is_active(self) -> bool: ...

    def commit(self) -> Any: ...

    def rollback(self) -> Any: ...


class _UnitOfWorkState(abc.ABC):
    """Read-only state shared by the blocking and asyncio ports."""

    @property
    @abc.abstractmethod
    def id(self) -> str: ...

    @property
    @abc.abstractmethod
    def state(self) -> TransactionState: ...

    @property
    @abc.abstractmethod
    def current_transaction(self) -> TransactionHandle | None: ...

    @property
    @abc.abstractmethod
    def is_rollback_only(self) -> bool: ...

    @property
    @abc.abstractmethod
    def disposed(self) -> bool: ...

    @property
    def is_transaction_active(self) -> bool:
        return self.current_transaction is not None

    @property
    def has_committed(self) -> bool:
        return self.state is TransactionState.COMMITTED

    @abc.abstractmethod
    def get_repository(self, entity_type: type[T], use_custom: bool = False) -> Any: ...

    @abc.abstractmethod
    def mark_rollback_only(self) -> None: ...


class UnitOfWork(_UnitOfWorkState):
    """Port: blocking unit of work.

    Used as a context manager, an active transaction is committed on a clean
    exit and rolled back on error, and the unit of work is disposed either way.
    """

    @abc.abstractmethod
    def begin_transaction(self) -> TransactionHandle: ...

    @abc.abstractmethod
    def commit(self) -> None: ...

    @abc.abstractmethod
    def rollback(self) -> None: ...

    @abc.abstractmethod
    def save_changes(self) -> int: ...

    @abc.abstractmethod
    def query(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: TransactionHandle | None = None,
        row_type: Any = None,
        execution_options: Mapping[str, Any] | None = None,
    ) -> list[Any]: ...

    @abc.abstractmethod
    def query_first_or_default(
        self,
        sql: str,
        params: Params = None,
        *,
        default: Any = None,
        transaction: TransactionHandle | None = None,
        row_type: Any = None,
        execution_options: Mapping[str, Any] | None = None,
    ) -> Any: ...

    @abc.abstractmethod
    def query_single(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: TransactionHandle | None = None,
        row_type: Any = None,
        execution_options: Mapping[str, Any] | None = None,
    ) -> Any: ...

    @abc.abstractmethod
    def execute(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: TransactionHandle | None = None,
        execution_options: Mapping[str, Any] | None = None,
    ) -> int: ...

    @abc.abstractmethod
    def dispose(self) -> None: ...

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self.is_transaction_active:
                if exc_type is None:
                    self.commit()
                else:
                    self.rollback()
        finally:
            self.dispose()


class AsyncUnitOfWork(_UnitOfWorkState):
    """Port: asyncio unit of work; every I/O operation is a coroutine."""

    @abc.abstractmethod
    async def begin_transaction(self) -> TransactionHandle: ...

    @abc.abstractmethod
    async def commit(self) -> None: ...

    @abc.abstractmethod
    async def rollback(self) -> None: ...

    @abc.abstractmethod
    async def save_changes(self) -> int: ...

    @abc.abstractmethod
    async def query(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: TransactionHandle | None = None,
        row_type: Any = None,
        timeout: float | None = None,
    ) -> list[Any]: ...

    @abc.abstractmethod
    async def query_first_or_default(
        self,
        sql: str,
        params: Params = None,
        *,
        default: Any = None,
        transaction: TransactionHandle | None = None,
        row_type: Any = None,
        timeout: float | None = None,
    ) -> Any: ...

    @abc.abstractmethod
    async def query_single(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: TransactionHandle | None = None,
        row_type: Any = None,
        timeout: float | None = None,
    ) -> Any: ...

    @abc.abstractmethod
    async def execute(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: TransactionHandle | None = None,
        timeout: float | None = None,
    ) -> int: ...

    @abc.abstractmethod
    async def dispose(self) -> None: ...

    async def __aenter__(self) -> "AsyncUnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self.is_transaction_active:
                if exc_type is None:
                    await self.commit()
                else:
                    await self.rollback()
        finally:
            await self.dispose()


__all__ = ["AsyncUnitOfWork", "Params", "TransactionHandle", "TransactionState", "UnitOfWork"]
