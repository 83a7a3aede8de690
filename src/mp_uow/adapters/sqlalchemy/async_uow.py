"""SQLAlchemy adapter – AsyncSqlAlchemyUnitOfWork."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncSession

from mp_uow.adapters.sqlalchemy.base import SqlAlchemyUnitOfWorkBase
from mp_uow.adapters.sqlalchemy.registry import RepositoryRegistry
from mp_uow.adapters.sqlalchemy.repository import AsyncSqlAlchemyRepository
from mp_uow.adapters.sqlalchemy.sql import bind_params, log_statement, map_row, statement
from mp_uow.adapters.sqlalchemy.transaction import AsyncSqlAlchemyTransaction
from mp_uow.kernel.ddd import AsyncUnitOfWork, Params
from mp_uow.kernel.errors import (
    CardinalityError,
    TransactionCommitFailure,
    TransactionRollbackFailure,
    UnexpectedRollbackError,
)

logger = logging.getLogger(__name__)


class AsyncSqlAlchemyUnitOfWork(SqlAlchemyUnitOfWorkBase, AsyncUnitOfWork):
    """Asyncio unit of work over one :class:`AsyncSession`.

    Every statement accepts an optional ``timeout`` in seconds; cancelling
    the awaiting task cancels the statement as well. An interrupted statement
    leaves its connection unusable, so an active unit-of-work transaction
    moves to ``FAILED`` and is rolled back before the error is re-raised.
    """

    _session_class = AsyncSession
    _repository_class = AsyncSqlAlchemyRepository

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] | None,
        *,
        repositories: RepositoryRegistry | None = None,
    ) -> None:
        super().__init__(session_factory, repositories=repositories)

    async def connection(self) -> AsyncConnection:
        self._ensure_usable()
        return await self._session.connection()

    async def begin_transaction(self) -> AsyncSqlAlchemyTransaction:
        self._ensure_usable()
        if self._transaction is not None:
            return self._transaction  # type: ignore[return-value]
        session_transaction = self._session.get_transaction()
        if session_transaction is None:
            session_transaction = await self._session.begin()
        handle = AsyncSqlAlchemyTransaction(session_transaction, await self._session.connection())
        self._began(handle)
        return handle

    async def commit(self) -> None:
        self._ensure_usable()
        handle = self._transaction
        if handle is None:
            return
        if self._rollback_only:
            await self._rollback(handle)
            raise UnexpectedRollbackError(
                "Transaction was marked rollback-only and has been rolled back"
            )
        try:
            await handle.commit()
        except Exception as exc:
            self._failed(exc)
            await self._discard()
            raise TransactionCommitFailure(f"Commit failed: {exc}", cause=exc) from exc
        self._committed()

    async def rollback(self) -> None:
        self._ensure_usable()
        handle = self._transaction
        if handle is None:
            return
        await self._rollback(handle)

    async def _rollback(self, handle: Any) -> None:
        try:
            await handle.rollback()
        except Exception as exc:
            self._failed(exc)
            await self._discard()
            raise TransactionRollbackFailure(f"Rollback failed: {exc}", cause=exc) from exc
        self._rolled_back()

    async def _discard(self) -> None:
        try:
            await self._session.rollback()
        except Exception as exc:
            logger.warning("uow.discard_failed uow_id=%s exc=%r", self._id, exc)

    async def save_changes(self) -> int:
        self._ensure_usable()
        session = self._session
        count = (
            len(session.new)
            + len(session.deleted)
            + sum(1 for obj in session.dirty if session.sync_session.is_modified(obj))
        )
        implicit = self._transaction is None
        try:
            await session.flush()
            if implicit:
                await session.commit()
        except Exception:
            if implicit:
                await session.rollback()
            raise
        logger.debug("uow.save_changes uow_id=%s count=%d implicit=%s", self._id, count, implicit)
        return count

    async def query(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: AsyncSqlAlchemyTransaction | None = None,
        row_type: Any = None,
        timeout: float | None = None,
    ) -> list[Any]:
        result = await self._run(sql, params, transaction, timeout)
        return [map_row(row, row_type) for row in result.mappings()]

    async def query_first_or_default(
        self,
        sql: str,
        params: Params = None,
        *,
        default: Any = None,
        transaction: AsyncSqlAlchemyTransaction | None = None,
        row_type: Any = None,
        timeout: float | None = None,
    ) -> Any:
        result = await self._run(sql, params, transaction, timeout)
        row = result.mappings().first()
        return default if row is None else map_row(row, row_type)

    async def query_single(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: AsyncSqlAlchemyTransaction | None = None,
        row_type: Any = None,
        timeout: float | None = None,
    ) -> Any:
        result = await self._run(sql, params, transaction, timeout)
        try:
            rows = result.mappings().fetchmany(2)
        finally:
            result.close()
        if len(rows) != 1:
            raise CardinalityError(len(rows), sql=sql)
        return map_row(rows[0], row_type)

    async def execute(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: AsyncSqlAlchemyTransaction | None = None,
        timeout: float | None = None,
    ) -> int:
        """Run a write statement and return the affected row count.

        Outside a unit-of-work transaction the statement runs and commits on a
        connection of its own; pending ORM changes stay in the session.
        """
        if transaction is None and self._transaction is None:
            return await self._execute_alone(sql, params, timeout)
        result = await self._run(sql, params, transaction, timeout)
        return result.rowcount

    async def _execute_alone(self, sql: str, params: Params, timeout: float | None) -> int:
        self._ensure_usable()
        bound = bind_params(params)
        log_statement(logger, self._id, sql, bound)
        async with asyncio.timeout(timeout):
            async with self._engine().begin() as connection:
                result = await connection.execute(statement(sql), bound)
                return result.rowcount

    def _engine(self) -> AsyncEngine:
        bind = self._session.bind
        if isinstance(bind, AsyncEngine):
            return bind
        return AsyncEngine(self._session.sync_session.get_bind())

    async def _run(
        self,
        sql: str,
        params: Params,
        transaction: AsyncSqlAlchemyTransaction | None,
        timeout: float | None,
    ) -> CursorResult[Any]:
        self._ensure_usable()
        bound = bind_params(params)
        log_statement(logger, self._id, sql, bound)
        target: AsyncSession | AsyncConnection = (
            transaction.connection if transaction is not None else self._session
        )
        try:
            async with asyncio.timeout(timeout):
                return await target.execute(statement(sql), bound)  # type: ignore[return-value]
        except (TimeoutError, asyncio.CancelledError) as exc:
            await self._abandon(exc)
            raise

    async def _abandon(self, exc: BaseException) -> None:
        """Drop the transaction an interrupted statement left invalid.

        The driver connection cannot be reused after a cancelled statement, so
        the unit-of-work transaction fails as a whole and the session starts
        over on a fresh connection.
        """
        if self._transaction is not None:
            self._failed(exc)
        else:
            logger.warning("uow.statement_interrupted uow_id=%s exc=%r", self._id, exc)
        await self._discard()

    async def dispose(self) -> None:
        if not self._start_dispose():
            return
        await self._session.close()
        logger.debug("uow.disposed uow_id=%s", self._id)


__all__ = ["AsyncSqlAlchemyUnitOfWork"]
