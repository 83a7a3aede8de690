"""SQLAlchemy adapter – SqlAlchemyUnitOfWork."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable

from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.orm import Session

from mp_uow.adapters.sqlalchemy.base import SqlAlchemyUnitOfWorkBase
from mp_uow.adapters.sqlalchemy.registry import RepositoryRegistry
from mp_uow.adapters.sqlalchemy.repository import SqlAlchemyRepository
from mp_uow.adapters.sqlalchemy.sql import bind_params, log_statement, map_row, statement
from mp_uow.adapters.sqlalchemy.transaction import SqlAlchemyTransaction
from mp_uow.kernel.ddd import Params, UnitOfWork
from mp_uow.kernel.errors import (
    CardinalityError,
    TransactionCommitFailure,
    TransactionRollbackFailure,
    UnexpectedRollbackError,
)

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(SqlAlchemyUnitOfWorkBase, UnitOfWork):
    """Blocking unit of work over one :class:`Session`.

    The ORM flush and raw SQL share the session's connection, so both take
    part in the transaction started by :meth:`begin_transaction`. Not
    thread-safe; use one instance per logical request.

    Example::

        with SqlAlchemyUnitOfWork(session_factory) as uow:
            uow.begin_transaction()
            uow.get_repository(Order).add(order)
            uow.save_changes()
            uow.execute("UPDATE stock SET qty = qty - :n WHERE sku = :sku", {"n": 1, "sku": "A"})
    """

    _session_class = Session
    _repository_class = SqlAlchemyRepository

    def __init__(
        self,
        session_factory: Callable[[], Session] | None,
        *,
        repositories: RepositoryRegistry | None = None,
    ) -> None:
        super().__init__(session_factory, repositories=repositories)

    def connection(self) -> Connection:
        self._ensure_usable()
        return self._session.connection()

    # ------------------------------------------------------------------
    # Transaction
    # ------------------------------------------------------------------

    def begin_transaction(self) -> SqlAlchemyTransaction:
        self._ensure_usable()
        if self._transaction is not None:
            return self._transaction  # type: ignore[return-value]
        # adopt a transaction the session already autobegun
        session_transaction = self._session.get_transaction() or self._session.begin()
        handle = SqlAlchemyTransaction(session_transaction, self._session.connection())
        self._began(handle)
        return handle

    def commit(self) -> None:
        self._ensure_usable()
        handle = self._transaction
        if handle is None:
            return
        if self._rollback_only:
            self._rollback(handle)
            raise UnexpectedRollbackError(
                "Transaction was marked rollback-only and has been rolled back"
            )
        try:
            handle.commit()
        except Exception as exc:
            self._failed(exc)
            self._discard()
            raise TransactionCommitFailure(f"Commit failed: {exc}", cause=exc) from exc
        self._committed()

    def rollback(self) -> None:
        self._ensure_usable()
        handle = self._transaction
        if handle is None:
            return
        self._rollback(handle)

    def _rollback(self, handle: Any) -> None:
        try:
            handle.rollback()
        except Exception as exc:
            self._failed(exc)
            self._discard()
            raise TransactionRollbackFailure(f"Rollback failed: {exc}", cause=exc) from exc
        self._rolled_back()

    def _discard(self) -> None:
        """Best-effort reset of a session whose transaction broke."""
        try:
            self._session.rollback()
        except Exception as exc:
            logger.warning("uow.discard_failed uow_id=%s exc=%r", self._id, exc)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_changes(self) -> int:
        """Flush tracked changes; commit them too when no transaction is active."""
        self._ensure_usable()
        session = self._session
        count = (
            len(session.new)
            + len(session.deleted)
            + sum(1 for obj in session.dirty if session.is_modified(obj))
        )
        implicit = self._transaction is None
        try:
            session.flush()
            if implicit:
                session.commit()
        except Exception:
            if implicit:
                session.rollback()
            raise
        logger.debug("uow.save_changes uow_id=%s count=%d implicit=%s", self._id, count, implicit)
        return count

    # ------------------------------------------------------------------
    # Raw SQL
    # ------------------------------------------------------------------

    def query(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: SqlAlchemyTransaction | None = None,
        row_type: Any = None,
        execution_options: Mapping[str, Any] | None = None,
    ) -> list[Any]:
        result = self._run(sql, params, transaction, execution_options)
        return [map_row(row, row_type) for row in result.mappings()]

    def query_first_or_default(
        self,
        sql: str,
        params: Params = None,
        *,
        default: Any = None,
        transaction: SqlAlchemyTransaction | None = None,
        row_type: Any = None,
        execution_options: Mapping[str, Any] | None = None,
    ) -> Any:
        result = self._run(sql, params, transaction, execution_options)
        row = result.mappings().first()
        return default if row is None else map_row(row, row_type)

    def query_single(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: SqlAlchemyTransaction | None = None,
        row_type: Any = None,
        execution_options: Mapping[str, Any] | None = None,
    ) -> Any:
        result = self._run(sql, params, transaction, execution_options)
        try:
            rows = result.mappings().fetchmany(2)
        finally:
            result.close()
        if len(rows) != 1:
            raise CardinalityError(len(rows), sql=sql)
        return map_row(rows[0], row_type)

    def execute(
        self,
        sql: str,
        params: Params = None,
        *,
        transaction: SqlAlchemyTransaction | None = None,
        execution_options: Mapping[str, Any] | None = None,
    ) -> int:
        """Run a write statement and return the affected row count.

        Outside a unit-of-work transaction the statement runs and commits on a
        connection of its own; pending ORM changes stay in the session until
        :meth:`save_changes`.
        """
        if transaction is None and self._transaction is None:
            return self._execute_alone(sql, params, execution_options)
        return self._run(sql, params, transaction, execution_options).rowcount

    def _execute_alone(
        self,
        sql: str,
        params: Params,
        execution_options: Mapping[str, Any] | None,
    ) -> int:
        self._ensure_usable()
        bound = bind_params(params)
        log_statement(logger, self._id, sql, bound)
        # engine.begin() commits on exit and rolls back on error
        with self._session.get_bind().begin() as connection:
            result = connection.execute(
                statement(sql), bound, execution_options=dict(execution_options or {})
            )
            return result.rowcount

    def _run(
        self,
        sql: str,
        params: Params,
        transaction: SqlAlchemyTransaction | None,
        execution_options: Mapping[str, Any] | None,
    ) -> CursorResult[Any]:
        self._ensure_usable()
        bound = bind_params(params)
        log_statement(logger, self._id, sql, bound)
        target: Session | Connection = transaction.connection if transaction is not None else self._session
        return target.execute(statement(sql), bound, execution_options=dict(execution_options or {}))  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        if not self._start_dispose():
            return
        # close() rolls back whatever is still open and releases the connection
        self._session.close()
        logger.debug("uow.disposed uow_id=%s", self._id)


__all__ = ["SqlAlchemyUnitOfWork"]
