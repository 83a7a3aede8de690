"""SQLAlchemy adapter – transaction handles referenced by a unit of work."""
from __future__ import annotations

from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSessionTransaction
from sqlalchemy.orm import SessionTransaction


class SqlAlchemyTransaction:
    """Root :class:`SessionTransaction` plus the connection it is bound to.

    ``connection`` is what raw SQL runs on when a caller passes this handle
    explicitly; it is the same connection the ORM flushes through.
    """

    def __init__(self, session_transaction: SessionTransaction, connection: Connection) -> None:
        self._transaction = session_transaction
        self._connection = connection

    @property
    def session_transaction(self) -> SessionTransaction:
        return self._transaction

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def is_active(self) -> bool:
        return self._transaction.is_active

    def commit(self) -> None:
        self._transaction.commit()

    def rollback(self) -> None:
        self._transaction.rollback()

    def __repr__(self) -> str:
        return f"SqlAlchemyTransaction(active={self.is_active})"


class AsyncSqlAlchemyTransaction:
    """Asyncio counterpart of :class:`SqlAlchemyTransaction`."""

    def __init__(self, session_transaction: AsyncSessionTransaction, connection: AsyncConnection) -> None:
        self._transaction = session_transaction
        self._connection = connection

    @property
    def session_transaction(self) -> AsyncSessionTransaction:
        return self._transaction

    @property
    def connection(self) -> AsyncConnection:
        return self._connection

    @property
    def is_active(self) -> bool:
        return self._transaction.is_active

    async def commit(self) -> None:
        await self._transaction.commit()

    async def rollback(self) -> None:
        await self._transaction.rollback()

    def __repr__(self) -> str:
        return f"AsyncSqlAlchemyTransaction(active={self.is_active})"


__all__ = ["AsyncSqlAlchemyTransaction", "SqlAlchemyTransaction"]
