"""Unit tests for AsyncSqlAlchemyUnitOfWork.

Uses a SQLite file database via *aiosqlite*; each test builds and disposes its
engine inside one ``asyncio.run`` call.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import pytest
from sqlalchemy import Integer, String, event
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from mp_uow.adapters.sqlalchemy import (
    AsyncSqlAlchemyRepository,
    AsyncSqlAlchemySessionFactory,
    AsyncSqlAlchemyTransaction,
    AsyncSqlAlchemyUnitOfWork,
    RepositoryRegistry,
)
from mp_uow.application.uow import intercept, transactional
from mp_uow.kernel.ddd import TransactionState
from mp_uow.kernel.errors import (
    CardinalityError,
    ConstructionError,
    UnexpectedRollbackError,
    UnitOfWorkDisposedError,
)

# ---------------------------------------------------------------------------
# ORM model and helpers
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class Entry(Base):
    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    memo: Mapped[str] = mapped_column(String(100), default="")
    amount: Mapped[int] = mapped_column(Integer, default=0)


class EntryRepository(AsyncSqlAlchemyRepository[Entry]):
    async def total(self) -> int:
        return sum(e.amount for e in await self.find_all())


# a few million recursive steps; comfortably longer than the 10 ms timeouts below
_SLOW_COUNT = (
    "WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c WHERE x < 3000000) "
    "SELECT COUNT(*) FROM c"
)

Body = Callable[[AsyncSqlAlchemySessionFactory], Awaitable[Any]]


def _run(tmp_path: Any, body: Body) -> Any:
    async def main() -> Any:
        factory = AsyncSqlAlchemySessionFactory(f"sqlite+aiosqlite:///{tmp_path / 'uow.db'}")
        async with factory.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        try:
            return await body(factory)
        finally:
            await factory.dispose()

    return asyncio.run(main())


async def _count(factory: AsyncSqlAlchemySessionFactory) -> int:
    async with AsyncSqlAlchemyUnitOfWork(factory) as counter:
        return await counter.query_single("SELECT COUNT(*) FROM entries", row_type=int)


async def _seed(uow: AsyncSqlAlchemyUnitOfWork, *rows: tuple[int, int]) -> None:
    for row_id, amount in rows:
        await uow.execute(
            "INSERT INTO entries (id, memo, amount) VALUES (:id, 'seed', :amount)",
            {"id": row_id, "amount": amount},
        )


class Commits:
    def __init__(self, factory: AsyncSqlAlchemySessionFactory) -> None:
        self.count = 0
        event.listen(factory.engine.sync_engine, "commit", self._on_commit)

    def _on_commit(self, conn: Any) -> None:
        self.count += 1


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


class LedgerService:
    def __init__(self, uow: AsyncSqlAlchemyUnitOfWork) -> None:
        self.uow = uow

    @transactional
    async def record(self, entry_id: int, amount: int) -> int:
        await self.uow.get_repository(Entry).add(Entry(id=entry_id, amount=amount))
        await self.uow.save_changes()
        await self.uow.execute("UPDATE entries SET amount = amount * 2 WHERE id = :id", {"id": entry_id})
        return entry_id

    @transactional
    async def record_and_fail(self, entry_id: int) -> int:
        await self.uow.execute("INSERT INTO entries (id, memo, amount) VALUES (:id, 'x', 1)", {"id": entry_id})
        raise ValueError("ledger closed")


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_rejects_blocking_session(self) -> None:
        with pytest.raises(ConstructionError):
            AsyncSqlAlchemyUnitOfWork(lambda: Session())  # type: ignore[arg-type, return-value]

    def test_rejects_missing_factory(self) -> None:
        with pytest.raises(ConstructionError):
            AsyncSqlAlchemyUnitOfWork(None)


class TestTransactions:
    def test_intercepted_coroutine_commits_once(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> tuple[int, int]:
            commits = Commits(factory)
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                ledger = intercept(LedgerService(uow), uow)
                assert await ledger.record(1, 10) == 1
                assert uow.has_committed is True
                observed = commits.count
                amount = await uow.query_single("SELECT amount FROM entries WHERE id = 1", row_type=int)
            return observed, amount

        assert _run(tmp_path, body) == (1, 20)

    def test_intercepted_failure_rolls_back(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> int:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                ledger = intercept(LedgerService(uow), uow)
                with pytest.raises(ValueError, match="ledger closed"):
                    await ledger.record_and_fail(1)
                assert uow.state is TransactionState.ROLLED_BACK
            return await _count(factory)

        assert _run(tmp_path, body) == 0

    def test_begin_is_idempotent(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> None:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                handle = await uow.begin_transaction()
                assert isinstance(handle, AsyncSqlAlchemyTransaction)
                assert isinstance(handle.connection, AsyncConnection)
                assert await uow.begin_transaction() is handle
                assert handle.is_active is True
                await uow.rollback()
                assert uow.current_transaction is None

        _run(tmp_path, body)

    def test_explicit_handle_shares_the_transaction(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> int:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                handle = await uow.begin_transaction()
                await uow.execute("INSERT INTO entries (id, memo, amount) VALUES (1, 'a', 1)", transaction=handle)
                await uow.get_repository(Entry).add(Entry(id=2, amount=2))
                await uow.save_changes()
                assert await uow.query("SELECT id FROM entries ORDER BY id", transaction=handle) == [
                    {"id": 1},
                    {"id": 2},
                ]
                await uow.rollback()
            return await _count(factory)

        assert _run(tmp_path, body) == 0

    def test_rollback_only_commit_raises(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> int:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                await uow.begin_transaction()
                await _seed(uow, (1, 5))
                uow.mark_rollback_only()
                with pytest.raises(UnexpectedRollbackError):
                    await uow.commit()
            return await _count(factory)

        assert _run(tmp_path, body) == 0


class TestPersistenceAndSql:
    def test_save_changes_outside_transaction_commits(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> tuple[int, int]:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                await uow.get_repository(Entry).add_all([Entry(id=1), Entry(id=2)])
                saved = await uow.save_changes()
            return saved, await _count(factory)

        assert _run(tmp_path, body) == (2, 2)

    def test_execute_outside_transaction_autocommits(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> tuple[int, int]:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                await _seed(uow, (1, 10))
                affected = await uow.execute("UPDATE entries SET amount = 0", timeout=5)
            return affected, await _count(factory)

        assert _run(tmp_path, body) == (1, 1)

    def test_execute_outside_transaction_leaves_pending_changes(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> tuple[int, list[int]]:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                await uow.get_repository(Entry).add(Entry(id=1, amount=1))
                affected = await uow.execute("INSERT INTO entries (id, memo, amount) VALUES (2, 'raw', 2)")
            async with AsyncSqlAlchemyUnitOfWork(factory) as reader:
                ids = await reader.query("SELECT id FROM entries ORDER BY id", row_type=int)
            return affected, ids

        assert _run(tmp_path, body) == (1, [2])

    def test_queries(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> None:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                await _seed(uow, (1, 10), (2, 20))
                rows = await uow.query("SELECT id, amount FROM entries ORDER BY id", timeout=5)
                assert rows == [{"id": 1, "amount": 10}, {"id": 2, "amount": 20}]
                assert await uow.query_first_or_default(
                    "SELECT amount FROM entries WHERE id = :id", {"id": 2}, row_type=int
                ) == 20
                assert await uow.query_first_or_default(
                    "SELECT amount FROM entries WHERE id = :id", {"id": 9}, default=-1
                ) == -1
                with pytest.raises(CardinalityError) as exc_info:
                    await uow.query_single("SELECT id FROM entries")
                assert exc_info.value.actual == 2
                with pytest.raises(CardinalityError):
                    await uow.query_single("SELECT id FROM entries WHERE id = 9")

        _run(tmp_path, body)


class TestRepositoriesAndDispose:
    def test_repository_operations(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> None:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                repo = uow.get_repository(Entry)
                assert uow.get_repository(Entry) is repo
                await repo.add_all([Entry(id=i, memo=f"m{i}", amount=i) for i in range(1, 6)])
                await uow.save_changes()
                assert await repo.count() == 5
                assert [e.id for e in await repo.find_all(limit=2, offset=1)] == [2, 3]
                assert [e.id for e in await repo.find_by(memo="m4")] == [4]
                assert await repo.remove_by_id(5) is True
                assert await repo.remove_by_id(99) is False
                await uow.save_changes()
                assert await repo.count() == 4

        _run(tmp_path, body)

    def test_custom_repository(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> int:
            registry = RepositoryRegistry()
            registry.register(Entry, EntryRepository)
            async with AsyncSqlAlchemyUnitOfWork(factory, repositories=registry) as uow:
                await _seed(uow, (1, 10), (2, 5))
                repo = uow.get_repository(Entry, use_custom=True)
                assert isinstance(repo, EntryRepository)
                assert uow.get_repository(Entry, use_custom=True) is repo
                return await repo.total()

        assert _run(tmp_path, body) == 15

    def test_dispose(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> int:
            uow = AsyncSqlAlchemyUnitOfWork(factory)
            await uow.begin_transaction()
            await _seed(uow, (1, 1))
            await uow.dispose()
            await uow.dispose()
            assert uow.disposed is True
            assert uow.state is TransactionState.ROLLED_BACK
            with pytest.raises(UnitOfWorkDisposedError):
                await uow.query("SELECT 1")
            with pytest.raises(UnitOfWorkDisposedError):
                uow.get_repository(Entry)
            return await _count(factory)

        assert _run(tmp_path, body) == 0


class TestInterruptedStatements:
    def test_timeout_fails_the_active_transaction(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> tuple[int, int]:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                await uow.begin_transaction()
                await _seed(uow, (1, 10))
                with pytest.raises(TimeoutError):
                    await uow.query_single(_SLOW_COUNT, row_type=int, timeout=0.01)
                assert uow.state is TransactionState.FAILED
                assert uow.is_transaction_active is False
                assert uow.current_transaction is None
                # the session is usable again, on a fresh connection
                visible = await uow.query_single("SELECT COUNT(*) FROM entries", row_type=int)
            return visible, await _count(factory)

        assert _run(tmp_path, body) == (0, 0)

    def test_timeout_outside_transaction_keeps_session_usable(self, tmp_path: Any) -> None:
        async def body(factory: AsyncSqlAlchemySessionFactory) -> int:
            async with AsyncSqlAlchemyUnitOfWork(factory) as uow:
                await _seed(uow, (1, 10))
                with pytest.raises(TimeoutError):
                    await uow.query(_SLOW_COUNT, timeout=0.01)
                assert uow.state is TransactionState.IDLE
                return await uow.query_single("SELECT COUNT(*) FROM entries", row_type=int)

        assert _run(tmp_path, body) == 1
