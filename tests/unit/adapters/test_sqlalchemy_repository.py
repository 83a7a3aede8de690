"""Unit tests for SqlAlchemyRepository over a blocking session."""
from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from sqlalchemy import Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from mp_uow.adapters.sqlalchemy import SqlAlchemyRepository
from mp_uow.kernel.errors import NotFoundError


class Base(DeclarativeBase):
    pass


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sku: Mapped[str] = mapped_column(String(32))
    category: Mapped[str] = mapped_column(String(32), default="misc")


@pytest.fixture()
def session(tmp_path: Any) -> Iterator[Session]:
    engine = create_engine(f"sqlite:///{tmp_path / 'repo.db'}")
    Base.metadata.create_all(engine)
    with Session(engine, expire_on_commit=False) as s:
        yield s
    engine.dispose()


@pytest.fixture()
def repo(session: Session) -> SqlAlchemyRepository[Product]:
    return SqlAlchemyRepository(session, Product)


class TestSqlAlchemyRepository:
    def test_add_and_get(self, session: Session, repo: SqlAlchemyRepository[Product]) -> None:
        added = repo.add(Product(id=1, sku="A-1"))
        session.flush()
        assert repo.get(1) is added

    def test_get_missing_returns_none(self, repo: SqlAlchemyRepository[Product]) -> None:
        assert repo.get(404) is None

    def test_get_or_raise(self, repo: SqlAlchemyRepository[Product]) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            repo.get_or_raise(404)
        assert exc_info.value.resource == "Product"
        assert exc_info.value.identifier == 404

    def test_find_all_paging(self, session: Session, repo: SqlAlchemyRepository[Product]) -> None:
        repo.add_all(Product(id=i, sku=f"S-{i}") for i in range(1, 6))
        session.flush()
        assert [p.id for p in repo.find_all()] == [1, 2, 3, 4, 5]
        assert [p.id for p in repo.find_all(limit=2)] == [1, 2]
        assert [p.id for p in repo.find_all(limit=2, offset=3)] == [4, 5]

    def test_find_by_and_count(self, session: Session, repo: SqlAlchemyRepository[Product]) -> None:
        repo.add_all([
            Product(id=1, sku="A", category="tools"),
            Product(id=2, sku="B", category="toys"),
            Product(id=3, sku="C", category="tools"),
        ])
        session.flush()
        assert sorted(p.id for p in repo.find_by(category="tools")) == [1, 3]
        assert repo.count() == 3

    def test_update_merges_detached_instance(self, session: Session, repo: SqlAlchemyRepository[Product]) -> None:
        repo.add(Product(id=1, sku="old"))
        session.commit()
        session.expunge_all()
        merged = repo.update(Product(id=1, sku="new"))
        session.flush()
        assert merged.sku == "new"
        assert repo.get_or_raise(1).sku == "new"

    def test_remove_and_remove_by_id(self, session: Session, repo: SqlAlchemyRepository[Product]) -> None:
        first = repo.add(Product(id=1, sku="A"))
        repo.add(Product(id=2, sku="B"))
        session.flush()
        repo.remove(first)
        assert repo.remove_by_id(2) is True
        assert repo.remove_by_id(3) is False
        session.flush()
        assert repo.count() == 0
