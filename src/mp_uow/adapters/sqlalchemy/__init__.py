"""SQLAlchemy adapter – units of work, transactions, repositories and registration."""
from mp_uow.adapters.sqlalchemy.async_uow import AsyncSqlAlchemyUnitOfWork
from mp_uow.adapters.sqlalchemy.registration import UnitOfWorkRegistration, default_registration
from mp_uow.adapters.sqlalchemy.registry import RepositoryRegistry
from mp_uow.adapters.sqlalchemy.repository import AsyncSqlAlchemyRepository, SqlAlchemyRepository
from mp_uow.adapters.sqlalchemy.session import AsyncSqlAlchemySessionFactory, SqlAlchemySessionFactory
from mp_uow.adapters.sqlalchemy.transaction import AsyncSqlAlchemyTransaction, SqlAlchemyTransaction
from mp_uow.adapters.sqlalchemy.uow import SqlAlchemyUnitOfWork

__all__ = [
    "AsyncSqlAlchemyRepository",
    "AsyncSqlAlchemySessionFactory",
    "AsyncSqlAlchemyTransaction",
    "AsyncSqlAlchemyUnitOfWork",
    "RepositoryRegistry",
    "SqlAlchemyRepository",
    "SqlAlchemySessionFactory",
    "SqlAlchemyTransaction",
    "SqlAlchemyUnitOfWork",
    "UnitOfWorkRegistration",
    "default_registration",
]
