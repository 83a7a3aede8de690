"""
mp_uow – Declarative unit of work over SQLAlchemy.

Import path convention::

    from mp_uow.kernel.errors import TransactionCommitFailure
    from mp_uow.application.uow import transactional, intercept
    from mp_uow.adapters.sqlalchemy import SqlAlchemyUnitOfWork, SqlAlchemySessionFactory
    from mp_uow.config.settings import UnitOfWorkSettings
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
