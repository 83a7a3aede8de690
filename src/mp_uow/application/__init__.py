"""Application – unit of work demarcation for business services."""

from mp_uow.application.uow import (
    AsyncUnitOfWork,
    RepositoryCache,
    TransactionInterceptor,
    TransactionalProxy,
    UnitOfWork,
    intercept,
    transactional,
)

__all__ = [
    "AsyncUnitOfWork",
    "RepositoryCache",
    "TransactionInterceptor",
    "TransactionalProxy",
    "UnitOfWork",
    "intercept",
    "transactional",
]
