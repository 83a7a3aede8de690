"""Application UnitOfWork – ports re-export, ``@transactional`` marker and interceptor."""
from mp_uow.kernel.ddd import AsyncUnitOfWork, TransactionState, UnitOfWork
from mp_uow.application.uow.cache import RepositoryCache
from mp_uow.application.uow.classifier import CallShape, classify, is_pending_result
from mp_uow.application.uow.decorators import (
    TransactionalMarker,
    get_marker,
    is_transactional,
    transactional,
)
from mp_uow.application.uow.interceptor import (
    InvocationContext,
    TransactionInterceptor,
    TransactionalProxy,
    intercept,
)

__all__ = [
    "AsyncUnitOfWork",
    "CallShape",
    "InvocationContext",
    "RepositoryCache",
    "TransactionInterceptor",
    "TransactionState",
    "TransactionalMarker",
    "TransactionalProxy",
    "UnitOfWork",
    "classify",
    "get_marker",
    "intercept",
    "is_pending_result",
    "is_transactional",
    "transactional",
]
