"""DDD building blocks – public re-export surface."""

from mp_uow.kernel.ddd.repository import AsyncRepository, Repository
from mp_uow.kernel.ddd.unit_of_work import (
    AsyncUnitOfWork,
    Params,
    TransactionHandle,
    TransactionState,
    UnitOfWork,
)

__all__ = [
    "AsyncRepository",
    "AsyncUnitOfWork",
    "Params",
    "Repository",
    "TransactionHandle",
    "TransactionState",
    "UnitOfWork",
]
