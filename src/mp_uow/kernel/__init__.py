"""Kernel – framework-agnostic ports and the error hierarchy."""

from mp_uow.kernel.ddd import (
    AsyncRepository,
    AsyncUnitOfWork,
    Repository,
    TransactionHandle,
    TransactionState,
    UnitOfWork,
)
from mp_uow.kernel.errors import (
    ApplicationError,
    BaseError,
    CardinalityError,
    ConstructionError,
    DomainError,
    InfrastructureError,
    NotFoundError,
    TargetInvocationFailure,
    TransactionCommitFailure,
    TransactionError,
    TransactionRollbackFailure,
    UnexpectedRollbackError,
    UnitOfWorkDisposedError,
    UnitOfWorkError,
)

__all__ = [
    "ApplicationError",
    "AsyncRepository",
    "AsyncUnitOfWork",
    "BaseError",
    "CardinalityError",
    "ConstructionError",
    "DomainError",
    "InfrastructureError",
    "NotFoundError",
    "Repository",
    "TargetInvocationFailure",
    "TransactionCommitFailure",
    "TransactionError",
    "TransactionHandle",
    "TransactionRollbackFailure",
    "TransactionState",
    "UnexpectedRollbackError",
    "UnitOfWork",
    "UnitOfWorkDisposedError",
    "UnitOfWorkError",
]
