"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError                  (domain.py)
    │   └── NotFoundError
    ├── ApplicationError             (application.py)
    │   └── TargetInvocationFailure
    └── InfrastructureError          (infrastructure.py)
        ├── CardinalityError
        └── UnitOfWorkError
            ├── ConstructionError
            │   └── UnitOfWorkDisposedError
            └── TransactionError
                ├── TransactionCommitFailure
                │   └── UnexpectedRollbackError
                └── TransactionRollbackFailure
"""

from mp_uow.kernel.errors.application import ApplicationError, TargetInvocationFailure
from mp_uow.kernel.errors.base import BaseError
from mp_uow.kernel.errors.domain import DomainError, NotFoundError
from mp_uow.kernel.errors.infrastructure import (
    CardinalityError,
    ConstructionError,
    InfrastructureError,
    TransactionCommitFailure,
    TransactionError,
    TransactionRollbackFailure,
    UnexpectedRollbackError,
    UnitOfWorkDisposedError,
    UnitOfWorkError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "CardinalityError",
    "ConstructionError",
    "DomainError",
    "InfrastructureError",
    "NotFoundError",
    "TargetInvocationFailure",
    "TransactionCommitFailure",
    "TransactionError",
    "TransactionRollbackFailure",
    "UnexpectedRollbackError",
    "UnitOfWorkDisposedError",
    "UnitOfWorkError",
]
