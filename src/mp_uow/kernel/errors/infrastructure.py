"""Infrastructure errors – unit of work, transaction and raw SQL failures."""

from __future__ import annotations

from typing import Any

from mp_uow.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class UnitOfWorkError(InfrastructureError):
    """Base for failures raised by a unit of work."""

    default_code = "unit_of_work_error"


class ConstructionError(UnitOfWorkError):
    """The underlying change-tracking context could not be resolved."""

    default_code = "construction_error"


class UnitOfWorkDisposedError(ConstructionError):
    """The unit of work was used after :meth:`dispose`."""

    default_code = "unit_of_work_disposed"

    def __init__(self, uow_id: str, **kwargs: Any) -> None:
        super().__init__(f"Unit of work '{uow_id}' has been disposed", **kwargs)
        self.uow_id = uow_id


class TransactionError(UnitOfWorkError):
    """Base for commit / rollback failures of the ambient transaction."""

    default_code = "transaction_error"


class TransactionCommitFailure(TransactionError):
    """The provider refused to commit the active transaction."""

    default_code = "transaction_commit_failure"


class UnexpectedRollbackError(TransactionCommitFailure):
    """Commit was requested but a nested scope had marked the transaction rollback-only."""

    default_code = "unexpected_rollback"


class TransactionRollbackFailure(TransactionError):
    """The provider failed to roll back the active transaction.

    ``target_error`` holds the business failure that triggered the rollback,
    when there was one.
    """

    default_code = "transaction_rollback_failure"

    def __init__(
        self,
        message: str,
        *,
        target_error: BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.target_error = target_error

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        if self.target_error is not None:
            base["target_error"] = repr(self.target_error)
        return base


class CardinalityError(InfrastructureError):
    """A single-row query returned zero or several rows."""

    default_code = "cardinality_error"

    def __init__(
        self,
        actual: int,
        *,
        expected: int = 1,
        sql: str | None = None,
        **kwargs: Any,
    ) -> None:
        qualifier = "no rows" if actual == 0 else "more than one row"
        super().__init__(f"Expected exactly {expected} row, got {qualifier}", **kwargs)
        self.expected = expected
        self.actual = actual
        self.sql = sql


__all__ = [
    "CardinalityError",
    "ConstructionError",
    "InfrastructureError",
    "TransactionCommitFailure",
    "TransactionError",
    "TransactionRollbackFailure",
    "UnexpectedRollbackError",
    "UnitOfWorkDisposedError",
    "UnitOfWorkError",
]
