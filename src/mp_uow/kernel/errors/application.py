"""Application-layer errors – failures surfaced at the business-method boundary."""

from __future__ import annotations

from typing import Any

from mp_uow.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class TargetInvocationFailure(ApplicationError):
    """A wrapped business method raised.

    The original exception is kept on ``cause`` and ``__cause__`` (never just
    its message), so the full chain survives the transaction boundary.
    """

    default_code = "target_invocation_failure"

    def __init__(
        self,
        method: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        cause = kwargs.get("cause")
        if message is None:
            message = f"'{method}' failed"
            if cause is not None:
                message = f"'{method}' failed: {cause}"
        super().__init__(message, **kwargs)
        self.method = method


__all__ = ["ApplicationError", "TargetInvocationFailure"]
