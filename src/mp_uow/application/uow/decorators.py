"""Application UoW – the ``@transactional`` marker.

The decorator does not wrap anything: it only attaches a read-only
:class:`TransactionalMarker` that :class:`TransactionInterceptor` looks up on
the concrete implementation method when a proxy is built.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Callable, TypeVar, overload

F = TypeVar("F", bound=Callable[..., Any])

_MARKER_ATTRIBUTE = "__mp_uow_transactional__"


@dataclasses.dataclass(frozen=True)
class TransactionalMarker:
    """Metadata: the decorated method must run inside a transaction."""

    qualname: str


@overload
def transactional(func: F) -> F: ...


@overload
def transactional(func: None = None) -> Callable[[F], F]: ...


def transactional(func: Any = None) -> Any:
    """Mark a business method as transactional.

    Usable bare or called::

        class OrderService:
            @transactional
            def place(self, order: Order) -> None: ...

            @transactional()
            async def cancel(self, order_id: int) -> None: ...
    """

    def decorator(fn: F) -> F:
        target = getattr(fn, "__func__", fn)
        setattr(target, _MARKER_ATTRIBUTE, TransactionalMarker(qualname=target.__qualname__))
        return fn

    if func is None:
        return decorator
    return decorator(func)


def get_marker(func: Callable[..., Any]) -> TransactionalMarker | None:
    func = getattr(func, "__func__", func)
    marker = getattr(func, _MARKER_ATTRIBUTE, None)
    return marker if isinstance(marker, TransactionalMarker) else None


def is_transactional(func: Callable[..., Any]) -> bool:
    return get_marker(func) is not None


__all__ = ["TransactionalMarker", "get_marker", "is_transactional", "transactional"]
