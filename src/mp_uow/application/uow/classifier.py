"""Application UoW – classify callables as blocking or pending-result.

A callable is *pending-result* when calling it hands back work that is not
finished yet: a coroutine function, or a function whose declared return type
exposes the awaitable protocol (``__await__``) or the future protocol
(``add_done_callback`` + ``done`` + ``result``). Everything else, including
unannotated functions, is *blocking*.

The decision is taken from the declaration only, once per function, so the
interceptor can bind the right wrapper when a proxy is built instead of
probing return values on every call.
"""
from __future__ import annotations

import concurrent.futures
import functools
import inspect
import typing
from enum import Enum
from typing import Any, Callable

_FUTURE_CAPABILITIES = ("add_done_callback", "done", "result")


class CallShape(str, Enum):
    BLOCKING = "BLOCKING"
    PENDING_RESULT = "PENDING_RESULT"


def _unwrap(func: Any) -> Any:
    # bound methods, staticmethod/classmethod objects, partials
    func = getattr(func, "__func__", func)
    while isinstance(func, functools.partial):
        func = getattr(func.func, "__func__", func.func)
    return func


def _return_annotation(func: Callable[..., Any]) -> Any:
    try:
        hints = typing.get_type_hints(func)
    except (NameError, TypeError):
        # unresolvable forward references count as "not declared"
        return None
    return hints.get("return")


def is_pending_type(tp: Any) -> bool:
    """Return ``True`` if values of type *tp* represent a pending result."""
    origin = typing.get_origin(tp) or tp
    if not isinstance(origin, type):
        return False
    if hasattr(origin, "__await__"):
        return True
    return all(callable(getattr(origin, name, None)) for name in _FUTURE_CAPABILITIES)


def _classify(func: Callable[..., Any]) -> CallShape:
    if inspect.iscoroutinefunction(func):
        return CallShape.PENDING_RESULT
    if is_pending_type(_return_annotation(func)):
        return CallShape.PENDING_RESULT
    return CallShape.BLOCKING


_classify_cached = functools.lru_cache(maxsize=2048)(_classify)


def classify(func: Callable[..., Any]) -> CallShape:
    """Report whether *func* is a blocking or a pending-result callable."""
    func = _unwrap(func)
    try:
        hash(func)
    except TypeError:
        # e.g. callable dataclass instances with eq=True
        return _classify(func)
    return _classify_cached(func)


def is_coroutine_callable(func: Callable[..., Any]) -> bool:
    return inspect.iscoroutinefunction(_unwrap(func))


def is_pending_result(value: Any) -> bool:
    """Runtime check used to route an object a pending-result call returned."""
    return inspect.isawaitable(value) or isinstance(value, concurrent.futures.Future)


__all__ = ["CallShape", "classify", "is_coroutine_callable", "is_pending_result", "is_pending_type"]
