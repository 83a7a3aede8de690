"""Application UoW – TransactionInterceptor and TransactionalProxy.

The interceptor decides, once per method when a proxy is built, how a call
is forwarded:

* unmarked methods run as-is; blocking failures are wrapped in
  :class:`TargetInvocationFailure`, pending results pass through untouched;
* marked blocking methods run between ``begin_transaction`` and
  ``commit``/``rollback``;
* marked pending-result methods get the commit/rollback chained onto the
  pending result, so it only settles once the transaction is closed.

Only the scope that opened the transaction closes it. A nested scope that
fails marks the transaction rollback-only and lets the failure propagate.
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import dataclasses
import functools
import inspect
from typing import Any, Callable

from mp_uow.application.uow.classifier import CallShape, classify, is_coroutine_callable
from mp_uow.application.uow.decorators import TransactionalMarker, get_marker
from mp_uow.config.validation import ConfigError
from mp_uow.kernel.ddd import AsyncUnitOfWork, UnitOfWork
from mp_uow.kernel.errors import (
    TargetInvocationFailure,
    TransactionError,
    TransactionRollbackFailure,
)
from mp_uow.observability.logging import get_logger

log = get_logger(__name__)

# Failures that already carry transaction-boundary semantics are never re-wrapped.
_PASSTHROUGH_ERRORS = (TargetInvocationFailure, TransactionError)


@dataclasses.dataclass(frozen=True)
class InvocationContext:
    """One interception: which method, with what, in which shape."""

    method_name: str
    qualname: str
    args: tuple[Any, ...]
    kwargs: dict[str, Any]
    shape: CallShape
    marker: TransactionalMarker | None = None


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _should_wrap(exc: BaseException) -> bool:
    return isinstance(exc, Exception) and not isinstance(exc, _PASSTHROUGH_ERRORS)


class TransactionInterceptor:
    """Drive the transaction lifecycle of *uow* around business method calls."""

    def __init__(self, uow: UnitOfWork | AsyncUnitOfWork) -> None:
        self._uow = uow
        self._is_async = isinstance(uow, AsyncUnitOfWork)

    @property
    def unit_of_work(self) -> UnitOfWork | AsyncUnitOfWork:
        return self._uow

    # ------------------------------------------------------------------
    # Wrapper construction
    # ------------------------------------------------------------------

    def wrap(
        self,
        method: Callable[..., Any],
        *,
        implementation: Callable[..., Any] | None = None,
    ) -> Callable[..., Any]:
        """Return the forwarding callable for *method*.

        *implementation* is the function whose metadata decides the wrapping
        (the concrete class attribute); it defaults to *method* itself.
        """
        impl = implementation if implementation is not None else method
        marker = get_marker(impl)
        shape = classify(impl)
        qualname = getattr(impl, "__qualname__", repr(impl))
        name = getattr(impl, "__name__", qualname)
        coroutine = is_coroutine_callable(impl)

        if marker is None:
            return self._passthrough(method, name, qualname, shape, coroutine)

        if self._is_async and not coroutine:
            raise ConfigError(
                f"'{qualname}' is transactional but not a coroutine function; "
                "an asyncio unit of work can only demarcate 'async def' methods"
            )
        if shape is CallShape.BLOCKING:
            return self._blocking(method, name, qualname, marker)
        if coroutine:
            return self._coroutine(method, name, qualname, marker)
        return self._pending(method, name, qualname, marker)

    def proxy(self, target: Any, interface: type[Any] | None = None) -> "TransactionalProxy":
        return TransactionalProxy(target, self, interface=interface)

    def _passthrough(
        self,
        method: Callable[..., Any],
        name: str,
        qualname: str,
        shape: CallShape,
        coroutine: bool,
    ) -> Callable[..., Any]:
        if coroutine:
            return method

        @functools.wraps(method)
        def passthrough_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return method(*args, **kwargs)
            except Exception as exc:
                if not _should_wrap(exc):
                    raise
                raise TargetInvocationFailure(qualname, cause=exc) from exc

        return passthrough_wrapper

    def _blocking(
        self,
        method: Callable[..., Any],
        name: str,
        qualname: str,
        marker: TransactionalMarker,
    ) -> Callable[..., Any]:
        @functools.wraps(method)
        def blocking_wrapper(*args: Any, **kwargs: Any) -> Any:
            ctx = InvocationContext(name, qualname, args, kwargs, CallShape.BLOCKING, marker)
            owns = self._begin(ctx)
            try:
                result = method(*args, **kwargs)
            except BaseException as exc:
                self._abort(ctx, owns, exc)
                if not _should_wrap(exc):
                    raise
                raise TargetInvocationFailure(qualname, cause=exc) from exc
            self._complete(ctx, owns)
            return result

        return blocking_wrapper

    def _coroutine(
        self,
        method: Callable[..., Any],
        name: str,
        qualname: str,
        marker: TransactionalMarker,
    ) -> Callable[..., Any]:
        @functools.wraps(method)
        async def coroutine_wrapper(*args: Any, **kwargs: Any) -> Any:
            ctx = InvocationContext(name, qualname, args, kwargs, CallShape.PENDING_RESULT, marker)
            owns = await self._abegin(ctx)
            try:
                pending = method(*args, **kwargs)
            except BaseException as exc:
                await self._aabort(ctx, owns, exc)
                raise
            return await self._settle(ctx, owns, pending)

        return coroutine_wrapper

    def _pending(
        self,
        method: Callable[..., Any],
        name: str,
        qualname: str,
        marker: TransactionalMarker,
    ) -> Callable[..., Any]:
        @functools.wraps(method)
        def pending_wrapper(*args: Any, **kwargs: Any) -> Any:
            ctx = InvocationContext(name, qualname, args, kwargs, CallShape.PENDING_RESULT, marker)
            owns = self._begin(ctx)
            try:
                pending = method(*args, **kwargs)
            except BaseException as exc:
                self._abort(ctx, owns, exc)
                if not _should_wrap(exc):
                    raise
                raise TargetInvocationFailure(qualname, cause=exc) from exc

            if isinstance(pending, concurrent.futures.Future):
                return self._chain_future(ctx, owns, pending)
            if asyncio.isfuture(pending):
                return asyncio.ensure_future(self._settle(ctx, owns, pending), loop=pending.get_loop())
            if inspect.isawaitable(pending):
                return self._settle(ctx, owns, pending)
            # declared pending but already settled
            self._complete(ctx, owns)
            return pending

        return pending_wrapper

    # ------------------------------------------------------------------
    # Pending-result chaining
    # ------------------------------------------------------------------

    async def _settle(self, ctx: InvocationContext, owns: bool, pending: Any) -> Any:
        try:
            result = await pending
        except BaseException as exc:
            await self._aabort(ctx, owns, exc)
            raise
        await self._acomplete(ctx, owns)
        return result

    def _chain_future(
        self,
        ctx: InvocationContext,
        owns: bool,
        source: concurrent.futures.Future[Any],
    ) -> concurrent.futures.Future[Any]:
        chained: concurrent.futures.Future[Any] = concurrent.futures.Future()

        def _on_source_done(done: concurrent.futures.Future[Any]) -> None:
            failure: BaseException | None
            if done.cancelled():
                failure = concurrent.futures.CancelledError()
            else:
                failure = done.exception()
            try:
                if failure is None:
                    self._complete(ctx, owns)
                else:
                    self._abort(ctx, owns, failure)
            except BaseException as tx_exc:
                if not chained.done():
                    chained.set_exception(tx_exc)
                return
            if chained.done():
                return
            if done.cancelled():
                chained.cancel()
            elif failure is not None:
                chained.set_exception(failure)
            else:
                chained.set_result(done.result())

        def _on_chained_done(done: concurrent.futures.Future[Any]) -> None:
            if done.cancelled():
                source.cancel()

        chained.add_done_callback(_on_chained_done)
        source.add_done_callback(_on_source_done)
        return chained

    # ------------------------------------------------------------------
    # Transaction scope (blocking unit of work)
    # ------------------------------------------------------------------

    def _begin(self, ctx: InvocationContext) -> bool:
        uow = self._uow
        if uow.is_transaction_active:
            log.debug("transaction.join", method=ctx.qualname, uow_id=uow.id)
            return False
        handle = uow.begin_transaction()
        log.info("transaction.begin", method=ctx.qualname, uow_id=uow.id, transaction=id(handle))
        return True

    def _complete(self, ctx: InvocationContext, owns: bool) -> None:
        if not owns:
            return
        log.info("transaction.commit", method=ctx.qualname, uow_id=self._uow.id)
        self._uow.commit()

    def _abort(self, ctx: InvocationContext, owns: bool, exc: BaseException) -> None:
        if not owns:
            log.info("transaction.rollback_only", method=ctx.qualname, uow_id=self._uow.id, error=repr(exc))
            self._uow.mark_rollback_only()
            return
        log.info("transaction.rollback", method=ctx.qualname, uow_id=self._uow.id, error=repr(exc))
        try:
            self._uow.rollback()
        except TransactionRollbackFailure as rollback_exc:
            if rollback_exc.target_error is None:
                rollback_exc.target_error = exc
            raise

    # ------------------------------------------------------------------
    # Transaction scope (either unit of work, from a coroutine)
    # ------------------------------------------------------------------

    async def _abegin(self, ctx: InvocationContext) -> bool:
        uow = self._uow
        if uow.is_transaction_active:
            log.debug("transaction.join", method=ctx.qualname, uow_id=uow.id)
            return False
        handle = await _resolve(uow.begin_transaction())
        log.info("transaction.begin", method=ctx.qualname, uow_id=uow.id, transaction=id(handle))
        return True

    async def _acomplete(self, ctx: InvocationContext, owns: bool) -> None:
        if not owns:
            return
        log.info("transaction.commit", method=ctx.qualname, uow_id=self._uow.id)
        await _resolve(self._uow.commit())

    async def _aabort(self, ctx: InvocationContext, owns: bool, exc: BaseException) -> None:
        if not owns:
            log.info("transaction.rollback_only", method=ctx.qualname, uow_id=self._uow.id, error=repr(exc))
            self._uow.mark_rollback_only()
            return
        log.info("transaction.rollback", method=ctx.qualname, uow_id=self._uow.id, error=repr(exc))
        try:
            await _resolve(self._uow.rollback())
        except TransactionRollbackFailure as rollback_exc:
            if rollback_exc.target_error is None:
                rollback_exc.target_error = exc
            raise


def _public_methods(cls: type[Any]) -> list[str]:
    names: list[str] = []
    for name in dir(cls):
        if name.startswith("_"):
            continue
        attr = inspect.getattr_static(cls, name)
        func = getattr(attr, "__func__", attr)
        if inspect.isfunction(func) or inspect.ismethoddescriptor(attr):
            names.append(name)
    return names


class TransactionalProxy:
    """Forward calls to *target* through a :class:`TransactionInterceptor`.

    Public methods are resolved on the concrete class of *target* (so a marker
    placed on an override wins) and bound once here. With *interface*, only
    the interface's methods are exposed.
    """

    def __init__(
        self,
        target: Any,
        interceptor: TransactionInterceptor,
        *,
        interface: type[Any] | None = None,
    ) -> None:
        self._target = target
        self._interceptor = interceptor
        self._interface = interface
        self._methods: dict[str, Callable[..., Any]] = {}

        impl_cls = type(target)
        names = _public_methods(interface) if interface is not None else _public_methods(impl_cls)
        for name in names:
            try:
                impl_attr = inspect.getattr_static(impl_cls, name)
            except AttributeError:
                raise ConfigError(
                    f"{impl_cls.__name__} does not implement {interface.__name__}.{name}"  # type: ignore[union-attr]
                ) from None
            impl = getattr(impl_attr, "__func__", impl_attr)
            if not callable(impl):
                continue
            self._methods[name] = interceptor.wrap(getattr(target, name), implementation=impl)

    @property
    def interceptor(self) -> TransactionInterceptor:
        return self._interceptor

    def __getattr__(self, name: str) -> Any:
        # only reached for names not found on the proxy itself
        methods = self.__dict__.get("_methods", {})
        if name in methods:
            return methods[name]
        interface = self.__dict__.get("_interface")
        if interface is not None and not name.startswith("_"):
            raise AttributeError(f"{interface.__name__!r} has no method {name!r}")
        return getattr(self.__dict__["_target"], name)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._methods))

    def __repr__(self) -> str:
        return f"TransactionalProxy({self._target!r})"


def intercept(
    target: Any,
    uow: UnitOfWork | AsyncUnitOfWork,
    interface: type[Any] | None = None,
) -> TransactionalProxy:
    """Shortcut for ``TransactionInterceptor(uow).proxy(target, interface)``."""
    return TransactionInterceptor(uow).proxy(target, interface)


__all__ = ["InvocationContext", "TransactionInterceptor", "TransactionalProxy", "intercept"]
