"""Unit tests for the blocking / pending-result classifier."""

from __future__ import annotations

import asyncio
import concurrent.futures
import dataclasses
import functools
from collections.abc import Awaitable, Coroutine
from typing import Any

from mp_uow.application.uow.classifier import (
    CallShape,
    classify,
    is_coroutine_callable,
    is_pending_result,
    is_pending_type,
)


# ---------------------------------------------------------------------------
# Declarations under test (module level so annotations resolve)
# ---------------------------------------------------------------------------


class Ticket:
    """Custom future-like type exposing the future capability set."""

    def add_done_callback(self, fn: Any) -> None: ...

    def done(self) -> bool:
        return True

    def result(self) -> int:
        return 1


class HalfTicket:
    def done(self) -> bool:
        return True


def plain() -> int:
    return 1


def unannotated():  # type: ignore[no-untyped-def]
    return 1


async def coro() -> int:
    return 1


def returns_awaitable() -> Awaitable[int]: ...


def returns_coroutine() -> Coroutine[Any, Any, int]: ...


def returns_asyncio_future() -> asyncio.Future[int]: ...


def returns_concurrent_future() -> concurrent.futures.Future[int]: ...


def returns_ticket() -> Ticket: ...


def returns_half_ticket() -> HalfTicket: ...


def returns_unknown() -> "DoesNotExist":  # type: ignore[name-defined]  # noqa: F821
    ...


class Service:
    async def run(self) -> None: ...

    def compute(self) -> int:
        return 1


@dataclasses.dataclass
class PriceRule:
    """Callable with value equality, hence unhashable."""

    factor: int

    def __call__(self, amount: int) -> int:
        return amount * self.factor


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


class TestClassify:
    def test_plain_function_is_blocking(self) -> None:
        assert classify(plain) is CallShape.BLOCKING

    def test_unannotated_function_is_blocking(self) -> None:
        assert classify(unannotated) is CallShape.BLOCKING

    def test_coroutine_function_is_pending(self) -> None:
        assert classify(coro) is CallShape.PENDING_RESULT

    def test_awaitable_annotation_is_pending(self) -> None:
        assert classify(returns_awaitable) is CallShape.PENDING_RESULT

    def test_coroutine_annotation_is_pending(self) -> None:
        assert classify(returns_coroutine) is CallShape.PENDING_RESULT

    def test_asyncio_future_annotation_is_pending(self) -> None:
        assert classify(returns_asyncio_future) is CallShape.PENDING_RESULT

    def test_concurrent_future_annotation_is_pending(self) -> None:
        assert classify(returns_concurrent_future) is CallShape.PENDING_RESULT

    def test_custom_future_like_type_is_pending(self) -> None:
        assert classify(returns_ticket) is CallShape.PENDING_RESULT

    def test_partial_future_capability_is_blocking(self) -> None:
        assert classify(returns_half_ticket) is CallShape.BLOCKING

    def test_unresolvable_annotation_is_blocking(self) -> None:
        assert classify(returns_unknown) is CallShape.BLOCKING

    def test_bound_methods_classify_like_their_function(self) -> None:
        svc = Service()
        assert classify(svc.run) is CallShape.PENDING_RESULT
        assert classify(svc.compute) is CallShape.BLOCKING

    def test_partial_is_unwrapped(self) -> None:
        assert classify(functools.partial(coro)) is CallShape.PENDING_RESULT

    def test_result_is_stable(self) -> None:
        assert classify(returns_ticket) is classify(returns_ticket)

    def test_unhashable_callable_is_classified(self) -> None:
        rule = PriceRule(2)
        assert classify(rule) is CallShape.BLOCKING
        assert classify(rule) is CallShape.BLOCKING


class TestHelpers:
    def test_is_pending_type(self) -> None:
        assert is_pending_type(asyncio.Task) is True
        assert is_pending_type(int) is False
        assert is_pending_type(None) is False

    def test_is_coroutine_callable(self) -> None:
        assert is_coroutine_callable(Service().run) is True
        assert is_coroutine_callable(plain) is False

    def test_is_pending_result_for_values(self) -> None:
        future: concurrent.futures.Future[int] = concurrent.futures.Future()
        assert is_pending_result(future) is True
        assert is_pending_result(42) is False

        async def _run() -> bool:
            pending = coro()
            try:
                return is_pending_result(pending)
            finally:
                await pending

        assert asyncio.run(_run()) is True
