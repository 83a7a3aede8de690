"""Testing support – fakes for unit of work driven code.

Use the fakes to test services behind a :class:`TransactionalProxy` without
a database::

    from mp_uow.testing import FakeUnitOfWork
    from mp_uow.application.uow import intercept

    uow = FakeUnitOfWork()
    service = intercept(OrderService(uow), uow)
"""

from mp_uow.testing.fakes import (
    FakeAsyncUnitOfWork,
    FakeTransaction,
    FakeUnitOfWork,
    InMemoryRepository,
)

__all__ = [
    "FakeAsyncUnitOfWork",
    "FakeTransaction",
    "FakeUnitOfWork",
    "InMemoryRepository",
]
