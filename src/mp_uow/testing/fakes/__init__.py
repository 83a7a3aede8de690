"""Testing fakes – in-memory doubles for the unit of work ports."""
from mp_uow.testing.fakes.repository import InMemoryRepository
from mp_uow.testing.fakes.unit_of_work import FakeAsyncUnitOfWork, FakeTransaction, FakeUnitOfWork

__all__ = [
    "FakeAsyncUnitOfWork",
    "FakeTransaction",
    "FakeUnitOfWork",
    "InMemoryRepository",
]
