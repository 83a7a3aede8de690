"""SQLAlchemy adapter – state shared by the blocking and asyncio units of work."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, ClassVar

from mp_uow.adapters.sqlalchemy.registry import RepositoryRegistry
from mp_uow.application.uow.cache import RepositoryCache
from mp_uow.kernel.ddd import TransactionHandle, TransactionState
from mp_uow.kernel.errors import ConstructionError, UnitOfWorkDisposedError

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWorkBase:
    """Session ownership, repository lookup and the transaction state machine.

    Subclasses add the I/O: beginning, committing and rolling back the
    transaction, flushing and raw SQL.
    """

    _session_class: ClassVar[type[Any]]
    _repository_class: ClassVar[type[Any]]

    def __init__(
        self,
        session_factory: Callable[[], Any] | None,
        *,
        repositories: RepositoryRegistry | None = None,
    ) -> None:
        if session_factory is None:
            raise ConstructionError("A session factory is required to build a unit of work")
        try:
            session = session_factory()
        except Exception as exc:
            raise ConstructionError(f"Could not create a session: {exc}", cause=exc) from exc
        if not isinstance(session, self._session_class):
            raise ConstructionError(
                f"Session factory returned {type(session).__name__}, "
                f"expected {self._session_class.__name__}"
            )
        self._id = uuid.uuid4().hex
        self._session = session
        self._registry = repositories if repositories is not None else RepositoryRegistry()
        self._repositories = RepositoryCache(self._create_repository)
        self._transaction: TransactionHandle | None = None
        self._state = TransactionState.IDLE
        self._rollback_only = False
        self._disposed = False
        logger.debug("uow.created uow_id=%s session=%s", self._id, type(session).__name__)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def session(self) -> Any:
        self._ensure_usable()
        return self._session

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def current_transaction(self) -> TransactionHandle | None:
        return self._transaction

    @property
    def is_rollback_only(self) -> bool:
        return self._rollback_only

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def repositories(self) -> RepositoryRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    def get_repository(self, entity_type: type[Any], use_custom: bool = False) -> Any:
        """Custom repository when asked for and registered, the generic one otherwise."""
        self._ensure_usable()
        if use_custom:
            custom = self._registry.resolve(entity_type, self._session)
            if custom is not None:
                return custom
        return self._repositories.get(entity_type)

    def _create_repository(self, entity_type: type[Any]) -> Any:
        return self._repository_class(self._session, entity_type)

    # ------------------------------------------------------------------
    # Transaction state machine
    # ------------------------------------------------------------------

    def mark_rollback_only(self) -> None:
        if self._transaction is None:
            return
        if not self._rollback_only:
            logger.debug("uow.rollback_only uow_id=%s", self._id)
        self._rollback_only = True

    def _ensure_usable(self) -> None:
        if self._disposed:
            raise UnitOfWorkDisposedError(self._id)

    def _began(self, handle: TransactionHandle) -> None:
        self._transaction = handle
        self._state = TransactionState.ACTIVE
        self._rollback_only = False
        logger.debug("uow.begin uow_id=%s", self._id)

    def _committed(self) -> None:
        self._transaction = None
        self._state = TransactionState.COMMITTED
        self._rollback_only = False
        logger.debug("uow.commit uow_id=%s", self._id)

    def _rolled_back(self) -> None:
        self._transaction = None
        self._state = TransactionState.ROLLED_BACK
        self._rollback_only = False
        logger.debug("uow.rollback uow_id=%s", self._id)

    def _failed(self, exc: BaseException) -> None:
        self._transaction = None
        self._state = TransactionState.FAILED
        self._rollback_only = False
        logger.error("uow.transaction_failed uow_id=%s exc=%r", self._id, exc)

    def _start_dispose(self) -> bool:
        """Flip the disposed flag; ``False`` when it was already set."""
        if self._disposed:
            return False
        self._disposed = True
        if self._transaction is not None:
            logger.warning(
                "uow.disposed_with_active_transaction uow_id=%s action=rollback",
                self._id,
            )
            self._transaction = None
            self._state = TransactionState.ROLLED_BACK
            self._rollback_only = False
        self._repositories.clear()
        RepositoryRegistry.release(self._session)
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, state={self._state.value})"


__all__ = ["SqlAlchemyUnitOfWorkBase"]
