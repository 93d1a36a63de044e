"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write-side service.  All concrete services inherit from
    BaseService, receiving a SQLAlchemy ``Session`` that they use via
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell around the pure domain layer.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or rollback themselves.  The caller
      (``session_scope()``, ``run_with_retry()``, or the test harness) owns
      commit/rollback, so a multi-entity write is all-or-nothing.
    - A version conflict detected at flush surfaces as OptimisticLockError,
      never as a raw SQLAlchemy StaleDataError.

Failure modes:
    - If a subclass calls ``session.commit()``, the atomicity of status
      transition + log append (or item insert + total invalidation) is lost.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from garage_kernel.db.base import Base
from garage_kernel.domain.clock import Clock, SystemClock
from garage_kernel.domain.policy import DEFAULT_POLICY, WorkshopPolicy
from garage_kernel.exceptions import EntityNotFoundError, OptimisticLockError

ModelType = TypeVar("ModelType", bound=Base)
AnyModel = TypeVar("AnyModel", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
        - Time comes from the injected Clock, business switches from the
          injected WorkshopPolicy.

    Non-goals:
        - Does NOT provide aggregate reads -- those belong in
          ``garage_kernel/selectors/``.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: WorkshopPolicy | None = None,
    ):
        """
        Initialize the service.

        Args:
            session: SQLAlchemy session for database operations.
            clock: Time source (defaults to SystemClock).
            policy: Business switches (defaults to DEFAULT_POLICY).
        """
        self.session = session
        self.clock = clock or SystemClock()
        self.policy = policy or DEFAULT_POLICY

    def _require(self, model: type[AnyModel], entity_id: int) -> AnyModel:
        """Load ``model`` by primary key or raise EntityNotFoundError."""
        instance = self.session.get(model, entity_id)
        if instance is None:
            raise EntityNotFoundError(model.__name__, entity_id)
        return instance

    def _flush(self, entity_type: str = "", entity_id: int | None = None) -> None:
        """Flush, translating a version mismatch into OptimisticLockError."""
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError(entity_type or "unknown", entity_id or 0) from exc
