"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer.  All concrete services receive a
    SQLAlchemy ``Session`` that they use via ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or rollback themselves.  The only exception is the bulk
    import pipeline, whose per-row SAVEPOINT/commit unit is its contract.
"""

from abc import ABC
from collections.abc import Callable
from typing import Generic, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lalur_kernel.db.base import Base
from lalur_kernel.exceptions import DuplicateConstraintViolationError

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only (read) methods -- those belong
          in ``lalur_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session

    def _flush_unique(
        self,
        instance: Base,
        entity: str,
        key: str,
        changes: Callable[[], None] | None = None,
    ) -> None:
        """
        Add and flush inside a SAVEPOINT, mapping a uniqueness failure to a
        typed error.

        Duplicate natural keys are never pre-checked; the store decides.  On
        failure the SAVEPOINT rollback leaves the outer transaction usable.
        Edits to an already persistent ``instance`` go in ``changes``: opening
        the SAVEPOINT flushes whatever is pending, so edits made beforehand
        would be written outside it.
        """
        try:
            with self.session.begin_nested():
                if changes is not None:
                    changes()
                self.session.add(instance)
                self.session.flush()
        except IntegrityError as exc:
            raise DuplicateConstraintViolationError(entity, key) from exc
