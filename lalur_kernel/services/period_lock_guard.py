"""
PeriodLockGuard -- accounting period cutoff enforcement for dated records.

Responsibility:
    Decides whether a mutation of a record attributed to a given reference
    date is allowed, given the owning company's current accounting cutoff
    ("Período Contábil").

Architecture position:
    Kernel > Services -- imperative shell.  Invoked explicitly by every write
    path that touches a dated record: single-record services, the bulk import
    pipeline, and status changes.  Record types participate by exposing
    ``company_id`` and ``reference_date`` (see ``domain.dated.DatedRecord``).

Invariants enforced:
    - A mutation is denied iff ``reference_date < cutoff``.  A record dated on
      the cutoff itself is open.
    - Updates check both the stored and the new reference date.
    - With no cutoff set every date is permitted.

Failure modes:
    - PeriodLockViolationError carrying reference_date, cutoff and operation.
    - CompanyNotFoundError when the company id is unknown.
"""

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from lalur_kernel.domain.dated import DatedRecord
from lalur_kernel.exceptions import CompanyNotFoundError, PeriodLockViolationError
from lalur_kernel.logging_config import get_logger
from lalur_kernel.selectors.company_selector import CompanySelector

logger = get_logger("services.period_lock")

OPERATION_CREATE = "create"
OPERATION_UPDATE = "update"
OPERATION_STATUS_CHANGE = "change status of"
OPERATION_IMPORT = "import"


class PeriodLockGuard:
    """
    Explicit capability object guarding dated records.

    Contract:
        ``authorize`` returns None when the mutation is allowed and raises
        otherwise.  The guard never writes.
    """

    def __init__(self, session: Session):
        self._companies = CompanySelector(session)

    def current_cutoff(self, company_id: UUID) -> date | None:
        exists, cutoff = self._companies.get_cutoff(company_id)
        if not exists:
            raise CompanyNotFoundError(company_id)
        return cutoff

    def is_locked(self, company_id: UUID, reference_date: date) -> bool:
        cutoff = self.current_cutoff(company_id)
        return cutoff is not None and reference_date < cutoff

    def authorize(self, company_id: UUID, reference_date: date, operation: str) -> None:
        """
        Permit or deny one operation on a record dated ``reference_date``.

        Raises:
            PeriodLockViolationError: reference_date is before the cutoff.
            CompanyNotFoundError: company does not exist.
        """
        cutoff = self.current_cutoff(company_id)
        if cutoff is not None and reference_date < cutoff:
            logger.warning(
                "period_lock_violation",
                extra={
                    "company_id": str(company_id),
                    "reference_date": reference_date.isoformat(),
                    "cutoff": cutoff.isoformat(),
                    "operation": operation,
                },
            )
            raise PeriodLockViolationError(reference_date, cutoff, operation)

    def authorize_update(
        self, company_id: UUID, original_date: date, new_date: date
    ) -> None:
        """Both the stored and the proposed date must be open."""
        self.authorize(company_id, original_date, OPERATION_UPDATE)
        if new_date != original_date:
            self.authorize(company_id, new_date, OPERATION_UPDATE)

    def authorize_record(self, record: DatedRecord, operation: str) -> None:
        self.authorize(record.company_id, record.reference_date, operation)
