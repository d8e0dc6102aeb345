"""
AccountingPeriodService -- governed changes of a company's accounting cutoff.

Responsibility:
    The only write path for ``Company.accounting_cutoff``.  Validates the new
    cutoff, moves it forward, and appends one audit row in the same flush.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - new cutoff <= today (injected clock).
    - new cutoff >= current cutoff; the cutoff never moves backward.
    - new cutoff != current cutoff; a no-op change is rejected and leaves no
      audit row.
    - Read, compare, write and audit-append happen under ``SELECT ... FOR
      UPDATE`` on the company row, so two concurrent advances serialize.
    - Audit log length equals the number of accepted changes.

Failure modes:
    - CompanyNotFoundError, FutureCutoffError, CutoffRegressionError,
      CutoffUnchangedError.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from lalur_kernel.domain.clock import Clock, SystemClock
from lalur_kernel.exceptions import (
    CompanyNotFoundError,
    CutoffRegressionError,
    CutoffUnchangedError,
    FutureCutoffError,
)
from lalur_kernel.logging_config import get_logger
from lalur_kernel.models.company import AccountingPeriodAudit, Company
from lalur_kernel.selectors.company_selector import CompanySelector
from lalur_kernel.services.base import BaseService

logger = get_logger("services.accounting_period")


class AccountingPeriodService(BaseService[Company]):
    """
    Service for moving the Período Contábil forward.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT touch records dated before the cutoff; locking is
          enforced lazily by PeriodLockGuard on the next mutation.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._companies = CompanySelector(session)

    def _get_company_for_update(self, company_id: UUID) -> Company | None:
        return self.session.execute(
            select(Company).where(Company.id == company_id).with_for_update()
        ).scalar_one_or_none()

    def get_cutoff(self, company_id: UUID) -> date | None:
        exists, cutoff = self._companies.get_cutoff(company_id)
        if not exists:
            raise CompanyNotFoundError(company_id)
        return cutoff

    def update_cutoff(
        self, company_id: UUID, new_cutoff: date, actor_id: UUID
    ) -> AccountingPeriodAudit:
        """
        Advance the company's cutoff to ``new_cutoff``.

        Postconditions:
            - ``company.accounting_cutoff == new_cutoff``.
            - One AccountingPeriodAudit row records previous/new/actor/time.

        Raises:
            CompanyNotFoundError: unknown company.
            FutureCutoffError: new_cutoff is after today.
            CutoffRegressionError: new_cutoff is before the current cutoff.
            CutoffUnchangedError: new_cutoff equals the current cutoff.
        """
        today = self._clock.today()
        if new_cutoff > today:
            raise FutureCutoffError(new_cutoff, today)

        company = self._get_company_for_update(company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)

        previous = company.accounting_cutoff
        if previous is not None:
            if new_cutoff < previous:
                logger.warning(
                    "cutoff_regression_rejected",
                    extra={
                        "company_id": str(company_id),
                        "current_cutoff": previous.isoformat(),
                        "new_cutoff": new_cutoff.isoformat(),
                    },
                )
                raise CutoffRegressionError(previous, new_cutoff)
            if new_cutoff == previous:
                raise CutoffUnchangedError(previous)

        audit = AccountingPeriodAudit(
            company_id=company_id,
            previous_cutoff=previous,
            new_cutoff=new_cutoff,
            changed_by_id=actor_id,
            changed_at=self._clock.now(),
        )
        company.accounting_cutoff = new_cutoff
        company.updated_by_id = actor_id
        self.session.add(audit)
        self.session.flush()

        logger.info(
            "cutoff_updated",
            extra={
                "company_id": str(company_id),
                "previous_cutoff": previous.isoformat() if previous else None,
                "new_cutoff": new_cutoff.isoformat(),
                "actor_id": str(actor_id),
            },
        )
        return audit

    def get_audit_history(self, company_id: UUID) -> list[AccountingPeriodAudit]:
        """Accepted cutoff changes, newest first."""
        if self._companies.get(company_id) is None:
            raise CompanyNotFoundError(company_id)
        return self._companies.audit_history(company_id)
