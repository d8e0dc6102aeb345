"""
Module: lalur_kernel.selectors.company_selector
Responsibility: Read-only access to companies, their accounting cutoff and
    the cutoff audit trail.
Architecture position: Kernel > Selectors.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from lalur_kernel.models.company import AccountingPeriodAudit, Company
from lalur_kernel.selectors.base import BaseSelector


class CompanySelector(BaseSelector[Company]):
    """Company lookups used by the guard, services and pipelines."""

    def get(self, company_id: UUID) -> Company | None:
        return self.session.get(Company, company_id)

    def get_cutoff(self, company_id: UUID) -> tuple[bool, date | None]:
        """
        Return ``(exists, cutoff)`` for a company.

        ``exists`` is False when the id is unknown; ``cutoff`` is None when no
        Período Contábil has been set yet.
        """
        row = self.session.execute(
            select(Company.accounting_cutoff).where(Company.id == company_id)
        ).first()
        if row is None:
            return False, None
        return True, row[0]

    def audit_history(self, company_id: UUID) -> list[AccountingPeriodAudit]:
        """Cutoff changes, newest first."""
        # new_cutoff strictly increases, so it breaks changed_at ties
        return list(
            self.session.scalars(
                select(AccountingPeriodAudit)
                .where(AccountingPeriodAudit.company_id == company_id)
                .order_by(
                    AccountingPeriodAudit.changed_at.desc(),
                    AccountingPeriodAudit.new_cutoff.desc(),
                )
            )
        )
