"""
Module: lalur_kernel.selectors.record_selector
Responsibility: Ordered, deterministic selection of ledger entries and fiscal
    adjustments for export and for the parameter timeline.
Architecture position: Kernel > Selectors.

Ordering is total: reference date, then creation time, then id.  Two exports
of the same data always produce the same rows in the same order.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from lalur_kernel.domain.enums import Status
from lalur_kernel.models.fiscal_adjustment import FiscalAdjustment
from lalur_kernel.models.ledger_entry import LedgerEntry
from lalur_kernel.models.tax_parameter import ParameterAssociation
from lalur_kernel.selectors.base import BaseSelector


class RecordSelector(BaseSelector[LedgerEntry]):
    """Read-only queries over dated records."""

    def ledger_entries(
        self,
        company_id: UUID,
        fiscal_year: int,
        start: date | None = None,
        end: date | None = None,
    ) -> list[LedgerEntry]:
        stmt = select(LedgerEntry).where(
            LedgerEntry.company_id == company_id,
            LedgerEntry.fiscal_year == fiscal_year,
            LedgerEntry.status == Status.ACTIVE.value,
        )
        if start is not None:
            stmt = stmt.where(LedgerEntry.reference_date >= start)
        if end is not None:
            stmt = stmt.where(LedgerEntry.reference_date <= end)
        stmt = stmt.order_by(
            LedgerEntry.reference_date,
            LedgerEntry.created_at,
            LedgerEntry.id,
        )
        return list(self.session.scalars(stmt).unique())

    def fiscal_adjustments(self, company_id: UUID, year: int) -> list[FiscalAdjustment]:
        stmt = (
            select(FiscalAdjustment)
            .where(
                FiscalAdjustment.company_id == company_id,
                FiscalAdjustment.reference_year == year,
                FiscalAdjustment.status == Status.ACTIVE.value,
            )
            .order_by(
                FiscalAdjustment.reference_month,
                FiscalAdjustment.created_at,
                FiscalAdjustment.id,
            )
        )
        return list(self.session.scalars(stmt).unique())

    def associations(self, company_id: UUID) -> list[ParameterAssociation]:
        stmt = select(ParameterAssociation).where(
            ParameterAssociation.company_id == company_id
        )
        return list(self.session.scalars(stmt).unique())

    def association(
        self, company_id: UUID, tax_parameter_id: UUID
    ) -> ParameterAssociation | None:
        stmt = select(ParameterAssociation).where(
            ParameterAssociation.company_id == company_id,
            ParameterAssociation.tax_parameter_id == tax_parameter_id,
        )
        return self.session.scalars(stmt).unique().first()
