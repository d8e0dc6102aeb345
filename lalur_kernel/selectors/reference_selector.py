"""
Module: lalur_kernel.selectors.reference_selector
Responsibility: Code -> record resolution for every code-like import field
    (ledger account, adjustment account, reference account, tax parameter).
Architecture position: Kernel > Selectors.

Every lookup is scoped the way the owning record is keyed: ledger accounts by
(company, code, fiscal year), adjustment accounts by (company, code, base
year), reference accounts by (code, validity year), tax parameters by code.
An unknown code returns None; callers turn that into UNRESOLVED_REFERENCE.
"""

from uuid import UUID

from sqlalchemy import or_, select

from lalur_kernel.domain.dtos import LedgerAccountInfo
from lalur_kernel.models.accounts import (
    AdjustmentAccount,
    LedgerAccount,
    ReferenceAccount,
)
from lalur_kernel.models.tax_parameter import TaxParameter
from lalur_kernel.selectors.base import BaseSelector


class ReferenceSelector(BaseSelector[LedgerAccount]):
    """Read-only resolver for account and parameter codes."""

    def ledger_account(self, account_id: UUID) -> LedgerAccountInfo | None:
        account = self.session.get(LedgerAccount, account_id)
        if account is None:
            return None
        return LedgerAccountInfo.from_model(account)

    def ledger_account_by_code(
        self, company_id: UUID, code: str, fiscal_year: int
    ) -> LedgerAccountInfo | None:
        account = self.session.scalars(
            select(LedgerAccount).where(
                LedgerAccount.company_id == company_id,
                LedgerAccount.code == code,
                LedgerAccount.fiscal_year == fiscal_year,
            )
        ).first()
        if account is None:
            return None
        return LedgerAccountInfo.from_model(account)

    def ledger_account_exists(self, company_id: UUID, code: str, fiscal_year: int) -> bool:
        return self.ledger_account_by_code(company_id, code, fiscal_year) is not None

    def adjustment_account_by_code(
        self, company_id: UUID, code: str, base_year: int
    ) -> AdjustmentAccount | None:
        return self.session.scalars(
            select(AdjustmentAccount).where(
                AdjustmentAccount.company_id == company_id,
                AdjustmentAccount.code == code,
                AdjustmentAccount.base_year == base_year,
            )
        ).first()

    def reference_account_by_code(
        self, code: str, year: int | None = None
    ) -> ReferenceAccount | None:
        """
        Resolve an RFB reference account.

        With a year, a row valid for exactly that year wins over a row without
        a validity year.
        """
        stmt = select(ReferenceAccount).where(ReferenceAccount.code == code)
        if year is not None:
            stmt = stmt.where(
                or_(
                    ReferenceAccount.validity_year == year,
                    ReferenceAccount.validity_year.is_(None),
                )
            )
        candidates = list(self.session.scalars(stmt))
        if not candidates:
            return None
        candidates.sort(key=lambda ra: ra.validity_year is None)
        return candidates[0]

    def reference_account_exists(self, code: str, validity_year: int | None) -> bool:
        stmt = select(ReferenceAccount.id).where(ReferenceAccount.code == code)
        if validity_year is None:
            stmt = stmt.where(ReferenceAccount.validity_year.is_(None))
        else:
            stmt = stmt.where(ReferenceAccount.validity_year == validity_year)
        return self.session.execute(stmt).first() is not None

    def tax_parameter_by_code(self, code: str) -> TaxParameter | None:
        return self.session.scalars(
            select(TaxParameter).where(TaxParameter.code == code)
        ).first()

    def tax_parameters_by_ids(self, ids: list[UUID]) -> dict[UUID, TaxParameter]:
        if not ids:
            return {}
        rows = self.session.scalars(select(TaxParameter).where(TaxParameter.id.in_(ids)))
        return {row.id: row for row in rows}
