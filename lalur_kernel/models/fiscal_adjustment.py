"""
Module: lalur_kernel.models.fiscal_adjustment
Responsibility: ORM persistence for Parte B fiscal adjustments (additions and
    exclusions to the IRPJ/CSLL taxable base).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/enums.py only.

Invariants enforced:
    - The populated account ids match the relationship kind
      (ck_fiscal_adjustment_relationship mirrors adjustment_rules).
    - amount > 0.
    - reference_date is the first day of the reference month.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lalur_kernel.db.base import TrackedBase, UUIDString
from lalur_kernel.domain.dated import first_day_of_month
from lalur_kernel.domain.enums import (
    AdjustmentDirection,
    ApportionmentKind,
    RelationshipKind,
    Status,
)
from lalur_kernel.models.accounts import AdjustmentAccount, LedgerAccount
from lalur_kernel.models.tax_parameter import TaxParameter


class FiscalAdjustment(TrackedBase):
    """A monthly addition or exclusion tied to a tax parameter."""

    __tablename__ = "fiscal_adjustments"

    __table_args__ = (
        CheckConstraint(
            "(relationship_kind = 'LEDGER_ACCOUNT' "
            "AND ledger_account_id IS NOT NULL AND adjustment_account_id IS NULL) OR "
            "(relationship_kind = 'ADJUSTMENT_ACCOUNT' "
            "AND ledger_account_id IS NULL AND adjustment_account_id IS NOT NULL) OR "
            "(relationship_kind = 'BOTH' "
            "AND ledger_account_id IS NOT NULL AND adjustment_account_id IS NOT NULL)",
            name="ck_fiscal_adjustment_relationship",
        ),
        CheckConstraint("amount > 0", name="ck_fiscal_adjustment_positive_amount"),
        CheckConstraint(
            "reference_month BETWEEN 1 AND 12", name="ck_fiscal_adjustment_month"
        ),
        Index(
            "idx_fiscal_adjustment_company_period",
            "company_id", "reference_year", "reference_month",
        ),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("companies.id"), nullable=False
    )

    reference_month: Mapped[int] = mapped_column(Integer, nullable=False)

    reference_year: Mapped[int] = mapped_column(Integer, nullable=False)

    apportionment_kind: Mapped[ApportionmentKind] = mapped_column(
        String(10), nullable=False
    )

    relationship_kind: Mapped[RelationshipKind] = mapped_column(
        String(30), nullable=False
    )

    ledger_account_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("ledger_accounts.id"), nullable=True
    )

    adjustment_account_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("adjustment_accounts.id"), nullable=True
    )

    tax_parameter_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("tax_parameters.id"), nullable=False
    )

    direction: Mapped[AdjustmentDirection] = mapped_column(String(20), nullable=False)

    description: Mapped[str] = mapped_column(String(2000), nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    status: Mapped[Status] = mapped_column(
        String(20), default=Status.ACTIVE, nullable=False
    )

    ledger_account: Mapped["LedgerAccount | None"] = relationship(
        "LedgerAccount", foreign_keys=[ledger_account_id], lazy="joined"
    )

    adjustment_account: Mapped["AdjustmentAccount | None"] = relationship(
        "AdjustmentAccount", foreign_keys=[adjustment_account_id], lazy="joined"
    )

    tax_parameter: Mapped["TaxParameter"] = relationship(
        "TaxParameter", foreign_keys=[tax_parameter_id], lazy="joined"
    )

    @property
    def reference_date(self) -> date:
        return first_day_of_month(self.reference_year, self.reference_month)

    def __repr__(self) -> str:
        return (
            f"<FiscalAdjustment {self.reference_month:02d}/{self.reference_year} "
            f"{self.direction} {self.amount}>"
        )
