"""
Module: lalur_kernel.models.accounts
Responsibility: ORM persistence for the three account catalogs a record can
    point at: RFB reference accounts (Conta Referencial), the company chart of
    accounts (plano de contas), and Parte B adjustment accounts.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/enums.py only.

Invariants enforced:
    - LedgerAccount is unique per (company, code, fiscal_year).
    - AdjustmentAccount is unique per (company, code, base_year).
    - ReferenceAccount is unique per (code, validity_year); a NULL year is
      unique per code.
    - LedgerAccount.level is between 1 and 5.

Failure modes:
    - IntegrityError on duplicate natural keys, surfaced by the services as
      DuplicateConstraintViolationError.
"""

from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lalur_kernel.db.base import TrackedBase, UUIDString
from lalur_kernel.domain.enums import (
    AccountClass,
    AccountNature,
    AccountType,
    Status,
    TaxKind,
)


class ReferenceAccount(TrackedBase):
    """RFB reference account that company accounts map onto."""

    __tablename__ = "reference_accounts"

    __table_args__ = (
        UniqueConstraint("code", "validity_year", name="uq_reference_account_code_year"),
        # NULL validity years never collide in the constraint above
        Index(
            "uq_reference_account_code_any_year",
            "code",
            unique=True,
            postgresql_where=text("validity_year IS NULL"),
            sqlite_where=text("validity_year IS NULL"),
        ),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    description: Mapped[str] = mapped_column(String(1000), nullable=False)

    # None means valid for every year
    validity_year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[Status] = mapped_column(
        String(20), default=Status.ACTIVE, nullable=False
    )

    def __repr__(self) -> str:
        return f"<ReferenceAccount {self.code} ({self.validity_year})>"


class LedgerAccount(TrackedBase):
    """
    Chart-of-accounts row for one company and fiscal year.

    Contract:
        Ledger entries may only reference accounts of their own company whose
        fiscal_year equals the entry's fiscal year.
    """

    __tablename__ = "ledger_accounts"

    __table_args__ = (
        UniqueConstraint(
            "company_id", "code", "fiscal_year", name="uq_ledger_account_company_code_year"
        ),
        CheckConstraint("level BETWEEN 1 AND 5", name="ck_ledger_account_level"),
        Index("idx_ledger_account_company_year", "company_id", "fiscal_year"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("companies.id"), nullable=False
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)

    account_type: Mapped[AccountType] = mapped_column(String(30), nullable=False)

    reference_account_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("reference_accounts.id"), nullable=True
    )

    account_class: Mapped[AccountClass] = mapped_column(String(30), nullable=False)

    level: Mapped[int] = mapped_column(Integer, nullable=False)

    nature: Mapped[AccountNature] = mapped_column(String(20), nullable=False)

    affects_result: Mapped[bool] = mapped_column(Boolean, nullable=False)

    deductible: Mapped[bool] = mapped_column(Boolean, nullable=False)

    status: Mapped[Status] = mapped_column(
        String(20), default=Status.ACTIVE, nullable=False
    )

    reference_account: Mapped["ReferenceAccount | None"] = relationship(
        "ReferenceAccount",
        foreign_keys=[reference_account_id],
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<LedgerAccount {self.code}/{self.fiscal_year}: {self.name}>"


class AdjustmentAccount(TrackedBase):
    """Parte B account (e-Lalur / e-Lacs) for one company and base year."""

    __tablename__ = "adjustment_accounts"

    __table_args__ = (
        UniqueConstraint(
            "company_id", "code", "base_year", name="uq_adjustment_account_company_code_year"
        ),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("companies.id"), nullable=False
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    description: Mapped[str] = mapped_column(String(1000), nullable=False)

    base_year: Mapped[int] = mapped_column(Integer, nullable=False)

    tax_kind: Mapped[TaxKind] = mapped_column(String(10), nullable=False)

    status: Mapped[Status] = mapped_column(
        String(20), default=Status.ACTIVE, nullable=False
    )

    def __repr__(self) -> str:
        return f"<AdjustmentAccount {self.code}/{self.base_year}>"
