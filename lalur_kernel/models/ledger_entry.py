"""
Module: lalur_kernel.models.ledger_entry
Responsibility: ORM persistence for double-entry ledger records
    (lançamentos contábeis).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/enums.py only.

Invariants enforced:
    - debit_account_id != credit_account_id (ck_ledger_entry_distinct_accounts).
    - amount > 0 (ck_ledger_entry_positive_amount).
    - fiscal_year equals both accounts' fiscal year (validated by
      ledger_rules before any write).
    - document_number, when present, is unique per (company, fiscal_year).

Failure modes:
    - IntegrityError on a repeated document number, surfaced as
      DuplicateConstraintViolationError.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lalur_kernel.db.base import TrackedBase, UUIDString
from lalur_kernel.domain.enums import Status
from lalur_kernel.models.accounts import LedgerAccount


class LedgerEntry(TrackedBase):
    """
    One debit/credit movement between two accounts of the same company.

    Contract:
        Exposes ``reference_date`` and ``company_id`` so the period lock guard
        can authorize any mutation.  Never hard-deleted; ``status`` flips to
        INACTIVE.
    """

    __tablename__ = "ledger_entries"

    __table_args__ = (
        CheckConstraint(
            "debit_account_id <> credit_account_id",
            name="ck_ledger_entry_distinct_accounts",
        ),
        CheckConstraint("amount > 0", name="ck_ledger_entry_positive_amount"),
        Index(
            "uq_ledger_entry_document",
            "company_id", "fiscal_year", "document_number",
            unique=True,
            postgresql_where=text("document_number IS NOT NULL"),
            sqlite_where=text("document_number IS NOT NULL"),
        ),
        Index("idx_ledger_entry_company_date", "company_id", "reference_date"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("companies.id"), nullable=False
    )

    debit_account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("ledger_accounts.id"), nullable=False
    )

    credit_account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("ledger_accounts.id"), nullable=False
    )

    # Competência
    reference_date: Mapped[date] = mapped_column(Date, nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    memo: Mapped[str] = mapped_column(String(2000), nullable=False)

    document_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[Status] = mapped_column(
        String(20), default=Status.ACTIVE, nullable=False
    )

    debit_account: Mapped["LedgerAccount"] = relationship(
        "LedgerAccount",
        foreign_keys=[debit_account_id],
        lazy="joined",
    )

    credit_account: Mapped["LedgerAccount"] = relationship(
        "LedgerAccount",
        foreign_keys=[credit_account_id],
        lazy="joined",
    )

    def __repr__(self) -> str:
        return f"<LedgerEntry {self.reference_date} {self.amount}>"
