"""
Module: lalur_kernel.models.company
Responsibility: ORM persistence for companies and their accounting period
    cutoff ("Período Contábil"), plus the append-only cutoff audit log.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/enums.py only.

Invariants enforced:
    - accounting_cutoff only moves forward and never past today (enforced by
      AccountingPeriodService under a row lock; the column itself is a plain
      nullable date).
    - Every accepted cutoff change writes exactly one AccountingPeriodAudit row
      in the same flush.

Failure modes:
    - IntegrityError on duplicate CNPJ (uq_company_cnpj).
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lalur_kernel.db.base import Base, TrackedBase, UUIDString
from lalur_kernel.domain.enums import Status


class Company(TrackedBase):
    """
    A taxpayer whose books the kernel governs.

    Guarantees:
        - cnpj is unique (uq_company_cnpj).
        - accounting_cutoff is None until the first governed update.
    """

    __tablename__ = "companies"

    __table_args__ = (
        UniqueConstraint("cnpj", name="uq_company_cnpj"),
    )

    # 14-digit Brazilian tax id, digits only
    cnpj: Mapped[str] = mapped_column(String(14), nullable=False)

    legal_name: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[Status] = mapped_column(
        String(20),
        default=Status.ACTIVE,
        nullable=False,
    )

    # Records dated before this are closed
    accounting_cutoff: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<Company {self.cnpj}: cutoff={self.accounting_cutoff}>"


class AccountingPeriodAudit(Base):
    """
    One accepted change of a company's accounting cutoff.

    Rows are only ever inserted.
    """

    __tablename__ = "accounting_period_audits"

    __table_args__ = (
        Index("idx_period_audit_company", "company_id", "changed_at"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )

    previous_cutoff: Mapped[date | None] = mapped_column(Date, nullable=True)

    new_cutoff: Mapped[date] = mapped_column(Date, nullable=False)

    changed_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<AccountingPeriodAudit {self.previous_cutoff} -> {self.new_cutoff}>"
        )
