"""
Module: lalur_kernel.models.tax_parameter
Responsibility: ORM persistence for tax parameters and their time-sliced
    association with companies.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/enums.py only.

Invariants enforced:
    - A parameter's nature (GLOBAL / MONTHLY / QUARTERLY) lives on its type.
    - One ParameterAssociation per (company, tax parameter).
    - TemporalValue has exactly one of month / quarter (ck_temporal_value_xor)
      and is unique per (association, year, month) or (association, year,
      quarter) among ACTIVE rows.

Failure modes:
    - IntegrityError on duplicate association or temporal slice.
"""

from uuid import UUID

from sqlalchemy import (
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
from lalur_kernel.domain.dtos import TemporalKey
from lalur_kernel.domain.enums import ParameterNature, Status


class TaxParameterType(TrackedBase):
    """Grouping of tax parameters that fixes their time-slicing."""

    __tablename__ = "tax_parameter_types"

    __table_args__ = (
        UniqueConstraint("description", name="uq_tax_parameter_type_description"),
    )

    description: Mapped[str] = mapped_column(String(255), nullable=False)

    nature: Mapped[ParameterNature] = mapped_column(
        String(20), default=ParameterNature.GLOBAL, nullable=False
    )

    status: Mapped[Status] = mapped_column(
        String(20), default=Status.ACTIVE, nullable=False
    )


class TaxParameter(TrackedBase):
    """A named tax parameter (e.g. an IN RFB adjustment code)."""

    __tablename__ = "tax_parameters"

    __table_args__ = (
        UniqueConstraint("code", name="uq_tax_parameter_code"),
    )

    code: Mapped[str] = mapped_column(String(100), nullable=False)

    type_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("tax_parameter_types.id"), nullable=False
    )

    description: Mapped[str] = mapped_column(String(1000), nullable=False)

    status: Mapped[Status] = mapped_column(
        String(20), default=Status.ACTIVE, nullable=False
    )

    parameter_type: Mapped["TaxParameterType"] = relationship(
        "TaxParameterType",
        foreign_keys=[type_id],
        lazy="joined",
    )

    @property
    def nature(self) -> ParameterNature:
        return ParameterNature(self.parameter_type.nature)

    def __repr__(self) -> str:
        return f"<TaxParameter {self.code}>"


class ParameterAssociation(TrackedBase):
    """Company opt-in to a tax parameter."""

    __tablename__ = "parameter_associations"

    __table_args__ = (
        UniqueConstraint(
            "company_id", "tax_parameter_id", name="uq_parameter_association"
        ),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("companies.id"), nullable=False
    )

    tax_parameter_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("tax_parameters.id"), nullable=False
    )

    status: Mapped[Status] = mapped_column(
        String(20), default=Status.ACTIVE, nullable=False
    )

    tax_parameter: Mapped["TaxParameter"] = relationship(
        "TaxParameter",
        foreign_keys=[tax_parameter_id],
        lazy="joined",
    )

    temporal_values: Mapped[list["TemporalValue"]] = relationship(
        "TemporalValue",
        back_populates="association",
        lazy="selectin",
    )

    def active_keys(self) -> list[TemporalKey]:
        return [tv.key for tv in self.temporal_values if tv.status == Status.ACTIVE]


class TemporalValue(TrackedBase):
    """
    One month or quarter in which a periodic association applies.

    Contract:
        Exactly one of month / quarter is set.  Removal flips status to
        INACTIVE; re-adding the same slice reactivates the row.
    """

    __tablename__ = "temporal_values"

    __table_args__ = (
        CheckConstraint(
            "(month IS NULL AND quarter IS NOT NULL) OR "
            "(month IS NOT NULL AND quarter IS NULL)",
            name="ck_temporal_value_xor",
        ),
        CheckConstraint(
            "month IS NULL OR month BETWEEN 1 AND 12", name="ck_temporal_value_month"
        ),
        CheckConstraint(
            "quarter IS NULL OR quarter BETWEEN 1 AND 4", name="ck_temporal_value_quarter"
        ),
        UniqueConstraint(
            "association_id", "year", "month", "quarter", name="uq_temporal_value"
        ),
        # NULLs never collide in the constraint above
        Index(
            "uq_temporal_value_month",
            "association_id", "year", "month",
            unique=True,
            postgresql_where=text("month IS NOT NULL"),
            sqlite_where=text("month IS NOT NULL"),
        ),
        Index(
            "uq_temporal_value_quarter",
            "association_id", "year", "quarter",
            unique=True,
            postgresql_where=text("quarter IS NOT NULL"),
            sqlite_where=text("quarter IS NOT NULL"),
        ),
    )

    association_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("parameter_associations.id"), nullable=False
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    month: Mapped[int | None] = mapped_column(Integer, nullable=True)

    quarter: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[Status] = mapped_column(
        String(20), default=Status.ACTIVE, nullable=False
    )

    association: Mapped["ParameterAssociation"] = relationship(
        "ParameterAssociation",
        back_populates="temporal_values",
    )

    @property
    def key(self) -> TemporalKey:
        return TemporalKey(year=self.year, month=self.month, quarter=self.quarter)

    def __repr__(self) -> str:
        return f"<TemporalValue {self.year} m={self.month} q={self.quarter}>"
