"""
Module: lalur_kernel.db.base
Responsibility: Declarative base for the LALUR models: UUID primary keys
    stored as text, the column type map, and the TrackedBase audit columns
    (who created / last changed a record and when).
Architecture position: Kernel > DB.  Imported by every model; imports
    nothing from the kernel.

Invariants enforced:
    - Every row has a uuid4 primary key.
    - Amounts map to Numeric(38, 9); floats never reach the database.
    - created_by_id is mandatory on every tracked record.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID kept as a 36-character string so SQLite and PostgreSQL agree."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        date: Date,
        UUID: UUIDString(),
        int: Integer,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base carrying the audit columns.

    ``created_at`` / ``updated_at`` are filled by the database; the actor
    columns are set by the service (or import row handler) that writes.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
