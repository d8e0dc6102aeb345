"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures the validators operate on:
    candidate records (LedgerEntryDraft, FiscalAdjustmentDraft), resolved
    account snapshots (LedgerAccountInfo), temporal slice keys, timeline
    rows, and the validation result types.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from the service layer (never from domain logic).

Invariants enforced:
    Domain logic accepts/returns DTOs, never ORM entities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from lalur_kernel.domain.enums import (
    AdjustmentDirection,
    ApportionmentKind,
    RelationshipKind,
    Status,
)

if TYPE_CHECKING:
    from lalur_kernel.models.accounts import LedgerAccount as LedgerAccountModel


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation error.

    Contract:
        Carries a machine-readable code, human-readable message, optional field
        name, and optional details dict.

    Non-goals:
        - Does NOT raise exceptions -- it IS the error representation.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validation.

    Guarantees:
        - errors is always a tuple (never None)
        - bool(result) == result.is_valid for convenience
    """

    is_valid: bool
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        """Create a successful validation result."""
        return cls(is_valid=True, errors=())

    @classmethod
    def failure(cls, *errors: ValidationError) -> ValidationResult:
        """Create a failed validation result."""
        return cls(is_valid=False, errors=tuple(errors))

    def __bool__(self) -> bool:
        return self.is_valid


@dataclass(frozen=True)
class LedgerAccountInfo:
    """Snapshot of a resolved chart-of-accounts row."""

    id: UUID
    company_id: UUID
    code: str
    name: str
    fiscal_year: int
    status: Status = Status.ACTIVE

    @classmethod
    def from_model(cls, model: LedgerAccountModel) -> LedgerAccountInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            code=model.code,
            name=model.name,
            fiscal_year=model.fiscal_year,
            status=Status(model.status),
        )


@dataclass(frozen=True)
class LedgerEntryDraft:
    """
    Candidate ledger entry, post field-parsing and pre-persistence.

    Account ids are None when the code did not resolve.
    """

    company_id: UUID
    debit_account_id: UUID | None
    credit_account_id: UUID | None
    reference_date: date
    amount: Decimal
    memo: str
    fiscal_year: int
    document_number: str | None = None


@dataclass(frozen=True)
class FiscalAdjustmentDraft:
    """Candidate fiscal adjustment (Parte B movement)."""

    company_id: UUID
    reference_month: int
    reference_year: int
    apportionment_kind: ApportionmentKind
    relationship_kind: RelationshipKind
    ledger_account_id: UUID | None
    adjustment_account_id: UUID | None
    tax_parameter_id: UUID | None
    direction: AdjustmentDirection
    description: str
    amount: Decimal

    @property
    def reference_date(self) -> date:
        """First day of the reference month."""
        return date(self.reference_year, self.reference_month, 1)


@dataclass(frozen=True)
class TemporalKey:
    """(year, month, quarter) slice of a periodic parameter association."""

    year: int
    month: int | None = None
    quarter: int | None = None


@dataclass(frozen=True)
class TimelineParameter:
    """One parameter's active periods, rendered for display."""

    code: str
    description: str
    periods: tuple[str, ...]


@dataclass(frozen=True)
class TimelineGroup:
    """Parameters of one parameter type."""

    type_description: str
    nature: str
    parameters: tuple[TimelineParameter, ...]
