"""
Fiscal adjustment rules -- the conditional foreign-key table.

Architecture: lalur_kernel/domain.  ZERO I/O.

A fiscal adjustment points at a ledger account, an adjustment (Parte B)
account, or both, depending on its relationship kind.  The rule is data:

    relationship kind   | ledger_account_id | adjustment_account_id
    --------------------|-------------------|----------------------
    LEDGER_ACCOUNT      | required          | must be absent
    ADJUSTMENT_ACCOUNT  | must be absent    | required
    BOTH                | required          | required

Updates re-validate the full new state; nothing is diffed against the stored
record.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType

from lalur_kernel.domain.dtos import (
    FiscalAdjustmentDraft,
    ValidationError,
    ValidationResult,
)
from lalur_kernel.domain.enums import RelationshipKind

LEDGER_ACCOUNT_FIELD = "ledger_account_id"
ADJUSTMENT_ACCOUNT_FIELD = "adjustment_account_id"

DEFAULT_MIN_REFERENCE_YEAR = 2000


@dataclass(frozen=True)
class FieldRequirement:
    """Fields that must be populated / must be empty for one relationship kind."""

    required: frozenset[str]
    forbidden: frozenset[str]


RELATIONSHIP_REQUIREMENTS: MappingProxyType[RelationshipKind, FieldRequirement] = MappingProxyType(
    {
        RelationshipKind.LEDGER_ACCOUNT: FieldRequirement(
            required=frozenset({LEDGER_ACCOUNT_FIELD}),
            forbidden=frozenset({ADJUSTMENT_ACCOUNT_FIELD}),
        ),
        RelationshipKind.ADJUSTMENT_ACCOUNT: FieldRequirement(
            required=frozenset({ADJUSTMENT_ACCOUNT_FIELD}),
            forbidden=frozenset({LEDGER_ACCOUNT_FIELD}),
        ),
        RelationshipKind.BOTH: FieldRequirement(
            required=frozenset({LEDGER_ACCOUNT_FIELD, ADJUSTMENT_ACCOUNT_FIELD}),
            forbidden=frozenset(),
        ),
    }
)


def validate_relationship(
    relationship_kind: RelationshipKind,
    ledger_account_id: object | None,
    adjustment_account_id: object | None,
) -> ValidationResult:
    """Check the populated account ids against the relationship kind."""
    requirement = RELATIONSHIP_REQUIREMENTS[relationship_kind]
    values = {
        LEDGER_ACCOUNT_FIELD: ledger_account_id,
        ADJUSTMENT_ACCOUNT_FIELD: adjustment_account_id,
    }
    # Sorted so the reported field is stable
    for name in sorted(requirement.required):
        if values[name] is None:
            return ValidationResult.failure(
                ValidationError(
                    code="CONDITIONAL_FK_VIOLATION",
                    message=(
                        f"{name} is required when relationship kind is "
                        f"{relationship_kind.value}"
                    ),
                    field=name,
                    details={"relationship_kind": relationship_kind.value},
                )
            )
    for name in sorted(requirement.forbidden):
        if values[name] is not None:
            return ValidationResult.failure(
                ValidationError(
                    code="CONDITIONAL_FK_VIOLATION",
                    message=(
                        f"{name} must be empty when relationship kind is "
                        f"{relationship_kind.value}"
                    ),
                    field=name,
                    details={"relationship_kind": relationship_kind.value},
                )
            )
    return ValidationResult.success()


def validate_reference_period(
    month: int,
    year: int,
    min_year: int = DEFAULT_MIN_REFERENCE_YEAR,
) -> ValidationResult:
    if not 1 <= month <= 12:
        return ValidationResult.failure(
            ValidationError(
                code="INVALID_REFERENCE_PERIOD",
                message=f"Reference month must be between 1 and 12, got {month}",
                field="reference_month",
            )
        )
    if year < min_year:
        return ValidationResult.failure(
            ValidationError(
                code="INVALID_REFERENCE_PERIOD",
                message=f"Reference year must be {min_year} or later, got {year}",
                field="reference_year",
            )
        )
    return ValidationResult.success()


def validate_fiscal_adjustment(
    draft: FiscalAdjustmentDraft,
    min_year: int = DEFAULT_MIN_REFERENCE_YEAR,
) -> ValidationResult:
    """
    Validate one candidate fiscal adjustment.

    Order: reference period, tax parameter present, conditional FKs, amount,
    description.  Returns the first violation.
    """
    period = validate_reference_period(draft.reference_month, draft.reference_year, min_year)
    if not period:
        return period

    if draft.tax_parameter_id is None:
        return ValidationResult.failure(
            ValidationError(
                code="UNRESOLVED_REFERENCE",
                message="tax_parameter not found",
                field="tax_parameter_id",
            )
        )

    relationship = validate_relationship(
        draft.relationship_kind,
        draft.ledger_account_id,
        draft.adjustment_account_id,
    )
    if not relationship:
        return relationship

    if draft.amount is None or draft.amount <= Decimal("0"):
        return ValidationResult.failure(
            ValidationError(
                code="INVALID_AMOUNT",
                message=f"Amount must be greater than zero, got {draft.amount}",
                field="amount",
            )
        )

    if not draft.description or not draft.description.strip():
        return ValidationResult.failure(
            ValidationError(
                code="MISSING_REQUIRED_FIELD",
                message="description is required",
                field="description",
            )
        )

    return ValidationResult.success()
