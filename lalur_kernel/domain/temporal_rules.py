"""
Temporal value rules -- month/quarter slices of periodic tax parameters.

Architecture: lalur_kernel/domain.  ZERO I/O.  The service layer loads the
association's existing keys and passes them in.

Rules for a candidate (year, month, quarter) on an association whose
parameter type has nature N:
    - N is GLOBAL                              -> UNEXPECTED_TEMPORAL_VALUE
    - not exactly one of month / quarter       -> INVALID_TEMPORAL_VALUE
    - MONTHLY with quarter, QUARTERLY with month -> INVALID_TEMPORAL_VALUE
    - month outside 1-12, quarter outside 1-4  -> INVALID_TEMPORAL_VALUE
    - (year, month, quarter) already present   -> DUPLICATE_TEMPORAL_VALUE

Display labels ("Jan/2024", "1º Tri/2024") are derived here as well so the
timeline and the stored rows cannot drift apart.
"""

from __future__ import annotations

from collections.abc import Iterable

from lalur_kernel.domain.dtos import TemporalKey, ValidationError, ValidationResult
from lalur_kernel.domain.enums import ParameterNature

MONTH_LABELS = (
    "Jan", "Fev", "Mar", "Abr", "Mai", "Jun",
    "Jul", "Ago", "Set", "Out", "Nov", "Dez",
)


def _invalid(message: str, field: str | None = None) -> ValidationResult:
    return ValidationResult.failure(
        ValidationError(code="INVALID_TEMPORAL_VALUE", message=message, field=field)
    )


def validate_temporal_value(
    nature: ParameterNature,
    year: int,
    month: int | None,
    quarter: int | None,
    existing_keys: Iterable[TemporalKey] = (),
) -> ValidationResult:
    """Validate one temporal slice against the parameter nature and its siblings."""
    if nature is ParameterNature.GLOBAL:
        return ValidationResult.failure(
            ValidationError(
                code="UNEXPECTED_TEMPORAL_VALUE",
                message="GLOBAL parameters do not accept temporal values",
                details={"nature": nature.value},
            )
        )

    if (month is None) == (quarter is None):
        return _invalid("Exactly one of month or quarter must be set")

    if nature is ParameterNature.MONTHLY and month is None:
        return _invalid("MONTHLY parameters take a month, not a quarter", "quarter")
    if nature is ParameterNature.QUARTERLY and quarter is None:
        return _invalid("QUARTERLY parameters take a quarter, not a month", "month")

    if month is not None and not 1 <= month <= 12:
        return _invalid(f"Month must be between 1 and 12, got {month}", "month")
    if quarter is not None and not 1 <= quarter <= 4:
        return _invalid(f"Quarter must be between 1 and 4, got {quarter}", "quarter")
    if year < 1:
        return _invalid(f"Year must be positive, got {year}", "year")

    key = TemporalKey(year=year, month=month, quarter=quarter)
    if key in set(existing_keys):
        return ValidationResult.failure(
            ValidationError(
                code="DUPLICATE_TEMPORAL_VALUE",
                message=f"Temporal value {format_period_label(key)} already exists",
                details={"year": year, "month": month, "quarter": quarter},
            )
        )

    return ValidationResult.success()


def chronological_key(key: TemporalKey) -> tuple[int, int]:
    """Sort key placing a quarter at its first month."""
    if key.month is not None:
        return (key.year, key.month)
    return (key.year, (key.quarter or 1) * 3 - 2)


def format_period_label(key: TemporalKey) -> str:
    """Render a slice as "Jan/2024" or "1º Tri/2024"."""
    if key.month is not None:
        return f"{MONTH_LABELS[key.month - 1]}/{key.year}"
    return f"{key.quarter}º Tri/{key.year}"
