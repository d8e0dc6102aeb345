"""
Pure domain layer.

This module contains pure data transfer objects and validation rules
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (beyond the injectable Clock interface)
- I/O
"""

from lalur_kernel.domain.adjustment_rules import (
    RELATIONSHIP_REQUIREMENTS,
    validate_fiscal_adjustment,
    validate_relationship,
)
from lalur_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from lalur_kernel.domain.dated import DatedRecord
from lalur_kernel.domain.dtos import (
    FiscalAdjustmentDraft,
    LedgerAccountInfo,
    LedgerEntryDraft,
    TemporalKey,
    ValidationError,
    ValidationResult,
)
from lalur_kernel.domain.ledger_rules import validate_ledger_entry
from lalur_kernel.domain.temporal_rules import (
    format_period_label,
    validate_temporal_value,
)

__all__ = [
    "Clock",
    "DatedRecord",
    "DeterministicClock",
    "FiscalAdjustmentDraft",
    "LedgerAccountInfo",
    "LedgerEntryDraft",
    "RELATIONSHIP_REQUIREMENTS",
    "SystemClock",
    "TemporalKey",
    "ValidationError",
    "ValidationResult",
    "format_period_label",
    "validate_fiscal_adjustment",
    "validate_ledger_entry",
    "validate_relationship",
    "validate_temporal_value",
]
