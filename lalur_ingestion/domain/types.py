"""
lalur_ingestion.domain.types -- Pure frozen dataclasses for import and export.

ZERO I/O.  Imports only from lalur_kernel/domain/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID


class RecordKind(str, Enum):
    """Record kinds the bulk pipelines handle."""

    LEDGER_ENTRIES = "ledger-entries"
    FISCAL_ADJUSTMENTS = "fiscal-adjustments"
    CHART_OF_ACCOUNTS = "chart-of-accounts"
    REFERENCE_ACCOUNTS = "reference-accounts"


# =============================================================================
# Column layouts
# =============================================================================


@dataclass(frozen=True)
class LineLayout:
    """
    Canonical column names of one row format.

    ``optional`` columns may be blank or, when trailing, absent.
    """

    columns: tuple[str, ...]
    optional: frozenset[str] = frozenset()

    @property
    def required(self) -> tuple[str, ...]:
        return tuple(c for c in self.columns if c not in self.optional)

    @property
    def min_fields(self) -> int:
        """Positional mode: everything up to the last required column."""
        last_required = max(i for i, c in enumerate(self.columns) if c not in self.optional)
        return last_required + 1


LEDGER_ENTRY_LAYOUT = LineLayout(
    columns=("debitAccountCode", "creditAccountCode", "date", "amount", "memo", "documentNumber"),
    optional=frozenset({"documentNumber"}),
)

FISCAL_ADJUSTMENT_LAYOUT = LineLayout(
    columns=(
        "month",
        "year",
        "apportionmentKind",
        "relationshipKind",
        "ledgerAccountCode",
        "adjustmentAccountCode",
        "taxParameterCode",
        "adjustmentDirection",
        "description",
        "amount",
    ),
    optional=frozenset({"ledgerAccountCode", "adjustmentAccountCode"}),
)

CHART_OF_ACCOUNTS_LAYOUT = LineLayout(
    columns=(
        "code",
        "name",
        "accountType",
        "referenceAccountCode",
        "class",
        "level",
        "nature",
        "affectsResult",
        "deductible",
    ),
)

REFERENCE_ACCOUNT_LAYOUT = LineLayout(
    columns=("code", "description", "validityYear"),
    optional=frozenset({"validityYear"}),
)

LAYOUTS: dict[RecordKind, LineLayout] = {
    RecordKind.LEDGER_ENTRIES: LEDGER_ENTRY_LAYOUT,
    RecordKind.FISCAL_ADJUSTMENTS: FISCAL_ADJUSTMENT_LAYOUT,
    RecordKind.CHART_OF_ACCOUNTS: CHART_OF_ACCOUNTS_LAYOUT,
    RecordKind.REFERENCE_ACCOUNTS: REFERENCE_ACCOUNT_LAYOUT,
}


@dataclass(frozen=True)
class ParsedLine:
    """A data line after column matching: canonical name -> raw text."""

    line_number: int
    values: dict[str, str]

    def get(self, column: str) -> str:
        return self.values.get(column, "")


# =============================================================================
# Request and report
# =============================================================================


@dataclass(frozen=True)
class ImportRequest:
    """One bulk import call."""

    kind: RecordKind
    content: bytes
    actor_id: UUID
    company_id: UUID | None = None
    fiscal_year: int | None = None
    dry_run: bool = False


@dataclass(frozen=True)
class ImportLineError:
    """A skipped line and why."""

    line_number: int
    error: str
    code: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"lineNumber": self.line_number, "error": self.error}


@dataclass(frozen=True)
class ImportReport:
    """
    Deterministic outcome of one import call.

    Guarantees:
        - errors are in input order.
        - success == (skipped_lines == 0).
        - preview is None unless the call was a dry run.
    """

    success: bool
    message: str
    total_lines: int
    processed_lines: int
    skipped_lines: int
    errors: tuple[ImportLineError, ...] = ()
    preview: tuple[dict[str, Any], ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "totalLines": self.total_lines,
            "processedLines": self.processed_lines,
            "skippedLines": self.skipped_lines,
            "errors": [e.to_dict() for e in self.errors],
            "preview": list(self.preview) if self.preview is not None else None,
        }


@dataclass(frozen=True)
class ExportFile:
    """Rendered export: bytes plus a suggested file name."""

    filename: str
    content: bytes
    row_count: int
    encoding: str = "utf-8"
    metadata: dict[str, Any] = field(default_factory=dict)
