"""
BulkExportPipeline -- deterministic delimited exports in the import layout.

Responsibility:
    Selects ACTIVE records of a company, orders them, and renders them in the
    same row format the importer reads, with account display names added.

Architecture position:
    Ingestion > Services -- read-only.  Uses RecordSelector; never writes.

Invariants enforced:
    - Ordering is reference date, then creation time, then id.
    - Header first, ``;`` delimiter by default, ISO dates, amounts with two
      decimals, fixed encoding.
    - An exported file re-imports (dry run) without errors: the importer
      matches columns by header name and ignores the display-name columns.

Failure modes:
    - InvalidDateRangeError -- ``start`` without ``end`` (or the reverse),
      or ``end < start``.
    - NothingToExportError -- no record matched.
    - CompanyNotFoundError.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from lalur_config.schema import ExportSettings
from lalur_kernel.exceptions import (
    CompanyNotFoundError,
    InvalidDateRangeError,
    NothingToExportError,
)
from lalur_kernel.logging_config import get_logger
from lalur_kernel.selectors.company_selector import CompanySelector
from lalur_kernel.selectors.record_selector import RecordSelector

from lalur_ingestion.adapters.delimited import write_delimited
from lalur_ingestion.domain.types import ExportFile, RecordKind

logger = get_logger("ingestion.export_pipeline")

LEDGER_ENTRY_EXPORT_HEADER = (
    "debitAccountCode",
    "debitAccountName",
    "creditAccountCode",
    "creditAccountName",
    "date",
    "amount",
    "memo",
    "documentNumber",
)

FISCAL_ADJUSTMENT_EXPORT_HEADER = (
    "month",
    "year",
    "apportionmentKind",
    "relationshipKind",
    "ledgerAccountCode",
    "ledgerAccountName",
    "adjustmentAccountCode",
    "adjustmentAccountDescription",
    "taxParameterCode",
    "adjustmentDirection",
    "description",
    "amount",
)


def format_amount(amount: Decimal) -> str:
    return f"{amount:.2f}"


def _value(enum_or_str: object) -> str:
    return getattr(enum_or_str, "value", enum_or_str)


class BulkExportPipeline:
    """Read-only exporter for ledger entries and fiscal adjustments."""

    def __init__(self, session: Session, settings: ExportSettings | None = None):
        self._session = session
        self._settings = settings or ExportSettings()
        self._records = RecordSelector(session)
        self._companies = CompanySelector(session)

    def _require_company(self, company_id: UUID) -> None:
        if self._companies.get(company_id) is None:
            raise CompanyNotFoundError(company_id)

    def _render(
        self,
        kind: RecordKind,
        filename: str,
        header: tuple[str, ...],
        rows: list[list[str]],
        metadata: dict,
    ) -> ExportFile:
        content = write_delimited(
            header,
            rows,
            delimiter=self._settings.delimiter,
            encoding=self._settings.encoding,
        )
        logger.info(
            "export_completed",
            extra={"kind": kind.value, "row_count": len(rows), "size_bytes": len(content)},
        )
        return ExportFile(
            filename=filename,
            content=content,
            row_count=len(rows),
            encoding=self._settings.encoding,
            metadata=metadata,
        )

    def export_ledger_entries(
        self,
        company_id: UUID,
        fiscal_year: int,
        start: date | None = None,
        end: date | None = None,
    ) -> ExportFile:
        """
        Export a company's ACTIVE ledger entries for one fiscal year.

        ``start`` and ``end`` are inclusive and must be given together.
        """
        if (start is None) != (end is None):
            raise InvalidDateRangeError(
                start, end, "Both start and end dates are required for a date range"
            )
        if start is not None and end is not None and end < start:
            raise InvalidDateRangeError(
                start, end, f"End date {end} is before start date {start}"
            )
        self._require_company(company_id)

        entries = self._records.ledger_entries(company_id, fiscal_year, start, end)
        if not entries:
            raise NothingToExportError(company_id, fiscal_year)

        rows = [
            [
                entry.debit_account.code,
                entry.debit_account.name,
                entry.credit_account.code,
                entry.credit_account.name,
                entry.reference_date.isoformat(),
                format_amount(entry.amount),
                entry.memo,
                entry.document_number or "",
            ]
            for entry in entries
        ]
        return self._render(
            RecordKind.LEDGER_ENTRIES,
            f"ledger_entries_{fiscal_year}.csv",
            LEDGER_ENTRY_EXPORT_HEADER,
            rows,
            {
                "company_id": str(company_id),
                "fiscal_year": fiscal_year,
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
            },
        )

    def export_fiscal_adjustments(self, company_id: UUID, year: int) -> ExportFile:
        """Export a company's ACTIVE Parte B adjustments for one reference year."""
        self._require_company(company_id)

        adjustments = self._records.fiscal_adjustments(company_id, year)
        if not adjustments:
            raise NothingToExportError(company_id, year)

        rows = []
        for adj in adjustments:
            ledger = adj.ledger_account
            account = adj.adjustment_account
            rows.append(
                [
                    str(adj.reference_month),
                    str(adj.reference_year),
                    _value(adj.apportionment_kind),
                    _value(adj.relationship_kind),
                    ledger.code if ledger else "",
                    ledger.name if ledger else "",
                    account.code if account else "",
                    account.description if account else "",
                    adj.tax_parameter.code,
                    _value(adj.direction),
                    adj.description,
                    format_amount(adj.amount),
                ]
            )
        return self._render(
            RecordKind.FISCAL_ADJUSTMENTS,
            f"fiscal_adjustments_{year}.csv",
            FISCAL_ADJUSTMENT_EXPORT_HEADER,
            rows,
            {"company_id": str(company_id), "year": year},
        )
