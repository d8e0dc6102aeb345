"""Bulk export: ordering, filters, layout, and re-import of exported files."""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import select

from lalur_config.schema import ExportSettings, ImportSettings
from lalur_ingestion.domain.types import ImportRequest, RecordKind
from lalur_ingestion.services.export_pipeline import (
    FISCAL_ADJUSTMENT_EXPORT_HEADER,
    LEDGER_ENTRY_EXPORT_HEADER,
    BulkExportPipeline,
)
from lalur_ingestion.services.import_pipeline import BulkImportPipeline
from lalur_kernel.domain.enums import Status
from lalur_kernel.exceptions import (
    CompanyNotFoundError,
    InvalidDateRangeError,
    NothingToExportError,
)
from lalur_kernel.models.ledger_entry import LedgerEntry
from lalur_kernel.services.ledger_entry_service import LedgerEntryService


def _lines(export):
    return export.content.decode(export.encoding).splitlines()


@pytest.fixture
def importer(session, clock, company, actor_id):
    pipeline = BulkImportPipeline(session, ImportSettings(), clock=clock)

    def _import(kind, text, dry_run=False, fiscal_year=2024):
        return pipeline.run(
            ImportRequest(
                kind=kind,
                content=text.encode("utf-8"),
                actor_id=actor_id,
                company_id=company.id,
                fiscal_year=fiscal_year,
                dry_run=dry_run,
            )
        )

    return _import


@pytest.fixture
def exporter(session):
    return BulkExportPipeline(session, ExportSettings())


@pytest.fixture
def ledger_entries(importer, accounts):
    # Rows deliberately out of date order
    report = importer(
        RecordKind.LEDGER_ENTRIES,
        "debitAccountCode;creditAccountCode;date;amount;memo;documentNumber\n"
        "1.1.01;3.1.01;2024-03-15;300.00;Venda março;\n"
        "1.1.01;3.1.01;2024-01-10;100.5;Venda janeiro;NF-1\n"
        "2.1.01;1.1.01;2024-02-20;75.00;Pagamento; fornecedor;\n",
    )
    assert report.skipped_lines == 1  # the memo with a stray delimiter
    return report


class TestLedgerEntryExport:

    def test_rows_in_date_order(self, exporter, company, ledger_entries):
        export = exporter.export_ledger_entries(company.id, 2024)
        lines = _lines(export)
        assert lines[0] == ";".join(LEDGER_ENTRY_EXPORT_HEADER)
        assert lines[1:] == [
            "1.1.01;Caixa;3.1.01;Receita de Vendas;2024-01-10;100.50;Venda janeiro;NF-1",
            "1.1.01;Caixa;3.1.01;Receita de Vendas;2024-03-15;300.00;Venda março;",
        ]
        assert export.row_count == 2
        assert export.filename == "ledger_entries_2024.csv"
        assert export.metadata["fiscal_year"] == 2024

    def test_export_is_repeatable(self, exporter, company, ledger_entries):
        first = exporter.export_ledger_entries(company.id, 2024)
        second = exporter.export_ledger_entries(company.id, 2024)
        assert first.content == second.content

    def test_date_range_is_inclusive(self, exporter, company, ledger_entries):
        export = exporter.export_ledger_entries(
            company.id, 2024, start=date(2024, 1, 10), end=date(2024, 1, 10)
        )
        assert export.row_count == 1
        assert export.metadata["start"] == "2024-01-10"

    def test_inactive_entries_excluded(self, exporter, session, company, actor_id, ledger_entries):
        service = LedgerEntryService(session)
        entry = session.scalars(
            select(LedgerEntry).where(LedgerEntry.document_number == "NF-1")
        ).one()
        service.set_status(company.id, entry.id, Status.INACTIVE, actor_id)
        assert exporter.export_ledger_entries(company.id, 2024).row_count == 1

    def test_export_reimports_cleanly(self, exporter, importer, company, ledger_entries):
        export = exporter.export_ledger_entries(company.id, 2024)

        # Document numbers already exist, so strip them before the dry run
        lines = _lines(export)
        text = "\n".join(
            [lines[0]] + [line.rsplit(";", 1)[0] + ";" for line in lines[1:]]
        )
        report = importer(RecordKind.LEDGER_ENTRIES, text, dry_run=True)

        assert report.errors == ()
        assert report.processed_lines == export.row_count
        assert [p["date"] for p in report.preview] == ["2024-01-10", "2024-03-15"]
        assert [p["amount"] for p in report.preview] == ["100.50", "300.00"]
        assert report.preview[0]["debitAccountName"] == "Caixa"

    def test_reimport_reports_existing_documents(
        self, exporter, importer, company, ledger_entries
    ):
        export = exporter.export_ledger_entries(company.id, 2024)
        report = importer(
            RecordKind.LEDGER_ENTRIES, export.content.decode("utf-8"), dry_run=True
        )
        assert [(e.line_number, e.code) for e in report.errors] == [
            (1, "DUPLICATE_CONSTRAINT_VIOLATION")
        ]

    def test_comma_delimiter(self, session, company, ledger_entries):
        exporter = BulkExportPipeline(session, ExportSettings(delimiter=","))
        lines = _lines(exporter.export_ledger_entries(company.id, 2024))
        assert lines[0].startswith("debitAccountCode,debitAccountName,")

    def test_memo_with_delimiter_is_quoted(self, importer, exporter, company, accounts):
        importer(
            RecordKind.LEDGER_ENTRIES,
            'debitAccountCode;creditAccountCode;date;amount;memo\n'
            '1.1.01;3.1.01;2024-05-02;10.00;"Venda; à vista"\n',
        )
        lines = _lines(exporter.export_ledger_entries(company.id, 2024))
        assert lines[1].endswith(';10.00;"Venda; à vista";')

    @pytest.mark.parametrize(
        "start,end",
        [
            (date(2024, 1, 1), None),
            (None, date(2024, 12, 31)),
            (date(2024, 2, 1), date(2024, 1, 1)),
        ],
    )
    def test_invalid_date_range(self, exporter, company, start, end):
        with pytest.raises(InvalidDateRangeError):
            exporter.export_ledger_entries(company.id, 2024, start=start, end=end)

    def test_half_range_message(self, exporter, company):
        with pytest.raises(InvalidDateRangeError) as exc_info:
            exporter.export_ledger_entries(company.id, 2024, start=date(2024, 1, 1))
        assert str(exc_info.value) == "Both start and end dates are required for a date range"

    def test_nothing_to_export(self, exporter, company, ledger_entries):
        with pytest.raises(NothingToExportError):
            exporter.export_ledger_entries(company.id, 2023)

    def test_unknown_company(self, exporter):
        with pytest.raises(CompanyNotFoundError):
            exporter.export_ledger_entries(uuid4(), 2024)

    def test_other_company_not_exported(self, exporter, other_company, ledger_entries):
        with pytest.raises(NothingToExportError):
            exporter.export_ledger_entries(other_company.id, 2024)

    def test_logs_export(self, exporter, company, ledger_entries, captured_logs):
        exporter.export_ledger_entries(company.id, 2024)
        records = [r for r in captured_logs() if r["message"] == "export_completed"]
        assert records[0]["row_count"] == 2
        assert records[0]["kind"] == "ledger-entries"


class TestFiscalAdjustmentExport:

    @pytest.fixture
    def adjustments(self, importer, accounts, adjustment_account, tax_parameters):
        report = importer(
            RecordKind.FISCAL_ADJUSTMENTS,
            "month;year;apportionmentKind;relationshipKind;ledgerAccountCode;"
            "adjustmentAccountCode;taxParameterCode;adjustmentDirection;description;amount\n"
            "5;2024;IRPJ;BOTH;3.1.01;PB-001;GLB-01;ADDITION;Maio;10\n"
            "2;2024;CSLL;LEDGER_ACCOUNT;3.1.01;;GLB-01;EXCLUSION;Fevereiro;20\n"
            "7;2023;IRPJ;ADJUSTMENT_ACCOUNT;;PB-001;GLB-01;ADDITION;Outro ano;30\n",
            fiscal_year=None,
        )
        # 2023 has no PB-001 account
        assert [e.line_number for e in report.errors] == [3]
        return report

    def test_rows_by_month(self, exporter, company, adjustments):
        export = exporter.export_fiscal_adjustments(company.id, 2024)
        lines = _lines(export)
        assert lines[0] == ";".join(FISCAL_ADJUSTMENT_EXPORT_HEADER)
        assert lines[1:] == [
            "2;2024;CSLL;LEDGER_ACCOUNT;3.1.01;Receita de Vendas;;;GLB-01;EXCLUSION;Fevereiro;20.00",
            "5;2024;IRPJ;BOTH;3.1.01;Receita de Vendas;PB-001;Prejuízo fiscal a compensar;"
            "GLB-01;ADDITION;Maio;10.00",
        ]
        assert export.filename == "fiscal_adjustments_2024.csv"

    def test_export_reimports_cleanly(self, exporter, importer, company, adjustments):
        export = exporter.export_fiscal_adjustments(company.id, 2024)
        report = importer(
            RecordKind.FISCAL_ADJUSTMENTS, export.content.decode("utf-8"), dry_run=True
        )
        assert report.success
        assert [p["month"] for p in report.preview] == [2, 5]

    def test_nothing_to_export(self, exporter, company, adjustments):
        with pytest.raises(NothingToExportError):
            exporter.export_fiscal_adjustments(company.id, 2022)
