"""
Command line entry point (console script ``lalur``).

Usage:
    lalur import ledger-entries --file entries.csv --company <uuid> --fiscal-year 2024 [--dry-run]
    lalur import reference-accounts --file referencial.csv
    lalur export ledger-entries --company <uuid> --fiscal-year 2024 --output entries.csv
    lalur export fiscal-adjustments --company <uuid> --fiscal-year 2024

Import prints the report as JSON on stdout.  Exit status is 0 when every line
was processed, 1 when lines were skipped, 2 on a request-level error.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import date
from pathlib import Path
from uuid import UUID, uuid4

import yaml
from sqlalchemy.orm import Session

from lalur_config import Settings, get_settings
from lalur_kernel.db.engine import create_tables, get_session, init_engine_from_url
from lalur_kernel.exceptions import LalurKernelError
from lalur_kernel.logging_config import configure_logging, get_logger

from lalur_ingestion.domain.types import ImportRequest, RecordKind
from lalur_ingestion.services.export_pipeline import BulkExportPipeline
from lalur_ingestion.services.import_pipeline import BulkImportPipeline

logger = get_logger("ingestion.cli")

EXIT_OK = 0
EXIT_SKIPPED = 1
EXIT_ERROR = 2

EXPORTABLE = (RecordKind.LEDGER_ENTRIES.value, RecordKind.FISCAL_ADJUSTMENTS.value)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lalur",
        description="Bulk import and export of LALUR records.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML settings override.")
    parser.add_argument("--db-url", default=None, help="Database URL (overrides config).")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before running.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import a delimited file.")
    imp.add_argument("kind", choices=[k.value for k in RecordKind])
    imp.add_argument("--file", required=True, type=Path, help="Path to the file.")
    imp.add_argument("--company", type=UUID, default=None, help="Company UUID.")
    imp.add_argument("--fiscal-year", type=int, default=None)
    imp.add_argument("--dry-run", action="store_true", help="Validate and preview only.")
    imp.add_argument(
        "--actor-id",
        type=UUID,
        default=None,
        help="Actor UUID for audit (default: LALUR_ACTOR_ID env or new UUID).",
    )

    exp = sub.add_parser("export", help="Export records in the import layout.")
    exp.add_argument("kind", choices=EXPORTABLE)
    exp.add_argument("--company", type=UUID, required=True, help="Company UUID.")
    exp.add_argument("--fiscal-year", type=int, required=True)
    exp.add_argument("--start", type=date.fromisoformat, default=None, help="YYYY-MM-DD")
    exp.add_argument("--end", type=date.fromisoformat, default=None, help="YYYY-MM-DD")
    exp.add_argument("--output", type=Path, default=None, help="Output file (default: stdout).")
    return parser


def _actor(args: argparse.Namespace) -> UUID:
    if args.actor_id is not None:
        return args.actor_id
    return UUID(os.environ.get("LALUR_ACTOR_ID", str(uuid4())))


def _run_import(args: argparse.Namespace, session: Session, settings: Settings) -> int:
    source_path = args.file.resolve()
    if not source_path.is_file():
        print(f"ERROR: File not found: {source_path}", file=sys.stderr)
        return EXIT_ERROR

    request = ImportRequest(
        kind=RecordKind(args.kind),
        content=source_path.read_bytes(),
        actor_id=_actor(args),
        company_id=args.company,
        fiscal_year=args.fiscal_year,
        dry_run=args.dry_run,
    )
    pipeline = BulkImportPipeline(session, settings.imports)
    report = pipeline.run(request)
    if not args.dry_run:
        session.commit()
    print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    return EXIT_OK if report.success else EXIT_SKIPPED


def _run_export(args: argparse.Namespace, session: Session, settings: Settings) -> int:
    pipeline = BulkExportPipeline(session, settings.exports)
    if args.kind == RecordKind.LEDGER_ENTRIES.value:
        export = pipeline.export_ledger_entries(
            args.company, args.fiscal_year, args.start, args.end
        )
    else:
        export = pipeline.export_fiscal_adjustments(args.company, args.fiscal_year)

    if args.output is None:
        sys.stdout.write(export.content.decode(export.encoding))
    else:
        args.output.write_bytes(export.content)
        print(f"Wrote {export.row_count} rows to {args.output}", file=sys.stderr)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = get_settings(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return EXIT_ERROR

    configure_logging(level=settings.logging.level)
    engine = init_engine_from_url(
        args.db_url or settings.database.url,
        echo=settings.database.echo,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
    )
    if args.create_tables:
        create_tables(engine)

    session = get_session()
    try:
        if args.command == "import":
            return _run_import(args, session, settings)
        return _run_export(args, session, settings)
    except LalurKernelError as e:
        session.rollback()
        logger.warning("cli_request_failed", extra={"error_code": e.code, "error": str(e)})
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
