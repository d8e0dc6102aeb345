"""
BulkImportPipeline -- untrusted delimited file in, deterministic report out.

Responsibility:
    Runs every data line of an upload through PARSE -> RESOLVE -> VALIDATE
    -> (PREVIEW | PERSIST) using the row handler for the record kind.  A
    failing line is recorded and skipped; it never aborts the batch.

Architecture position:
    Ingestion > Services -- imperative shell.  Reads through kernel
    selectors, validates with the kernel rulebook and the PeriodLockGuard,
    writes through the ORM.

Invariants enforced:
    - Line numbers are 1-based with the header excluded; blank lines are
      skipped but keep their number.
    - A line either satisfies every rule and is persisted (or previewed) or
      is reported; no partial row is ever written.
    - Each persisted row is its own SAVEPOINT.  With ``auto_commit`` each
      row is also committed, so a later failure cannot undo earlier rows.
    - Duplicate natural keys inside the file are reported on the later line.
      Collisions with stored rows are decided by the store's unique
      constraints and reported as DUPLICATE_CONSTRAINT_VIOLATION.
    - ``success == (skipped_lines == 0)``; ``preview`` only on dry runs.

Failure modes (raised, nothing imported):
    - EmptyFileError, FileTooLargeError.
    - MissingRequestParameterError -- company or fiscal year missing for a
      record kind that needs it.
    - CompanyNotFoundError, InactiveCompanyError.
    - InvalidEncodingError -- bytes do not decode with the configured encoding.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lalur_config.schema import ImportSettings
from lalur_kernel.domain.clock import Clock, SystemClock
from lalur_kernel.domain.enums import Status
from lalur_kernel.exceptions import (
    CompanyNotFoundError,
    DuplicateConstraintViolationError,
    DuplicateInFileError,
    InactiveCompanyError,
    LalurKernelError,
    MissingRequestParameterError,
)
from lalur_kernel.logging_config import LogContext, get_logger
from lalur_kernel.selectors.company_selector import CompanySelector
from lalur_kernel.selectors.reference_selector import ReferenceSelector
from lalur_kernel.services.period_lock_guard import PeriodLockGuard

from lalur_ingestion.adapters.delimited import DelimitedSource, read_delimited
from lalur_ingestion.domain.parsers import match_columns, split_line
from lalur_ingestion.domain.types import ImportLineError, ImportReport, ImportRequest
from lalur_ingestion.services.row_handlers import RowContext, RowHandler, handler_for

logger = get_logger("ingestion.import_pipeline")


class BulkImportPipeline:
    """
    One import call per ``run``.

    The pipeline owns its commit unit: it is the only writer in the
    codebase that calls ``session.commit()`` (per row, when
    ``settings.auto_commit`` is set).
    """

    def __init__(
        self,
        session: Session,
        settings: ImportSettings | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._settings = settings or ImportSettings()
        self._clock = clock or SystemClock()

    def run(self, request: ImportRequest) -> ImportReport:
        handler = handler_for(request.kind)
        self._check_request(request, handler)

        source = read_delimited(
            request.content,
            encoding=self._settings.encoding,
            max_bytes=self._settings.max_file_bytes,
        )

        import_id = str(uuid4())
        with LogContext.bind(
            import_id=import_id,
            company_id=request.company_id,
            actor_id=request.actor_id,
            producer="ingestion",
        ):
            logger.info(
                "import_started",
                extra={
                    "kind": handler.kind.value,
                    "fiscal_year": request.fiscal_year,
                    "dry_run": request.dry_run,
                    "delimiter": source.delimiter,
                    "line_count": len(source.lines),
                },
            )
            report = self._process(request, handler, source)
            logger.info(
                "import_completed",
                extra={
                    "kind": handler.kind.value,
                    "dry_run": request.dry_run,
                    "total_lines": report.total_lines,
                    "processed_lines": report.processed_lines,
                    "skipped_lines": report.skipped_lines,
                },
            )
        return report

    # ------------------------------------------------------------------
    # Request checks (fatal)
    # ------------------------------------------------------------------

    def _check_request(self, request: ImportRequest, handler: RowHandler) -> None:
        if handler.requires_company and request.company_id is None:
            raise MissingRequestParameterError("company_id")
        if handler.requires_fiscal_year and request.fiscal_year is None:
            raise MissingRequestParameterError("fiscal_year")
        if request.company_id is not None:
            company = CompanySelector(self._session).get(request.company_id)
            if company is None:
                raise CompanyNotFoundError(request.company_id)
            if company.status != Status.ACTIVE:
                raise InactiveCompanyError(request.company_id)

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def _process(
        self, request: ImportRequest, handler: RowHandler, source: DelimitedSource
    ) -> ImportReport:
        ctx = RowContext(
            session=self._session,
            references=ReferenceSelector(self._session),
            guard=PeriodLockGuard(self._session),
            actor_id=request.actor_id,
            company_id=request.company_id,
            fiscal_year=request.fiscal_year,
            today=self._clock.today(),
            min_reference_year=self._settings.min_reference_year,
        )
        mapping = match_columns(source.header, handler.layout)
        header_width = len(source.header)

        errors: list[ImportLineError] = []
        preview: list[dict[str, Any]] = []
        seen: dict[tuple, int] = {}
        processed = 0

        for raw in source.lines:
            try:
                line = split_line(raw, handler.layout, mapping, header_width)
                row = handler.parse(line)
                key = handler.natural_key(row)
                if key is not None and key in seen:
                    raise DuplicateInFileError(
                        f"Duplicate {key[0]} in file: {key[1]}. "
                        f"First occurrence at line {seen[key]}",
                        field=key[0],
                    )
                candidate = handler.resolve(row, ctx)
                handler.validate(candidate, ctx)
                if request.dry_run:
                    conflict = handler.find_conflict(candidate, ctx)
                    if conflict is not None:
                        raise DuplicateConstraintViolationError(handler.entity, conflict)
                    preview.append(handler.preview(candidate))
                else:
                    self._persist(handler, candidate, ctx)
            except LalurKernelError as exc:
                errors.append(
                    ImportLineError(line_number=raw.line_number, error=str(exc), code=exc.code)
                )
                logger.info(
                    "import_row_skipped",
                    extra={
                        "line_number": raw.line_number,
                        "error_code": exc.code,
                        "error": str(exc),
                    },
                )
                continue

            if key is not None:
                seen[key] = raw.line_number
            processed += 1

        skipped = len(errors)
        success = skipped == 0
        if success:
            message = f"Successfully processed {processed} lines"
        else:
            message = f"Processed {processed} lines with {skipped} errors"

        return ImportReport(
            success=success,
            message=message,
            total_lines=len(source.lines),
            processed_lines=processed,
            skipped_lines=skipped,
            errors=tuple(errors),
            preview=tuple(preview) if request.dry_run else None,
        )

    def _persist(self, handler: RowHandler, candidate: Any, ctx: RowContext) -> None:
        """Write one row inside its own SAVEPOINT."""
        instance = handler.build(candidate, ctx)
        savepoint = self._session.begin_nested()
        try:
            self._session.add(instance)
            self._session.flush()
        except IntegrityError as exc:
            savepoint.rollback()
            raise DuplicateConstraintViolationError(
                handler.entity, handler.describe(candidate)
            ) from exc
        savepoint.commit()
        if self._settings.auto_commit:
            self._session.commit()
