"""Bulk import/export pipelines."""

from lalur_ingestion.services.export_pipeline import BulkExportPipeline
from lalur_ingestion.services.import_pipeline import BulkImportPipeline
from lalur_ingestion.services.row_handlers import (
    HANDLERS,
    RowContext,
    RowHandler,
    handler_for,
)

__all__ = [
    "BulkExportPipeline",
    "BulkImportPipeline",
    "HANDLERS",
    "RowContext",
    "RowHandler",
    "handler_for",
]
