"""File adapters for the delimited import/export formats."""

from lalur_ingestion.adapters.delimited import (
    DelimitedSource,
    RawLine,
    detect_delimiter,
    read_delimited,
    write_delimited,
)

__all__ = [
    "DelimitedSource",
    "RawLine",
    "detect_delimiter",
    "read_delimited",
    "write_delimited",
]
