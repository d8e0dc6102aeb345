"""
Delimited text adapter: reads and writes the ``;`` / ``,`` row formats.

Uses the stdlib csv module, one physical line at a time so that reported line
numbers always match the file.  The delimiter is detected from the header:
``;`` when the header contains one, ``,`` otherwise.  A UTF-8 BOM is stripped.

Architecture: lalur_ingestion/adapters.  Bytes in, tuples out.  No DB or
service imports.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from lalur_kernel.exceptions import (
    EmptyFileError,
    FileTooLargeError,
    InvalidEncodingError,
)

SEMICOLON = ";"
COMMA = ","


def _get_encoding(encoding: str) -> str:
    if encoding.lower().replace("_", "-") in ("utf-8", "utf8"):
        return "utf-8-sig"  # Strip BOM if present
    return encoding


def detect_delimiter(header_line: str) -> str:
    return SEMICOLON if SEMICOLON in header_line else COMMA


@dataclass(frozen=True)
class RawLine:
    """One data line: 1-based number (header excluded) and its fields."""

    line_number: int
    fields: tuple[str, ...]


@dataclass(frozen=True)
class DelimitedSource:
    """A parsed upload: header, detected delimiter and non-blank data lines."""

    header: tuple[str, ...]
    delimiter: str
    lines: tuple[RawLine, ...]


def _split(line: str, delimiter: str) -> tuple[str, ...]:
    row = next(csv.reader([line], delimiter=delimiter), [])
    return tuple(field.strip() for field in row)


def read_delimited(
    content: bytes,
    encoding: str = "utf-8",
    max_bytes: int | None = None,
) -> DelimitedSource:
    """
    Decode and split an uploaded file.

    Blank lines are skipped but still advance the line counter.

    Raises:
        FileTooLargeError: content is larger than ``max_bytes``.
        EmptyFileError: content is empty or the header line is blank.
        InvalidEncodingError: content does not decode with ``encoding``.
    """
    if max_bytes is not None and len(content) > max_bytes:
        raise FileTooLargeError(len(content), max_bytes)
    if not content:
        raise EmptyFileError("File is empty")

    try:
        text = content.decode(_get_encoding(encoding))
    except UnicodeDecodeError as exc:
        raise InvalidEncodingError(encoding, exc.start) from exc
    physical = text.splitlines()
    if not physical or not physical[0].strip():
        raise EmptyFileError()

    delimiter = detect_delimiter(physical[0])
    header = _split(physical[0], delimiter)

    lines: list[RawLine] = []
    for number, line in enumerate(physical[1:], start=1):
        if not line.strip():
            continue
        lines.append(RawLine(line_number=number, fields=_split(line, delimiter)))

    return DelimitedSource(header=header, delimiter=delimiter, lines=tuple(lines))


def write_delimited(
    header: Sequence[str],
    rows: Iterable[Sequence[str]],
    delimiter: str = SEMICOLON,
    encoding: str = "utf-8",
) -> bytes:
    """Render header + rows; fields containing the delimiter are quoted."""
    buffer = io.StringIO(newline="")
    writer = csv.writer(
        buffer,
        delimiter=delimiter,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\n",
    )
    writer.writerow(header)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue().encode(encoding)
