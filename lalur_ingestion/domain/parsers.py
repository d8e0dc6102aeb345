"""
Field parsing for import lines.

Column matching (header names or position) plus typed field parsers.  Every
parser raises a RecordValidationError subclass naming the column, which the
pipeline records against the line.

Architecture: lalur_ingestion/domain.  ZERO I/O.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TypeVar

from lalur_kernel.exceptions import (
    InvalidFieldValueError,
    MalformedRowError,
    MissingRequiredFieldError,
)

from lalur_ingestion.adapters.delimited import RawLine
from lalur_ingestion.domain.types import LineLayout, ParsedLine

E = TypeVar("E", bound=Enum)

_TRUE = frozenset({"true", "yes", "sim", "1"})
_FALSE = frozenset({"false", "no", "não", "nao", "0"})


# -----------------------------------------------------------------------------
# Column matching
# -----------------------------------------------------------------------------


def match_columns(header: tuple[str, ...], layout: LineLayout) -> dict[str, int] | None:
    """
    Map canonical column names to header positions.

    Returns None when the header does not name every required column; the
    caller then falls back to positional matching.  Extra header columns (an
    export's display-name columns, for instance) are ignored.
    """
    positions = {name.strip().lower(): i for i, name in enumerate(header)}
    mapping: dict[str, int] = {}
    for column in layout.columns:
        index = positions.get(column.lower())
        if index is not None:
            mapping[column] = index
    if not all(column in mapping for column in layout.required):
        return None
    return mapping


def split_line(
    raw: RawLine,
    layout: LineLayout,
    mapping: dict[str, int] | None,
    header_width: int,
) -> ParsedLine:
    """Assign a line's fields to canonical columns or raise MALFORMED_ROW."""
    count = len(raw.fields)
    if mapping is None:
        low, high = layout.min_fields, len(layout.columns)
        if not low <= count <= high:
            expected = str(high) if low == high else f"{low} to {high}"
            raise MalformedRowError(
                f"Expected {expected} columns, got {count}",
                details={"field_count": count},
            )
        values = {
            column: raw.fields[i] if i < count else ""
            for i, column in enumerate(layout.columns)
        }
        return ParsedLine(line_number=raw.line_number, values=values)

    needed = max(mapping[c] for c in layout.required) + 1
    if not needed <= count <= header_width:
        raise MalformedRowError(
            f"Expected {header_width} columns, got {count}",
            details={"field_count": count},
        )
    values = {
        column: raw.fields[index] if index < count else ""
        for column, index in mapping.items()
    }
    return ParsedLine(line_number=raw.line_number, values=values)


# -----------------------------------------------------------------------------
# Typed fields
# -----------------------------------------------------------------------------


def require(line: ParsedLine, column: str) -> str:
    value = line.get(column).strip()
    if not value:
        raise MissingRequiredFieldError(f"{column} is required", field=column)
    return value


def optional(line: ParsedLine, column: str) -> str | None:
    value = line.get(column).strip()
    return value or None


def parse_date(raw: str, column: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise InvalidFieldValueError(
            f"Invalid date format. Expected YYYY-MM-DD, got: {raw}", field=column
        ) from None


def parse_decimal(raw: str, column: str) -> Decimal:
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise InvalidFieldValueError(
            f"Invalid {column} format: {raw}", field=column
        ) from None
    if not value.is_finite():
        raise InvalidFieldValueError(f"Invalid {column} format: {raw}", field=column)
    return value


def parse_int(raw: str, column: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InvalidFieldValueError(
            f"Invalid {column}: {raw} (expected an integer)", field=column
        ) from None


def parse_bool(raw: str, column: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise InvalidFieldValueError(
        f"Invalid {column}: {raw} (expected true/false, sim/não, 1/0)", field=column
    )


def parse_enum(enum_cls: type[E], raw: str, column: str) -> E:
    try:
        return enum_cls(raw.strip().upper())
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        raise InvalidFieldValueError(
            f"Invalid {column}: {raw}. Valid values: {valid}", field=column
        ) from None
