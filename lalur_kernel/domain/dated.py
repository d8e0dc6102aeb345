"""
DatedRecord -- the capability every lockable record exposes.

Any record with an owning company and a reference date ("competencia") can be
passed to the period lock guard.  Ledger entries store the date directly;
fiscal adjustments derive it from their reference month.
"""

from datetime import date
from typing import Protocol, runtime_checkable
from uuid import UUID


@runtime_checkable
class DatedRecord(Protocol):
    """A record attributed to a calendar date and owned by a company."""

    company_id: UUID

    @property
    def reference_date(self) -> date: ...


def first_day_of_month(year: int, month: int) -> date:
    """Reference date of a month-scoped record."""
    return date(year, month, 1)
