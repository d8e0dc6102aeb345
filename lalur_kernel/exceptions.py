"""
Typed Exception Hierarchy for the LALUR Kernel.

Every error surfaced to a caller is a typed exception with a class-level
``code`` (machine-readable, stable) and structured attributes.  Callers
catch by type and read attributes; they never parse messages.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LalurKernelError (base)
    |
    +-- RecordValidationError            (carries field + details)
    |   +-- UnresolvedReferenceError
    |   +-- DoubleEntryViolationError
    |   +-- InvalidAmountError
    |   +-- FiscalYearMismatchError
    |   +-- ConditionalForeignKeyViolationError
    |   +-- MissingRequiredFieldError
    |   +-- InvalidFieldValueError
    |   +-- InvalidReferencePeriodError
    |   +-- InactiveReferenceError
    |   +-- MalformedRowError
    |   +-- DuplicateInFileError
    |   +-- TemporalValueError
    |       +-- InvalidTemporalValueError
    |       +-- DuplicateTemporalValueError
    |       +-- UnexpectedTemporalValueError
    |
    +-- PeriodError
    |   +-- PeriodLockViolationError
    |   +-- FutureCutoffError
    |   +-- CutoffRegressionError
    |   +-- CutoffUnchangedError
    |
    +-- RequestError
    |   +-- MissingRequestParameterError
    |   +-- FileImportError
    |   |   +-- EmptyFileError
    |   |   +-- FileTooLargeError
    |   +-- InvalidDateRangeError
    |
    +-- NotFoundError
    |   +-- CompanyNotFoundError
    |   +-- RecordNotFoundError
    |   +-- NothingToExportError
    |
    +-- PersistenceError
        +-- DuplicateConstraintViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                            | When Raised
--------------|---------------------------------|-----------------------------------
Validation    | UNRESOLVED_REFERENCE            | Code/id does not resolve in scope
              | DOUBLE_ENTRY_VIOLATION          | Debit account == credit account
              | INVALID_AMOUNT                  | Amount <= 0
              | FISCAL_YEAR_MISMATCH            | Account FY != entry FY
              | CONDITIONAL_FK_VIOLATION        | FK set does not match relationship kind
              | MISSING_REQUIRED_FIELD          | Required field blank
              | INVALID_FIELD_VALUE             | Unparseable date/number/enum
              | INVALID_REFERENCE_PERIOD        | Month outside 1-12 or year too old
              | INACTIVE_REFERENCE              | Referenced record is INACTIVE
              | MALFORMED_ROW                   | Wrong field count in an import row
              | DUPLICATE_IN_FILE               | Natural key repeated inside one file
--------------|---------------------------------|-----------------------------------
Temporal      | INVALID_TEMPORAL_VALUE          | Month/quarter XOR or range broken
              | DUPLICATE_TEMPORAL_VALUE        | (association, year, month, quarter) exists
              | UNEXPECTED_TEMPORAL_VALUE       | Temporal value on a GLOBAL parameter
--------------|---------------------------------|-----------------------------------
Period        | PERIOD_LOCKED                   | Reference date before cutoff
              | FUTURE_CUTOFF                   | New cutoff after today
              | CUTOFF_REGRESSION               | New cutoff before current cutoff
              | CUTOFF_UNCHANGED                | New cutoff equals current cutoff
--------------|---------------------------------|-----------------------------------
Request       | MISSING_REQUEST_PARAMETER       | Company / fiscal year not supplied
              | EMPTY_FILE                      | Upload empty or header blank
              | FILE_TOO_LARGE                  | Upload above configured limit
              | INVALID_DATE_RANGE              | Export range incomplete or inverted
--------------|---------------------------------|-----------------------------------
Not found     | COMPANY_NOT_FOUND               | Company id unknown
              | RECORD_NOT_FOUND                | Record id unknown or foreign company
              | NOTHING_TO_EXPORT               | Export selection is empty
--------------|---------------------------------|-----------------------------------
Persistence   | DUPLICATE_CONSTRAINT_VIOLATION  | Store uniqueness constraint fired

===============================================================================
HANDLING PATTERNS
===============================================================================

Pure validators never raise.  They return a ``ValidationResult`` and the
service layer raises the typed exception matching its first error with
``raise_for_result()``:

    result = validate_ledger_entry(draft, debit, credit)
    raise_for_result(result)

Bulk imports catch ``LalurKernelError`` per row and record ``str(exc)`` in the
report instead of aborting the batch.
"""

from __future__ import annotations

from datetime import date
from typing import Any


class LalurKernelError(Exception):
    """
    Base exception for all kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "LALUR_KERNEL_ERROR"


# =============================================================================
# Record validation
# =============================================================================


class RecordValidationError(LalurKernelError):
    """A candidate record broke a structural invariant."""

    code: str = "RECORD_VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.field = field
        self.details = details
        super().__init__(message)


class UnresolvedReferenceError(RecordValidationError):
    """A code or id did not resolve to a record in the required scope."""

    code: str = "UNRESOLVED_REFERENCE"


class DoubleEntryViolationError(RecordValidationError):
    """Debit and credit accounts are the same account."""

    code: str = "DOUBLE_ENTRY_VIOLATION"


class InvalidAmountError(RecordValidationError):
    """Amount is zero or negative."""

    code: str = "INVALID_AMOUNT"


class FiscalYearMismatchError(RecordValidationError):
    """Account fiscal year differs from the entry fiscal year."""

    code: str = "FISCAL_YEAR_MISMATCH"


class ConditionalForeignKeyViolationError(RecordValidationError):
    """Populated account ids do not match the relationship kind."""

    code: str = "CONDITIONAL_FK_VIOLATION"


class MissingRequiredFieldError(RecordValidationError):
    """A required field is missing or blank."""

    code: str = "MISSING_REQUIRED_FIELD"


class InvalidFieldValueError(RecordValidationError):
    """A field could not be parsed into its declared type."""

    code: str = "INVALID_FIELD_VALUE"


class InvalidReferencePeriodError(RecordValidationError):
    """Reference month or year is outside the accepted range."""

    code: str = "INVALID_REFERENCE_PERIOD"


class InactiveReferenceError(RecordValidationError):
    """A referenced record exists but is INACTIVE."""

    code: str = "INACTIVE_REFERENCE"


class MalformedRowError(RecordValidationError):
    """An import row has the wrong number of fields."""

    code: str = "MALFORMED_ROW"


class DuplicateInFileError(RecordValidationError):
    """The same natural key appears twice in one import file."""

    code: str = "DUPLICATE_IN_FILE"


class TemporalValueError(RecordValidationError):
    """Base exception for temporal value errors."""

    code: str = "TEMPORAL_VALUE_ERROR"


class InvalidTemporalValueError(TemporalValueError):
    """Month/quarter XOR, nature match, or range rule broken."""

    code: str = "INVALID_TEMPORAL_VALUE"


class DuplicateTemporalValueError(TemporalValueError):
    """The (association, year, month, quarter) slice already exists."""

    code: str = "DUPLICATE_TEMPORAL_VALUE"


class UnexpectedTemporalValueError(TemporalValueError):
    """A temporal value was attached to a GLOBAL parameter."""

    code: str = "UNEXPECTED_TEMPORAL_VALUE"


_VALIDATION_ERRORS: dict[str, type[RecordValidationError]] = {
    cls.code: cls
    for cls in (
        UnresolvedReferenceError,
        DoubleEntryViolationError,
        InvalidAmountError,
        FiscalYearMismatchError,
        ConditionalForeignKeyViolationError,
        MissingRequiredFieldError,
        InvalidFieldValueError,
        InvalidReferencePeriodError,
        InactiveReferenceError,
        MalformedRowError,
        DuplicateInFileError,
        InvalidTemporalValueError,
        DuplicateTemporalValueError,
        UnexpectedTemporalValueError,
    )
}


def error_from_validation(error: Any) -> RecordValidationError:
    """Build the typed exception matching a ``ValidationError`` DTO's code."""
    cls = _VALIDATION_ERRORS.get(error.code, RecordValidationError)
    return cls(error.message, field=error.field, details=error.details)


def raise_for_result(result: Any) -> None:
    """Raise the typed exception for the first error of a failed result."""
    if not result.is_valid:
        raise error_from_validation(result.errors[0])


# =============================================================================
# Accounting period
# =============================================================================


class PeriodError(LalurKernelError):
    """Base exception for accounting period errors."""

    code: str = "PERIOD_ERROR"


class PeriodLockViolationError(PeriodError):
    """Record reference date falls before the company's accounting cutoff."""

    code: str = "PERIOD_LOCKED"

    def __init__(self, reference_date: date, cutoff: date, operation: str):
        self.reference_date = reference_date
        self.cutoff = cutoff
        self.operation = operation
        super().__init__(
            f"Cannot {operation} record dated {reference_date.isoformat()}: "
            f"before accounting period cutoff {cutoff.isoformat()}"
        )


class FutureCutoffError(PeriodError):
    """New cutoff is later than today."""

    code: str = "FUTURE_CUTOFF"

    def __init__(self, new_cutoff: date, today: date):
        self.new_cutoff = new_cutoff
        self.today = today
        super().__init__(
            f"Accounting period cutoff cannot be a future date: "
            f"{new_cutoff.isoformat()} (today: {today.isoformat()})"
        )


class CutoffRegressionError(PeriodError):
    """New cutoff would move the cutoff backward."""

    code: str = "CUTOFF_REGRESSION"

    def __init__(self, current_cutoff: date, new_cutoff: date):
        self.current_cutoff = current_cutoff
        self.new_cutoff = new_cutoff
        super().__init__(
            f"Accounting period cutoff cannot move backward: "
            f"current {current_cutoff.isoformat()}, requested {new_cutoff.isoformat()}"
        )


class CutoffUnchangedError(PeriodError):
    """New cutoff equals the current cutoff."""

    code: str = "CUTOFF_UNCHANGED"

    def __init__(self, cutoff: date):
        self.cutoff = cutoff
        super().__init__(
            f"Accounting period cutoff is already {cutoff.isoformat()}"
        )


# =============================================================================
# Request-level
# =============================================================================


class RequestError(LalurKernelError):
    """Base exception for errors fatal to a whole request."""

    code: str = "REQUEST_ERROR"


class MissingRequestParameterError(RequestError):
    """A required request parameter was not supplied."""

    code: str = "MISSING_REQUEST_PARAMETER"

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Required parameter is missing: {parameter}")


class InactiveCompanyError(RequestError):
    """Imports into an INACTIVE company are refused."""

    code: str = "INACTIVE_COMPANY"

    def __init__(self, company_id: Any):
        self.company_id = company_id
        super().__init__(f"Company is not ACTIVE: {company_id}")


class FileImportError(RequestError):
    """Base exception for import file errors."""

    code: str = "FILE_IMPORT_ERROR"


class EmptyFileError(FileImportError):
    """Import file is empty or has no header line."""

    code: str = "EMPTY_FILE"

    def __init__(self, detail: str = "File is empty or has no header"):
        super().__init__(detail)


class FileTooLargeError(FileImportError):
    """Import file exceeds the configured size limit."""

    code: str = "FILE_TOO_LARGE"

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"File size exceeds maximum allowed ({limit} bytes). "
            f"Current size: {size} bytes"
        )


class InvalidEncodingError(FileImportError):
    """Import file bytes are not valid in the configured encoding."""

    code: str = "INVALID_ENCODING"

    def __init__(self, encoding: str, position: int):
        self.encoding = encoding
        self.position = position
        super().__init__(
            f"File is not valid {encoding}: undecodable byte at offset {position}"
        )


class InvalidDateRangeError(RequestError):
    """Export date range is incomplete or inverted."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start: date | None, end: date | None, reason: str):
        self.start = start
        self.end = end
        super().__init__(reason)


# =============================================================================
# Not found
# =============================================================================


class NotFoundError(LalurKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class CompanyNotFoundError(NotFoundError):
    """Company id does not exist."""

    code: str = "COMPANY_NOT_FOUND"

    def __init__(self, company_id: Any):
        self.company_id = company_id
        super().__init__(f"Company not found: {company_id}")


class RecordNotFoundError(NotFoundError):
    """Record does not exist or belongs to another company."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, entity: str, record_id: Any):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} not found: {record_id}")


class NothingToExportError(NotFoundError):
    """No records matched an export selection."""

    code: str = "NOTHING_TO_EXPORT"

    def __init__(self, company_id: Any, fiscal_year: int):
        self.company_id = company_id
        self.fiscal_year = fiscal_year
        super().__init__(
            f"No records found for company {company_id} and fiscal year {fiscal_year}"
        )


# =============================================================================
# Persistence
# =============================================================================


class PersistenceError(LalurKernelError):
    """Base exception for store-level failures."""

    code: str = "PERSISTENCE_ERROR"


class DuplicateConstraintViolationError(PersistenceError):
    """A uniqueness constraint in the store rejected the write."""

    code: str = "DUPLICATE_CONSTRAINT_VIOLATION"

    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} already exists: {key}")
