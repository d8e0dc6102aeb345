"""
Row handlers: per-record-kind stages of the bulk import pipeline.

Each handler turns one ``ParsedLine`` into a persisted model in four steps:

    parse     text -> typed row (field parsers)
    resolve   codes -> ids (selectors, scoped by company and year)
    validate  kernel rulebook + period lock guard
    preview / build

Every step raises a ``LalurKernelError`` subclass on failure; the pipeline
records ``str(exc)`` against the line and moves on.  Handlers never write.

Architecture: lalur_ingestion/services.  Uses kernel selectors, pure
validators and the PeriodLockGuard; no commits.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from lalur_kernel.db.base import Base
from lalur_kernel.domain.adjustment_rules import (
    validate_fiscal_adjustment,
    validate_relationship,
)
from lalur_kernel.domain.dtos import (
    FiscalAdjustmentDraft,
    LedgerAccountInfo,
    LedgerEntryDraft,
)
from lalur_kernel.domain.enums import (
    AccountClass,
    AccountNature,
    AccountType,
    AdjustmentDirection,
    ApportionmentKind,
    RelationshipKind,
    Status,
)
from lalur_kernel.domain.ledger_rules import validate_ledger_entry
from lalur_kernel.exceptions import (
    InactiveReferenceError,
    InvalidFieldValueError,
    MissingRequestParameterError,
    UnresolvedReferenceError,
    raise_for_result,
)
from lalur_kernel.models.accounts import LedgerAccount, ReferenceAccount
from lalur_kernel.models.fiscal_adjustment import FiscalAdjustment
from lalur_kernel.models.ledger_entry import LedgerEntry
from lalur_kernel.selectors.reference_selector import ReferenceSelector
from lalur_kernel.services.period_lock_guard import OPERATION_IMPORT, PeriodLockGuard

from lalur_ingestion.domain.parsers import (
    optional,
    parse_bool,
    parse_date,
    parse_decimal,
    parse_enum,
    parse_int,
    require,
)
from lalur_ingestion.domain.types import (
    CHART_OF_ACCOUNTS_LAYOUT,
    FISCAL_ADJUSTMENT_LAYOUT,
    LEDGER_ENTRY_LAYOUT,
    REFERENCE_ACCOUNT_LAYOUT,
    LineLayout,
    ParsedLine,
    RecordKind,
)

MAX_DESCRIPTION_LENGTH = 1000
# Reference accounts may be published a few years ahead
VALIDITY_YEAR_HORIZON = 5


@dataclass
class RowContext:
    """Per-call state shared by every row of one import."""

    session: Session
    references: ReferenceSelector
    guard: PeriodLockGuard
    actor_id: UUID
    company_id: UUID | None
    fiscal_year: int | None
    today: date
    min_reference_year: int

    @property
    def company(self) -> UUID:
        if self.company_id is None:
            raise MissingRequestParameterError("company_id")
        return self.company_id

    @property
    def year(self) -> int:
        if self.fiscal_year is None:
            raise MissingRequestParameterError("fiscal_year")
        return self.fiscal_year


def _money(amount: Decimal) -> str:
    return f"{amount:.2f}"


class RowHandler(ABC):
    """Stages shared by every record kind."""

    kind: ClassVar[RecordKind]
    layout: ClassVar[LineLayout]
    entity: ClassVar[str]
    requires_company: ClassVar[bool] = True
    requires_fiscal_year: ClassVar[bool] = False

    @abstractmethod
    def parse(self, line: ParsedLine) -> Any:
        """Typed row, or raise."""

    def natural_key(self, row: Any) -> tuple | None:
        """Key for in-file duplicate detection; None when the kind has none."""
        return None

    @abstractmethod
    def resolve(self, row: Any, ctx: RowContext) -> Any:
        """Codes to ids; returns the candidate."""

    @abstractmethod
    def validate(self, candidate: Any, ctx: RowContext) -> None:
        """Rulebook and period lock."""

    def find_conflict(self, candidate: Any, ctx: RowContext) -> str | None:
        """Key of an already stored record the candidate would collide with."""
        return None

    @abstractmethod
    def preview(self, candidate: Any) -> dict[str, Any]:
        """Row-shaped dict keyed by the layout's column names."""

    @abstractmethod
    def build(self, candidate: Any, ctx: RowContext) -> Base:
        """Unsaved model instance."""

    def describe(self, candidate: Any) -> str:
        return ""


# =============================================================================
# Ledger entries
# =============================================================================


@dataclass(frozen=True)
class LedgerRow:
    debit_code: str
    credit_code: str
    reference_date: date
    amount: Decimal
    memo: str
    document_number: str | None


@dataclass(frozen=True)
class LedgerCandidate:
    draft: LedgerEntryDraft
    debit: LedgerAccountInfo | None
    credit: LedgerAccountInfo | None


class LedgerEntryHandler(RowHandler):
    kind = RecordKind.LEDGER_ENTRIES
    layout = LEDGER_ENTRY_LAYOUT
    entity = "LedgerEntry"
    requires_fiscal_year = True

    def parse(self, line: ParsedLine) -> LedgerRow:
        debit_code = require(line, "debitAccountCode")
        credit_code = require(line, "creditAccountCode")
        reference_date = parse_date(require(line, "date"), "date")
        amount = parse_decimal(require(line, "amount"), "amount")
        memo = require(line, "memo")
        return LedgerRow(
            debit_code=debit_code,
            credit_code=credit_code,
            reference_date=reference_date,
            amount=amount,
            memo=memo,
            document_number=optional(line, "documentNumber"),
        )

    def natural_key(self, row: LedgerRow) -> tuple | None:
        if row.document_number is None:
            return None
        return ("documentNumber", row.document_number)

    def _account(
        self, code: str, column: str, ctx: RowContext
    ) -> LedgerAccountInfo:
        account = ctx.references.ledger_account_by_code(ctx.company, code, ctx.year)
        if account is None:
            raise UnresolvedReferenceError(
                f"Account code '{code}' not found for company/year {ctx.year}",
                field=column,
            )
        return account

    def resolve(self, row: LedgerRow, ctx: RowContext) -> LedgerCandidate:
        debit = self._account(row.debit_code, "debitAccountCode", ctx)
        credit = self._account(row.credit_code, "creditAccountCode", ctx)
        draft = LedgerEntryDraft(
            company_id=ctx.company,
            debit_account_id=debit.id,
            credit_account_id=credit.id,
            reference_date=row.reference_date,
            amount=row.amount,
            memo=row.memo,
            fiscal_year=ctx.year,
            document_number=row.document_number,
        )
        return LedgerCandidate(draft=draft, debit=debit, credit=credit)

    def validate(self, candidate: LedgerCandidate, ctx: RowContext) -> None:
        raise_for_result(
            validate_ledger_entry(candidate.draft, candidate.debit, candidate.credit)
        )
        ctx.guard.authorize(
            candidate.draft.company_id, candidate.draft.reference_date, OPERATION_IMPORT
        )

    def find_conflict(self, candidate: LedgerCandidate, ctx: RowContext) -> str | None:
        draft = candidate.draft
        if draft.document_number is None:
            return None
        exists = ctx.session.execute(
            select(LedgerEntry.id).where(
                LedgerEntry.company_id == draft.company_id,
                LedgerEntry.fiscal_year == draft.fiscal_year,
                LedgerEntry.document_number == draft.document_number,
            )
        ).first()
        return f"document {draft.document_number}" if exists else None

    def preview(self, candidate: LedgerCandidate) -> dict[str, Any]:
        draft = candidate.draft
        return {
            "debitAccountCode": candidate.debit.code,
            "debitAccountName": candidate.debit.name,
            "creditAccountCode": candidate.credit.code,
            "creditAccountName": candidate.credit.name,
            "date": draft.reference_date.isoformat(),
            "amount": _money(draft.amount),
            "memo": draft.memo,
            "documentNumber": draft.document_number,
        }

    def build(self, candidate: LedgerCandidate, ctx: RowContext) -> LedgerEntry:
        draft = candidate.draft
        return LedgerEntry(
            company_id=draft.company_id,
            debit_account_id=draft.debit_account_id,
            credit_account_id=draft.credit_account_id,
            reference_date=draft.reference_date,
            amount=draft.amount,
            memo=draft.memo,
            document_number=draft.document_number,
            fiscal_year=draft.fiscal_year,
            status=Status.ACTIVE,
            created_by_id=ctx.actor_id,
        )

    def describe(self, candidate: LedgerCandidate) -> str:
        return f"document {candidate.draft.document_number}"


# =============================================================================
# Fiscal adjustments (Parte B)
# =============================================================================


@dataclass(frozen=True)
class AdjustmentRow:
    month: int
    year: int
    apportionment_kind: ApportionmentKind
    relationship_kind: RelationshipKind
    ledger_code: str | None
    adjustment_code: str | None
    tax_parameter_code: str
    direction: AdjustmentDirection
    description: str
    amount: Decimal


@dataclass(frozen=True)
class AdjustmentCandidate:
    draft: FiscalAdjustmentDraft
    row: AdjustmentRow


class FiscalAdjustmentHandler(RowHandler):
    """
    Parte B rows.  The reference year on each row scopes account lookups:
    ledger accounts by fiscal year, adjustment accounts by base year.
    """

    kind = RecordKind.FISCAL_ADJUSTMENTS
    layout = FISCAL_ADJUSTMENT_LAYOUT
    entity = "FiscalAdjustment"

    def parse(self, line: ParsedLine) -> AdjustmentRow:
        month = parse_int(require(line, "month"), "month")
        year = parse_int(require(line, "year"), "year")
        apportionment = parse_enum(
            ApportionmentKind, require(line, "apportionmentKind"), "apportionmentKind"
        )
        relationship = parse_enum(
            RelationshipKind, require(line, "relationshipKind"), "relationshipKind"
        )
        tax_code = require(line, "taxParameterCode")
        direction = parse_enum(
            AdjustmentDirection, require(line, "adjustmentDirection"), "adjustmentDirection"
        )
        description = require(line, "description")
        amount = parse_decimal(require(line, "amount"), "amount")
        return AdjustmentRow(
            month=month,
            year=year,
            apportionment_kind=apportionment,
            relationship_kind=relationship,
            ledger_code=optional(line, "ledgerAccountCode"),
            adjustment_code=optional(line, "adjustmentAccountCode"),
            tax_parameter_code=tax_code,
            direction=direction,
            description=description,
            amount=amount,
        )

    def resolve(self, row: AdjustmentRow, ctx: RowContext) -> AdjustmentCandidate:
        # Codes the relationship kind forbids are never looked up
        raise_for_result(
            validate_relationship(row.relationship_kind, row.ledger_code, row.adjustment_code)
        )
        parameter = ctx.references.tax_parameter_by_code(row.tax_parameter_code)
        if parameter is None:
            raise UnresolvedReferenceError(
                f"Tax parameter code '{row.tax_parameter_code}' not found",
                field="taxParameterCode",
            )
        if parameter.status != Status.ACTIVE:
            raise InactiveReferenceError(
                f"Tax parameter '{row.tax_parameter_code}' is not ACTIVE. "
                f"Status: {Status(parameter.status).value}",
                field="taxParameterCode",
            )

        ledger_id = None
        if row.ledger_code is not None:
            account = ctx.references.ledger_account_by_code(
                ctx.company, row.ledger_code, row.year
            )
            if account is None:
                raise UnresolvedReferenceError(
                    f"Account code '{row.ledger_code}' not found for "
                    f"company/year {row.year}",
                    field="ledgerAccountCode",
                )
            ledger_id = account.id

        adjustment_id = None
        if row.adjustment_code is not None:
            adjustment = ctx.references.adjustment_account_by_code(
                ctx.company, row.adjustment_code, row.year
            )
            if adjustment is None:
                raise UnresolvedReferenceError(
                    f"Adjustment account code '{row.adjustment_code}' not found for "
                    f"company/year {row.year}",
                    field="adjustmentAccountCode",
                )
            adjustment_id = adjustment.id

        draft = FiscalAdjustmentDraft(
            company_id=ctx.company,
            reference_month=row.month,
            reference_year=row.year,
            apportionment_kind=row.apportionment_kind,
            relationship_kind=row.relationship_kind,
            ledger_account_id=ledger_id,
            adjustment_account_id=adjustment_id,
            tax_parameter_id=parameter.id,
            direction=row.direction,
            description=row.description,
            amount=row.amount,
        )
        return AdjustmentCandidate(draft=draft, row=row)

    def validate(self, candidate: AdjustmentCandidate, ctx: RowContext) -> None:
        # Period first: reference_date needs a valid month
        raise_for_result(validate_fiscal_adjustment(candidate.draft, ctx.min_reference_year))
        ctx.guard.authorize(
            candidate.draft.company_id, candidate.draft.reference_date, OPERATION_IMPORT
        )

    def preview(self, candidate: AdjustmentCandidate) -> dict[str, Any]:
        draft, row = candidate.draft, candidate.row
        return {
            "month": draft.reference_month,
            "year": draft.reference_year,
            "apportionmentKind": draft.apportionment_kind.value,
            "relationshipKind": draft.relationship_kind.value,
            "ledgerAccountCode": row.ledger_code,
            "adjustmentAccountCode": row.adjustment_code,
            "taxParameterCode": row.tax_parameter_code,
            "adjustmentDirection": draft.direction.value,
            "description": draft.description,
            "amount": _money(draft.amount),
        }

    def build(self, candidate: AdjustmentCandidate, ctx: RowContext) -> FiscalAdjustment:
        draft = candidate.draft
        return FiscalAdjustment(
            company_id=draft.company_id,
            reference_month=draft.reference_month,
            reference_year=draft.reference_year,
            apportionment_kind=draft.apportionment_kind,
            relationship_kind=draft.relationship_kind,
            ledger_account_id=draft.ledger_account_id,
            adjustment_account_id=draft.adjustment_account_id,
            tax_parameter_id=draft.tax_parameter_id,
            direction=draft.direction,
            description=draft.description,
            amount=draft.amount,
            status=Status.ACTIVE,
            created_by_id=ctx.actor_id,
        )

    def describe(self, candidate: AdjustmentCandidate) -> str:
        draft = candidate.draft
        return f"{draft.reference_month:02d}/{draft.reference_year}"


# =============================================================================
# Chart of accounts (plano de contas)
# =============================================================================


@dataclass(frozen=True)
class ChartRow:
    code: str
    name: str
    account_type: AccountType
    reference_code: str
    account_class: AccountClass
    level: int
    nature: AccountNature
    affects_result: bool
    deductible: bool


@dataclass(frozen=True)
class ChartCandidate:
    row: ChartRow
    company_id: UUID
    fiscal_year: int
    reference_account_id: UUID


class ChartOfAccountsHandler(RowHandler):
    kind = RecordKind.CHART_OF_ACCOUNTS
    layout = CHART_OF_ACCOUNTS_LAYOUT
    entity = "LedgerAccount"
    requires_fiscal_year = True

    def parse(self, line: ParsedLine) -> ChartRow:
        code = require(line, "code")
        name = require(line, "name")
        account_type = parse_enum(AccountType, require(line, "accountType"), "accountType")
        reference_code = require(line, "referenceAccountCode")
        account_class = parse_enum(AccountClass, require(line, "class"), "class")
        level = parse_int(require(line, "level"), "level")
        if not 1 <= level <= 5:
            raise InvalidFieldValueError(
                f"Invalid level: {level} (must be between 1 and 5)", field="level"
            )
        nature = parse_enum(AccountNature, require(line, "nature"), "nature")
        affects_result = parse_bool(require(line, "affectsResult"), "affectsResult")
        deductible = parse_bool(require(line, "deductible"), "deductible")
        return ChartRow(
            code=code,
            name=name,
            account_type=account_type,
            reference_code=reference_code,
            account_class=account_class,
            level=level,
            nature=nature,
            affects_result=affects_result,
            deductible=deductible,
        )

    def natural_key(self, row: ChartRow) -> tuple | None:
        return ("code", row.code)

    def resolve(self, row: ChartRow, ctx: RowContext) -> ChartCandidate:
        reference = ctx.references.reference_account_by_code(row.reference_code, ctx.year)
        if reference is None:
            raise UnresolvedReferenceError(
                f"Reference account code '{row.reference_code}' not found",
                field="referenceAccountCode",
            )
        if reference.status != Status.ACTIVE:
            raise InactiveReferenceError(
                f"Reference account '{row.reference_code}' is not ACTIVE",
                field="referenceAccountCode",
            )
        return ChartCandidate(
            row=row,
            company_id=ctx.company,
            fiscal_year=ctx.year,
            reference_account_id=reference.id,
        )

    def validate(self, candidate: ChartCandidate, ctx: RowContext) -> None:
        # Undated catalog rows: no period lock
        return None

    def find_conflict(self, candidate: ChartCandidate, ctx: RowContext) -> str | None:
        if ctx.references.ledger_account_exists(
            candidate.company_id, candidate.row.code, candidate.fiscal_year
        ):
            return self.describe(candidate)
        return None

    def preview(self, candidate: ChartCandidate) -> dict[str, Any]:
        row = candidate.row
        return {
            "code": row.code,
            "name": row.name,
            "accountType": row.account_type.value,
            "referenceAccountCode": row.reference_code,
            "class": row.account_class.value,
            "level": row.level,
            "nature": row.nature.value,
            "affectsResult": row.affects_result,
            "deductible": row.deductible,
        }

    def build(self, candidate: ChartCandidate, ctx: RowContext) -> LedgerAccount:
        row = candidate.row
        return LedgerAccount(
            company_id=candidate.company_id,
            code=row.code,
            name=row.name,
            fiscal_year=candidate.fiscal_year,
            account_type=row.account_type,
            reference_account_id=candidate.reference_account_id,
            account_class=row.account_class,
            level=row.level,
            nature=row.nature,
            affects_result=row.affects_result,
            deductible=row.deductible,
            status=Status.ACTIVE,
            created_by_id=ctx.actor_id,
        )

    def describe(self, candidate: ChartCandidate) -> str:
        return f"code {candidate.row.code} for fiscal year {candidate.fiscal_year}"


# =============================================================================
# Reference accounts (Conta Referencial RFB)
# =============================================================================


@dataclass(frozen=True)
class ReferenceRow:
    code: str
    description: str
    validity_year: int | None


class ReferenceAccountHandler(RowHandler):
    """Global catalog rows; no company context."""

    kind = RecordKind.REFERENCE_ACCOUNTS
    layout = REFERENCE_ACCOUNT_LAYOUT
    entity = "ReferenceAccount"
    requires_company = False

    def parse(self, line: ParsedLine) -> ReferenceRow:
        code = require(line, "code")
        description = require(line, "description")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise InvalidFieldValueError(
                f"description exceeds {MAX_DESCRIPTION_LENGTH} characters",
                field="description",
            )
        raw_year = optional(line, "validityYear")
        validity_year = parse_int(raw_year, "validityYear") if raw_year else None
        return ReferenceRow(code=code, description=description, validity_year=validity_year)

    def natural_key(self, row: ReferenceRow) -> tuple | None:
        return ("code", row.code, row.validity_year)

    def resolve(self, row: ReferenceRow, ctx: RowContext) -> ReferenceRow:
        return row

    def validate(self, candidate: ReferenceRow, ctx: RowContext) -> None:
        if candidate.validity_year is None:
            return
        latest = ctx.today.year + VALIDITY_YEAR_HORIZON
        if not ctx.min_reference_year <= candidate.validity_year <= latest:
            raise InvalidFieldValueError(
                f"Invalid validityYear: {candidate.validity_year} "
                f"(must be between {ctx.min_reference_year} and {latest})",
                field="validityYear",
            )

    def find_conflict(self, candidate: ReferenceRow, ctx: RowContext) -> str | None:
        if ctx.references.reference_account_exists(candidate.code, candidate.validity_year):
            return self.describe(candidate)
        return None

    def preview(self, candidate: ReferenceRow) -> dict[str, Any]:
        return {
            "code": candidate.code,
            "description": candidate.description,
            "validityYear": candidate.validity_year,
        }

    def build(self, candidate: ReferenceRow, ctx: RowContext) -> ReferenceAccount:
        return ReferenceAccount(
            code=candidate.code,
            description=candidate.description,
            validity_year=candidate.validity_year,
            status=Status.ACTIVE,
            created_by_id=ctx.actor_id,
        )

    def describe(self, candidate: ReferenceRow) -> str:
        year = candidate.validity_year if candidate.validity_year is not None else "any year"
        return f"code {candidate.code} ({year})"


HANDLERS: dict[RecordKind, type[RowHandler]] = {
    RecordKind.LEDGER_ENTRIES: LedgerEntryHandler,
    RecordKind.FISCAL_ADJUSTMENTS: FiscalAdjustmentHandler,
    RecordKind.CHART_OF_ACCOUNTS: ChartOfAccountsHandler,
    RecordKind.REFERENCE_ACCOUNTS: ReferenceAccountHandler,
}


def handler_for(kind: RecordKind) -> RowHandler:
    return HANDLERS[RecordKind(kind)]()
