"""
FiscalAdjustmentService -- single-record create / update / status change for
Parte B fiscal adjustments.

Responsibility:
    Resolves the referenced ids inside the owning company, runs the
    conditional-FK rulebook and the period lock guard, then flushes.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - validate_fiscal_adjustment passes on every create and update; a change
      of relationship kind is validated from scratch.
    - Ledger accounts must belong to the company and to the reference year;
      adjustment accounts must belong to the company; the tax parameter must
      exist and be ACTIVE.
    - Period lock on the first day of the reference month.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from lalur_kernel.domain.adjustment_rules import (
    DEFAULT_MIN_REFERENCE_YEAR,
    validate_fiscal_adjustment,
)
from lalur_kernel.domain.dtos import FiscalAdjustmentDraft, ValidationError, ValidationResult
from lalur_kernel.domain.enums import Status
from lalur_kernel.exceptions import (
    CompanyNotFoundError,
    RecordNotFoundError,
    raise_for_result,
)
from lalur_kernel.logging_config import get_logger
from lalur_kernel.models.accounts import AdjustmentAccount, LedgerAccount
from lalur_kernel.models.fiscal_adjustment import FiscalAdjustment
from lalur_kernel.models.tax_parameter import TaxParameter
from lalur_kernel.selectors.company_selector import CompanySelector
from lalur_kernel.services.base import BaseService
from lalur_kernel.services.period_lock_guard import (
    OPERATION_CREATE,
    OPERATION_STATUS_CHANGE,
    OPERATION_UPDATE,
    PeriodLockGuard,
)

logger = get_logger("services.fiscal_adjustment")


def _unresolved(field: str, message: str) -> ValidationResult:
    return ValidationResult.failure(
        ValidationError(code="UNRESOLVED_REFERENCE", message=message, field=field)
    )


class FiscalAdjustmentService(BaseService[FiscalAdjustment]):
    """Validated writes of fiscal adjustments."""

    def __init__(
        self,
        session: Session,
        guard: PeriodLockGuard | None = None,
        min_reference_year: int = DEFAULT_MIN_REFERENCE_YEAR,
    ):
        super().__init__(session)
        self._guard = guard or PeriodLockGuard(session)
        self._companies = CompanySelector(session)
        self._min_year = min_reference_year

    def _require_company(self, company_id: UUID) -> None:
        if self._companies.get(company_id) is None:
            raise CompanyNotFoundError(company_id)

    def check_references(self, draft: FiscalAdjustmentDraft) -> ValidationResult:
        """Referenced ids exist inside the company and the reference year."""
        if draft.ledger_account_id is not None:
            account = self.session.get(LedgerAccount, draft.ledger_account_id)
            if (
                account is None
                or account.company_id != draft.company_id
                or account.fiscal_year != draft.reference_year
            ):
                return _unresolved(
                    "ledger_account_id",
                    f"Ledger account {draft.ledger_account_id} not found for "
                    f"company/year {draft.reference_year}",
                )
        if draft.adjustment_account_id is not None:
            adj = self.session.get(AdjustmentAccount, draft.adjustment_account_id)
            if adj is None or adj.company_id != draft.company_id:
                return _unresolved(
                    "adjustment_account_id",
                    f"Adjustment account {draft.adjustment_account_id} not found for company",
                )
        if draft.tax_parameter_id is not None:
            parameter = self.session.get(TaxParameter, draft.tax_parameter_id)
            if parameter is None:
                return _unresolved(
                    "tax_parameter_id", f"Tax parameter {draft.tax_parameter_id} not found"
                )
            if parameter.status != Status.ACTIVE:
                return ValidationResult.failure(
                    ValidationError(
                        code="INACTIVE_REFERENCE",
                        message=f"Tax parameter '{parameter.code}' is inactive",
                        field="tax_parameter_id",
                    )
                )
        return ValidationResult.success()

    def _validate(self, draft: FiscalAdjustmentDraft) -> None:
        raise_for_result(validate_fiscal_adjustment(draft, self._min_year))
        raise_for_result(self.check_references(draft))

    def get(self, company_id: UUID, adjustment_id: UUID) -> FiscalAdjustment:
        adjustment = self.session.get(FiscalAdjustment, adjustment_id)
        if adjustment is None or adjustment.company_id != company_id:
            raise RecordNotFoundError("FiscalAdjustment", adjustment_id)
        return adjustment

    def create(self, draft: FiscalAdjustmentDraft, actor_id: UUID) -> FiscalAdjustment:
        self._require_company(draft.company_id)
        self._validate(draft)
        self._guard.authorize(draft.company_id, draft.reference_date, OPERATION_CREATE)

        adjustment = FiscalAdjustment(created_by_id=actor_id, status=Status.ACTIVE)
        _apply(adjustment, draft)
        self._flush_unique(
            adjustment,
            "FiscalAdjustment",
            f"{draft.reference_month:02d}/{draft.reference_year}",
        )

        logger.info(
            "fiscal_adjustment_created",
            extra={
                "adjustment_id": str(adjustment.id),
                "company_id": str(draft.company_id),
                "relationship_kind": draft.relationship_kind.value,
                "reference_date": draft.reference_date.isoformat(),
            },
        )
        return adjustment

    def update(
        self, adjustment_id: UUID, draft: FiscalAdjustmentDraft, actor_id: UUID
    ) -> FiscalAdjustment:
        self._require_company(draft.company_id)
        adjustment = self.get(draft.company_id, adjustment_id)
        self._guard.authorize(
            adjustment.company_id, adjustment.reference_date, OPERATION_UPDATE
        )
        self._validate(draft)
        self._guard.authorize(draft.company_id, draft.reference_date, OPERATION_UPDATE)

        def assign() -> None:
            _apply(adjustment, draft)
            adjustment.updated_by_id = actor_id

        self._flush_unique(
            adjustment,
            "FiscalAdjustment",
            f"{draft.reference_month:02d}/{draft.reference_year}",
            changes=assign,
        )
        self.session.expire(
            adjustment, ["ledger_account", "adjustment_account", "tax_parameter"]
        )

        logger.info(
            "fiscal_adjustment_updated",
            extra={
                "adjustment_id": str(adjustment.id),
                "relationship_kind": draft.relationship_kind.value,
            },
        )
        return adjustment

    def set_status(
        self, company_id: UUID, adjustment_id: UUID, status: Status, actor_id: UUID
    ) -> FiscalAdjustment:
        self._require_company(company_id)
        adjustment = self.get(company_id, adjustment_id)
        self._guard.authorize(
            adjustment.company_id, adjustment.reference_date, OPERATION_STATUS_CHANGE
        )
        adjustment.status = status
        adjustment.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "fiscal_adjustment_status_changed",
            extra={"adjustment_id": str(adjustment.id), "status": Status(status).value},
        )
        return adjustment


def _apply(adjustment: FiscalAdjustment, draft: FiscalAdjustmentDraft) -> None:
    adjustment.company_id = draft.company_id
    adjustment.reference_month = draft.reference_month
    adjustment.reference_year = draft.reference_year
    adjustment.apportionment_kind = draft.apportionment_kind
    adjustment.relationship_kind = draft.relationship_kind
    adjustment.ledger_account_id = draft.ledger_account_id
    adjustment.adjustment_account_id = draft.adjustment_account_id
    adjustment.tax_parameter_id = draft.tax_parameter_id
    adjustment.direction = draft.direction
    adjustment.description = draft.description.strip()
    adjustment.amount = draft.amount
