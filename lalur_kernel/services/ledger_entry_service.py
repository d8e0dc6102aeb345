"""
LedgerEntryService -- single-record create / update / status change for
ledger entries.

Responsibility:
    Runs the same rulebook as the bulk importer: account resolution, the
    double-entry validator, and the period lock guard, then flushes.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - validate_ledger_entry passes before any write.
    - Create checks the new reference date against the cutoff.
    - Update checks the stored date, then the new date.
    - Status change checks the stored date.
    - Records are never hard-deleted.

Failure modes:
    - CompanyNotFoundError, RecordNotFoundError, PeriodLockViolationError,
      the RecordValidationError family, DuplicateConstraintViolationError.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from lalur_kernel.domain.dtos import LedgerEntryDraft
from lalur_kernel.domain.enums import Status
from lalur_kernel.domain.ledger_rules import validate_ledger_entry
from lalur_kernel.exceptions import (
    CompanyNotFoundError,
    RecordNotFoundError,
    raise_for_result,
)
from lalur_kernel.logging_config import get_logger
from lalur_kernel.models.ledger_entry import LedgerEntry
from lalur_kernel.selectors.company_selector import CompanySelector
from lalur_kernel.selectors.reference_selector import ReferenceSelector
from lalur_kernel.services.base import BaseService
from lalur_kernel.services.period_lock_guard import (
    OPERATION_CREATE,
    OPERATION_STATUS_CHANGE,
    OPERATION_UPDATE,
    PeriodLockGuard,
)

logger = get_logger("services.ledger_entry")


class LedgerEntryService(BaseService[LedgerEntry]):
    """Validated writes of ledger entries."""

    def __init__(self, session: Session, guard: PeriodLockGuard | None = None):
        super().__init__(session)
        self._guard = guard or PeriodLockGuard(session)
        self._companies = CompanySelector(session)
        self._references = ReferenceSelector(session)

    def _require_company(self, company_id: UUID) -> None:
        if self._companies.get(company_id) is None:
            raise CompanyNotFoundError(company_id)

    def _validate(self, draft: LedgerEntryDraft) -> None:
        debit = (
            self._references.ledger_account(draft.debit_account_id)
            if draft.debit_account_id is not None
            else None
        )
        credit = (
            self._references.ledger_account(draft.credit_account_id)
            if draft.credit_account_id is not None
            else None
        )
        raise_for_result(validate_ledger_entry(draft, debit, credit))

    def get(self, company_id: UUID, entry_id: UUID) -> LedgerEntry:
        entry = self.session.get(LedgerEntry, entry_id)
        if entry is None or entry.company_id != company_id:
            raise RecordNotFoundError("LedgerEntry", entry_id)
        return entry

    def create(self, draft: LedgerEntryDraft, actor_id: UUID) -> LedgerEntry:
        """Validate and persist a new entry."""
        self._require_company(draft.company_id)
        self._validate(draft)
        self._guard.authorize(draft.company_id, draft.reference_date, OPERATION_CREATE)

        entry = LedgerEntry(
            company_id=draft.company_id,
            debit_account_id=draft.debit_account_id,
            credit_account_id=draft.credit_account_id,
            reference_date=draft.reference_date,
            amount=draft.amount,
            memo=draft.memo.strip(),
            document_number=draft.document_number or None,
            fiscal_year=draft.fiscal_year,
            status=Status.ACTIVE,
            created_by_id=actor_id,
        )
        self._flush_unique(entry, "LedgerEntry", f"document {draft.document_number}")

        logger.info(
            "ledger_entry_created",
            extra={
                "entry_id": str(entry.id),
                "company_id": str(draft.company_id),
                "reference_date": draft.reference_date.isoformat(),
                "amount": str(draft.amount),
            },
        )
        return entry

    def update(self, entry_id: UUID, draft: LedgerEntryDraft, actor_id: UUID) -> LedgerEntry:
        """
        Replace an entry's content with ``draft``.

        The full new state is validated; nothing is diffed against the stored
        entry.
        """
        self._require_company(draft.company_id)
        entry = self.get(draft.company_id, entry_id)
        self._guard.authorize(entry.company_id, entry.reference_date, OPERATION_UPDATE)
        self._validate(draft)
        self._guard.authorize(draft.company_id, draft.reference_date, OPERATION_UPDATE)

        original_date = entry.reference_date

        def assign() -> None:
            entry.debit_account_id = draft.debit_account_id
            entry.credit_account_id = draft.credit_account_id
            entry.reference_date = draft.reference_date
            entry.amount = draft.amount
            entry.memo = draft.memo.strip()
            entry.document_number = draft.document_number or None
            entry.fiscal_year = draft.fiscal_year
            entry.updated_by_id = actor_id

        self._flush_unique(
            entry, "LedgerEntry", f"document {draft.document_number}", changes=assign
        )
        self.session.expire(entry, ["debit_account", "credit_account"])

        logger.info(
            "ledger_entry_updated",
            extra={
                "entry_id": str(entry.id),
                "original_date": original_date.isoformat(),
                "reference_date": draft.reference_date.isoformat(),
            },
        )
        return entry

    def set_status(
        self, company_id: UUID, entry_id: UUID, status: Status, actor_id: UUID
    ) -> LedgerEntry:
        """Activate or soft-delete an entry."""
        self._require_company(company_id)
        entry = self.get(company_id, entry_id)
        self._guard.authorize(entry.company_id, entry.reference_date, OPERATION_STATUS_CHANGE)

        entry.status = status
        entry.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "ledger_entry_status_changed",
            extra={"entry_id": str(entry.id), "status": Status(status).value},
        )
        return entry
