"""
Ledger entry rules -- double-entry validation for a single candidate entry.

Architecture: lalur_kernel/domain.  ZERO I/O.  Callers resolve the debit and
credit accounts (selectors) and pass snapshots in; an account that did not
resolve is passed as None.

Checks, in order, returning the first violation:
    1. both accounts resolved inside the entry's company -> UNRESOLVED_REFERENCE
    2. debit != credit                                    -> DOUBLE_ENTRY_VIOLATION
    3. amount > 0                                         -> INVALID_AMOUNT
    4. debit FY == credit FY == entry FY                  -> FISCAL_YEAR_MISMATCH
    5. memo is not blank                                  -> MISSING_REQUIRED_FIELD
"""

from __future__ import annotations

from decimal import Decimal

from lalur_kernel.domain.dtos import (
    LedgerAccountInfo,
    LedgerEntryDraft,
    ValidationError,
    ValidationResult,
)


def _unresolved(field_name: str, draft: LedgerEntryDraft) -> ValidationError:
    return ValidationError(
        code="UNRESOLVED_REFERENCE",
        message=(
            f"{field_name} not found for company {draft.company_id} "
            f"and fiscal year {draft.fiscal_year}"
        ),
        field=field_name,
    )


def validate_ledger_entry(
    draft: LedgerEntryDraft,
    debit_account: LedgerAccountInfo | None,
    credit_account: LedgerAccountInfo | None,
) -> ValidationResult:
    """Validate one candidate ledger entry against its resolved accounts."""
    if debit_account is None or draft.debit_account_id is None:
        return ValidationResult.failure(_unresolved("debit_account", draft))
    if credit_account is None or draft.credit_account_id is None:
        return ValidationResult.failure(_unresolved("credit_account", draft))
    for field_name, account in (
        ("debit_account", debit_account),
        ("credit_account", credit_account),
    ):
        if account.company_id != draft.company_id:
            return ValidationResult.failure(_unresolved(field_name, draft))

    if draft.debit_account_id == draft.credit_account_id:
        return ValidationResult.failure(
            ValidationError(
                code="DOUBLE_ENTRY_VIOLATION",
                message=(
                    f"Debit and credit accounts must be different "
                    f"(both are {debit_account.code})"
                ),
                field="credit_account",
                details={"account_code": debit_account.code},
            )
        )

    if draft.amount is None or draft.amount <= Decimal("0"):
        return ValidationResult.failure(
            ValidationError(
                code="INVALID_AMOUNT",
                message=f"Amount must be greater than zero, got {draft.amount}",
                field="amount",
            )
        )

    if not (debit_account.fiscal_year == credit_account.fiscal_year == draft.fiscal_year):
        return ValidationResult.failure(
            ValidationError(
                code="FISCAL_YEAR_MISMATCH",
                message=(
                    f"Account fiscal years (debit {debit_account.fiscal_year}, "
                    f"credit {credit_account.fiscal_year}) must match entry "
                    f"fiscal year {draft.fiscal_year}"
                ),
                field="fiscal_year",
                details={
                    "debit_fiscal_year": debit_account.fiscal_year,
                    "credit_fiscal_year": credit_account.fiscal_year,
                    "entry_fiscal_year": draft.fiscal_year,
                },
            )
        )

    if not draft.memo or not draft.memo.strip():
        return ValidationResult.failure(
            ValidationError(
                code="MISSING_REQUIRED_FIELD",
                message="memo is required",
                field="memo",
            )
        )

    return ValidationResult.success()
