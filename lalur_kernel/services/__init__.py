"""Kernel services - imperative shell around the pure domain rules."""

from lalur_kernel.services.accounting_period_service import AccountingPeriodService
from lalur_kernel.services.base import BaseService
from lalur_kernel.services.fiscal_adjustment_service import FiscalAdjustmentService
from lalur_kernel.services.ledger_entry_service import LedgerEntryService
from lalur_kernel.services.period_lock_guard import PeriodLockGuard
from lalur_kernel.services.tax_parameter_service import TaxParameterService

__all__ = [
    "AccountingPeriodService",
    "BaseService",
    "FiscalAdjustmentService",
    "LedgerEntryService",
    "PeriodLockGuard",
    "TaxParameterService",
]
