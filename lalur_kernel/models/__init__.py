"""Domain models for the LALUR kernel."""

from lalur_kernel.models.accounts import (
    AdjustmentAccount,
    LedgerAccount,
    ReferenceAccount,
)
from lalur_kernel.models.company import AccountingPeriodAudit, Company
from lalur_kernel.models.fiscal_adjustment import FiscalAdjustment
from lalur_kernel.models.ledger_entry import LedgerEntry
from lalur_kernel.models.tax_parameter import (
    ParameterAssociation,
    TaxParameter,
    TaxParameterType,
    TemporalValue,
)

__all__ = [
    "AccountingPeriodAudit",
    "AdjustmentAccount",
    "Company",
    "FiscalAdjustment",
    "LedgerAccount",
    "LedgerEntry",
    "ParameterAssociation",
    "ReferenceAccount",
    "TaxParameter",
    "TaxParameterType",
    "TemporalValue",
]
