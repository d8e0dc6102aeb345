"""Read-only selectors."""

from lalur_kernel.selectors.base import BaseSelector
from lalur_kernel.selectors.company_selector import CompanySelector
from lalur_kernel.selectors.record_selector import RecordSelector
from lalur_kernel.selectors.reference_selector import ReferenceSelector

__all__ = [
    "BaseSelector",
    "CompanySelector",
    "RecordSelector",
    "ReferenceSelector",
]
