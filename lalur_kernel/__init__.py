"""
LALUR Kernel - bookkeeping integrity core

Record-level rules for Brazilian IRPJ/CSLL bookkeeping:
- Double-entry ledger validation
- Conditional foreign keys for Parte B fiscal adjustments
- Accounting period cutoff (Período Contábil) with audit trail
- Time-sliced tax parameter associations
"""

__version__ = "0.1.0"
