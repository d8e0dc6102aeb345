"""
lalur_ingestion -- bulk import and export of LALUR records.

Reads untrusted delimited files into ledger entries, fiscal adjustments,
chart-of-accounts rows and reference accounts, and exports ledger entries and
fiscal adjustments back in the same layout.

Architecture:
    lalur_ingestion/ is a top-level package.  Nothing in lalur_kernel/
    imports from ingestion.
"""
