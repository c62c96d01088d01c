"""
Redsteep Ledger
================

The trusted, read-only collection of authoritative batch records.

Components:
    - index.py:     LedgerIndex (identity lookup, search)
    - loader.py:    JSON/YAML loaders and the bundled demo ledger
    - validator.py: Ledger/token validation and JSON Schema export
"""
