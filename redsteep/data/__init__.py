"""Bundled ledger fixtures."""
