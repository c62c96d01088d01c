"""
Redsteep — Batch Authenticity Verification
===========================================

Redsteep checks a scanned token against an immutable reference ledger of
product batches. A token only ever carries a claim; the ledger match is
what makes it authentic.

Architecture Overview:
    Token → Decode → Ledger Lookup → Duplicate Check → Rules → Outcome

Modules:
    - codec:     Token encoding/decoding with envelope validation
    - ledger:    In-memory ledger index, loaders, and validation
    - rules:     Recall/expiry business rules
    - verify:    Duplicate-presentation tracking (SeenSet)
    - pipeline:  The verify(token, now) orchestrator
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
