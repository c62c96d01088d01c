"""
Redsteep Business Rules
========================

Recall and expiry rules applied to a matched ledger record.

Components:
    - evaluator.py: RuleEvaluator (pure, deterministic)
"""
