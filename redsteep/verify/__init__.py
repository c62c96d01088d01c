"""
Redsteep Duplicate Detection
=============================

Tracks which claim identities have already been presented.

Components:
    - tracker.py: SeenSet (atomic check-and-insert) and DuplicateTracker
"""
