"""
Finance Tracker - Core Package

Recurring-transaction engine for a personal finance tracker:
expands one entered transaction into an installment or monthly series,
edits or deletes "this and future" occurrences consistently, and derives
per-account exposure (available credit, declared balances).

DESIGN PRINCIPLES:
1. Amounts are integer cents, never floats
2. Validate everything before touching the store
3. Past occurrences of a series are never rewritten by a scoped edit
4. Derived balances are recomputed, never patched
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
