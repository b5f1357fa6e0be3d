"""
Kakeibo - Household Ledger

A small household account book: photograph a receipt, review the items
an extraction engine reads from it, and commit them as expenses.

DESIGN PRINCIPLES:
1. Engine suggests → Human reviews → Ledger records
2. Engines are interchangeable; none is trusted blindly
3. Failures are explained, never fatal
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Kakeibo Team"
