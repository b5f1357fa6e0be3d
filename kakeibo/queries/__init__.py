"""Ledger queries package."""

from kakeibo.queries.summary import (
    LedgerSummary,
    format_currency,
    months_remaining,
    remaining_days_in_month,
    summarize_ledger,
)

__all__ = [
    "LedgerSummary",
    "format_currency",
    "months_remaining",
    "remaining_days_in_month",
    "summarize_ledger",
]
