"""
Ledger Summary Queries

Deterministic figures computed from the ledger store for the dashboard:
balance, a daily budget for the rest of the month, and savings progress.
"""

import calendar
from datetime import date
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel

from kakeibo.services.storage import LedgerStoreInterface


class LedgerSummary(BaseModel):
    """Headline numbers for the dashboard."""

    as_of: date
    balance: Decimal
    daily_budget: Decimal
    remaining_days: int
    savings_saved: Decimal
    savings_target: Decimal
    savings_percent: int


def remaining_days_in_month(today: date) -> int:
    """Days left in the month, today included."""
    last_day = calendar.monthrange(today.year, today.month)[1]
    return last_day - today.day + 1


def months_remaining(deadline: date, today: Optional[date] = None) -> int:
    """Whole calendar months between today and a goal deadline (may be negative)."""
    today = today or date.today()
    return (deadline.year - today.year) * 12 + (deadline.month - today.month)


def summarize_ledger(
    store: LedgerStoreInterface,
    today: Optional[date] = None,
) -> LedgerSummary:
    """
    Compute the dashboard summary.

    The daily budget spreads a positive balance over the days left in the
    month; with no positive balance there is nothing to spend.
    """
    today = today or date.today()

    balance = sum((t.amount for t in store.all_transactions()), Decimal("0"))
    days = remaining_days_in_month(today)
    daily_budget = balance / days if balance > 0 else Decimal("0")

    goals = store.list_goals()
    saved = sum((g.current for g in goals), Decimal("0"))
    target = sum((g.target for g in goals), Decimal("0"))
    percent = 0
    if target > 0:
        percent = int((saved / target * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return LedgerSummary(
        as_of=today,
        balance=balance,
        daily_budget=daily_budget,
        remaining_days=days,
        savings_saved=saved,
        savings_target=target,
        savings_percent=percent,
    )


def format_currency(amount: Decimal | int | float) -> str:
    """Yen display: floored to whole yen with thousands separators, e.g. ¥1,234."""
    whole = Decimal(str(amount)).to_integral_value(rounding=ROUND_FLOOR)
    return f"¥{int(whole):,}"
