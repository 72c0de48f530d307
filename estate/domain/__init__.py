"""Pure domain objects for the wage ledger."""
from __future__ import annotations

from .periods import month_bounds, month_end, month_start, parse_day
from .wages import (
    BonusEntry,
    DailyTotals,
    ExtraWorkItem,
    LedgerLine,
    MonthTotals,
    PaymentMark,
    WageEntry,
    WorkerInfo,
    WorkerSalarySummary,
    compute_month_summary,
    daily_totals,
    filter_lines,
    filter_summaries,
    month_totals,
)

__all__ = [
    "BonusEntry",
    "DailyTotals",
    "ExtraWorkItem",
    "LedgerLine",
    "MonthTotals",
    "PaymentMark",
    "WageEntry",
    "WorkerInfo",
    "WorkerSalarySummary",
    "compute_month_summary",
    "daily_totals",
    "filter_lines",
    "filter_summaries",
    "month_bounds",
    "month_end",
    "month_start",
    "month_totals",
    "parse_day",
]
