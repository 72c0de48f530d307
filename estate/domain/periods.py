"""Calendar helpers for month-scoped ledger queries."""
from __future__ import annotations

import calendar
from datetime import date, datetime

from estate.core.exceptions import ValidationError


def month_start(value: date | datetime | str) -> date:
    """Normalize ``value`` to the first day of its month.

    Accepts ``date``/``datetime`` objects, ``YYYY-MM`` and ``YYYY-MM-DD`` strings.
    """

    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.replace(day=1)
    text_value = str(value).strip()
    try:
        if len(text_value) == 7:
            return datetime.strptime(text_value, "%Y-%m").date()
        return date.fromisoformat(text_value[:10]).replace(day=1)
    except ValueError as exc:
        raise ValidationError(f"invalid month '{value}'") from exc


def month_end(value: date | datetime | str) -> date:
    start = month_start(value)
    last_day = calendar.monthrange(start.year, start.month)[1]
    return start.replace(day=last_day)


def month_bounds(value: date | datetime | str) -> tuple[date, date]:
    """Return the inclusive ``(first, last)`` dates of the month containing ``value``."""

    return month_start(value), month_end(value)


def parse_day(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise ValidationError(f"invalid date '{value}'") from exc
