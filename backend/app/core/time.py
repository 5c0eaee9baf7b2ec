"""Calendar helpers shared by services."""

from __future__ import annotations

from datetime import date


def month_bounds(value: date) -> tuple[date, date]:
    """Return the half-open `[first_of_month, first_of_next_month)` range containing *value*."""
    start = value.replace(day=1)
    if start.month == 12:
        return start, start.replace(year=start.year + 1, month=1)
    return start, start.replace(month=start.month + 1)
