from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Tuple

BudgetType = Literal["daily", "weekly", "monthly"]


def _week_number(day: date) -> int:
    # Weeks start on Sunday; the week holding January 1 is week 1
    jan1 = date(day.year, 1, 1)
    elapsed = (day - jan1).days
    jan1_weekday = (jan1.weekday() + 1) % 7  # Sunday = 0
    return (elapsed + jan1_weekday + 1 + 6) // 7


def current_period(kind: str, now: datetime | date) -> str:
    """
    Canonical key of the accounting window ``now`` falls in.

    daily -> ``2024-06-03``, weekly -> ``2024-W23``, monthly -> ``2024-06``.
    """
    day = now.date() if isinstance(now, datetime) else now
    if kind == "daily":
        return day.isoformat()
    if kind == "weekly":
        return f"{day.year}-W{_week_number(day):02d}"
    if kind == "monthly":
        return f"{day.year}-{day.month:02d}"
    raise ValueError(f"Unknown budget type: {kind!r}")




def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """Start of the calendar month of ``now`` and start of the next one."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end
