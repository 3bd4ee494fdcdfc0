"""Date windows and presets for show queries."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

#: Months of listings fetched when no explicit range is given.
DEFAULT_WINDOW_MONTHS = 2

DATE_PRESETS: dict[str, str] = {
    "today": "Today",
    "tomorrow": "Tomorrow",
    "next-7": "Next 7 Days",
    "next-30": "Next 30 Days",
    "this-month": "This Month",
    "next-month": "Next Month",
}


def format_local_datetime(dt: datetime) -> str:
    """``YYYY-MM-DD HH:MM:SS`` in local time, the format the events API expects."""
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def add_months(dt: datetime, months: int) -> datetime:
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def resolve_date_window(
    date_from: str | None = None,
    date_to: str | None = None,
    now: datetime | None = None,
) -> tuple[str, str]:
    """Return the ``(start_date, end_date)`` pair sent upstream.

    Bare dates are widened to the whole day; values that already carry a time
    go out as given.
    """
    now = (now or datetime.now()).replace(microsecond=0)
    start = format_local_datetime(now)
    end = format_local_datetime(add_months(now, DEFAULT_WINDOW_MONTHS))

    if date_from:
        start = date_from if ":" in date_from else f"{date_from} 00:00:00"
    if date_to:
        end = date_to if ":" in date_to else f"{date_to} 23:59:59"
    return start, end


def resolve_date_preset(value: str, today: date | None = None) -> tuple[str, str]:
    """Return ``(date_from, date_to)`` ISO dates for a named preset."""
    today = today or date.today()
    if value == "today":
        start = end = today
    elif value == "tomorrow":
        start = end = today + timedelta(days=1)
    elif value == "next-7":
        start, end = today, today + timedelta(days=7)
    elif value == "next-30":
        start, end = today, today + timedelta(days=30)
    elif value == "this-month":
        last = calendar.monthrange(today.year, today.month)[1]
        start, end = today, today.replace(day=last)
    elif value == "next-month":
        first = (today.replace(day=1) + timedelta(days=32)).replace(day=1)
        last = calendar.monthrange(first.year, first.month)[1]
        start, end = first, first.replace(day=last)
    else:
        raise ValueError(f"Unknown date preset: {value!r}. Available: {list(DATE_PRESETS)}")
    return start.isoformat(), end.isoformat()
