"""Time-of-day buckets and show filtering.

The upstream API filters by date only, so hour-of-day filtering happens here
after every page has been fetched and normalized.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, MutableMapping

from listings.models import Show

log = logging.getLogger(__name__)

ALL_DAY = "all-day"


@dataclass(frozen=True)
class TimeFilter:
    value: str
    label: str
    start_hour: int
    end_hour: int


TIME_FILTERS: tuple[TimeFilter, ...] = (
    TimeFilter(ALL_DAY, "All Day", 0, 23),
    TimeFilter("morning", "Morning", 6, 11),
    TimeFilter("afternoon", "Afternoon", 12, 16),
    TimeFilter("evening", "Evening", 17, 20),
    TimeFilter("night", "Night", 21, 23),
)

_TIME_RE = re.compile(r"(\d+):(\d+)\s*(AM|PM)?", re.IGNORECASE)


def get_time_filter(value: str | None) -> TimeFilter | None:
    for tf in TIME_FILTERS:
        if tf.value == value:
            return tf
    return None


def parse_hour(time_str: str) -> int | None:
    """Convert ``"H:MM AM"``/``"H:MM PM"``/``"HH:MM"`` to a 24-hour hour.

    Returns ``None`` when the string has no ``H:MM`` part.
    """
    match = _TIME_RE.search(time_str)
    if not match:
        return None
    hour = int(match.group(1))
    period = (match.group(3) or "").upper()
    if period == "PM" and hour != 12:
        hour += 12
    elif period == "AM" and hour == 12:
        hour = 0
    return hour


def in_time_range(hour: int, start_hour: int, end_hour: int) -> bool:
    """Closed-interval test; wraps past midnight when ``start_hour > end_hour``."""
    if start_hour <= end_hour:
        return start_hour <= hour <= end_hour
    return hour >= start_hour or hour <= end_hour


def show_hour(show: Show, stats: MutableMapping[str, int] | None = None) -> int:
    """Hour of day for *show*; unparseable display times count as midnight."""
    if show.start_hour is not None:
        return show.start_hour
    hour = parse_hour(show.time)
    if hour is None:
        log.warning("Could not parse time %r for %r, treating as 0:00", show.time, show.title)
        if stats is not None:
            stats["unparsed_times"] = stats.get("unparsed_times", 0) + 1
        return 0
    return hour


def filter_all_day(shows: Iterable[Show]) -> list[Show]:
    return [s for s in shows if s.all_day]


def filter_by_time(
    shows: Iterable[Show],
    value: str,
    stats: MutableMapping[str, int] | None = None,
) -> list[Show]:
    """Keep the shows that fall inside the bucket named *value*.

    ``all-day`` selects on the ``all_day`` flag instead of the hour. An
    unknown *value* filters nothing.
    """
    shows = list(shows)
    if value == ALL_DAY:
        return filter_all_day(shows)

    tf = get_time_filter(value)
    if tf is None:
        log.warning("Unknown time filter %r, returning unfiltered results", value)
        return shows

    matched = [
        s for s in shows if in_time_range(show_hour(s, stats), tf.start_hour, tf.end_hour)
    ]
    log.debug("Time filter %r: %d/%d show(s) match", value, len(matched), len(shows))
    return matched


def time_filter_strings(value: str) -> tuple[str, str] | None:
    """``"morning"`` -> ``("06:00:00", "11:59:59")``."""
    tf = get_time_filter(value)
    if tf is None:
        return None
    return f"{tf.start_hour:02d}:00:00", f"{tf.end_hour:02d}:59:59"
