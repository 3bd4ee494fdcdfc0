from collections import Counter

import pytest

from listings.models import Show
from listings.timefilter import (
    TIME_FILTERS,
    filter_all_day,
    filter_by_time,
    get_time_filter,
    in_time_range,
    parse_hour,
    show_hour,
    time_filter_strings,
)


def _show(show_id: str, time: str, start_hour: int | None = None, all_day: bool = False) -> Show:
    return Show(
        id=show_id,
        title=f"Show {show_id}",
        artist=f"Show {show_id}",
        date="2026-11-06",
        time=time,
        start_hour=start_hour,
        all_day=all_day,
    )


@pytest.mark.parametrize(
    "text, hour",
    [
        ("12:00 AM", 0),
        ("12:30 PM", 12),
        ("11:45 PM", 23),
        ("1:00 AM", 1),
        ("6:00 am", 6),
        ("9:15PM", 21),
        ("18:30", 18),
    ],
)
def test_parse_hour(text, hour):
    assert parse_hour(text) == hour


def test_parse_hour_no_match():
    assert parse_hour("TBA") is None


def test_bucket_table():
    ranges = {tf.value: (tf.start_hour, tf.end_hour) for tf in TIME_FILTERS}
    assert ranges == {
        "all-day": (0, 23),
        "morning": (6, 11),
        "afternoon": (12, 16),
        "evening": (17, 20),
        "night": (21, 23),
    }
    assert get_time_filter("brunch") is None


def test_in_time_range_closed_interval():
    assert in_time_range(21, 21, 23)
    assert in_time_range(23, 21, 23)
    assert not in_time_range(20, 21, 23)
    assert not in_time_range(0, 21, 23)


def test_in_time_range_wraps_past_midnight():
    assert in_time_range(22, 21, 5)
    assert in_time_range(3, 21, 5)
    assert in_time_range(5, 21, 5)
    assert not in_time_range(6, 21, 5)


def test_filter_by_time_uses_hour_boundaries():
    shows = [
        _show("a", "5:59 AM", 5),
        _show("b", "6:00 AM", 6),
        _show("c", "11:59 AM", 11),
        _show("d", "12:00 PM", 12),
    ]
    assert [s.id for s in filter_by_time(shows, "morning")] == ["b", "c"]
    assert [s.id for s in filter_by_time(shows, "afternoon")] == ["d"]


def test_filter_by_time_parses_display_time_without_start_hour():
    shows = [_show("a", "9:30 PM"), _show("b", "8:00 PM")]
    assert [s.id for s in filter_by_time(shows, "night")] == ["a"]


def test_unparseable_time_counts_as_midnight_and_is_recorded():
    stats: Counter = Counter()
    show = _show("a", "Doors TBA")

    assert show_hour(show, stats) == 0
    assert stats["unparsed_times"] == 1
    assert filter_by_time([show], "morning", stats) == []
    assert stats["unparsed_times"] == 2


def test_all_day_filter_ignores_time():
    shows = [
        _show("a", "8:00 PM", 20, all_day=True),
        _show("b", "12:00 AM", 0, all_day=False),
        _show("c", "garbage", None, all_day=True),
    ]
    assert [s.id for s in filter_by_time(shows, "all-day")] == ["a", "c"]
    assert [s.id for s in filter_all_day(shows)] == ["a", "c"]


def test_unknown_filter_is_a_noop():
    shows = [_show("a", "8:00 PM", 20), _show("b", "9:00 AM", 9)]
    assert filter_by_time(shows, "brunch") == shows


def test_time_filter_strings():
    assert time_filter_strings("morning") == ("06:00:00", "11:59:59")
    assert time_filter_strings("night") == ("21:00:00", "23:59:59")
    assert time_filter_strings("brunch") is None
