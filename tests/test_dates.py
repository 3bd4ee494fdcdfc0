from datetime import date, datetime

import pytest

from listings.dates import (
    DATE_PRESETS,
    add_months,
    format_local_datetime,
    resolve_date_preset,
    resolve_date_window,
)


def test_format_local_datetime():
    assert format_local_datetime(datetime(2026, 3, 4, 5, 6, 7)) == "2026-03-04 05:06:07"


def test_default_window_is_two_months_from_now():
    now = datetime(2026, 10, 19, 9, 30, 15, 123456)
    assert resolve_date_window(now=now) == ("2026-10-19 09:30:15", "2026-12-19 09:30:15")


def test_default_window_clamps_month_end():
    assert add_months(datetime(2026, 12, 31, 8), 2) == datetime(2027, 2, 28, 8)


def test_bare_dates_cover_whole_days():
    now = datetime(2026, 10, 19)
    assert resolve_date_window("2026-11-01", "2026-11-02", now=now) == (
        "2026-11-01 00:00:00",
        "2026-11-02 23:59:59",
    )


def test_dates_with_time_pass_through():
    now = datetime(2026, 10, 19)
    start, end = resolve_date_window("2026-11-01 18:00:00", None, now=now)
    assert start == "2026-11-01 18:00:00"
    assert end == "2026-12-19 00:00:00"


@pytest.mark.parametrize(
    "preset, expected",
    [
        ("today", ("2026-10-19", "2026-10-19")),
        ("tomorrow", ("2026-10-20", "2026-10-20")),
        ("next-7", ("2026-10-19", "2026-10-26")),
        ("next-30", ("2026-10-19", "2026-11-18")),
        ("this-month", ("2026-10-19", "2026-10-31")),
        ("next-month", ("2026-11-01", "2026-11-30")),
    ],
)
def test_date_presets(preset, expected):
    assert resolve_date_preset(preset, today=date(2026, 10, 19)) == expected


def test_next_month_from_january_end():
    assert resolve_date_preset("next-month", today=date(2027, 1, 31)) == (
        "2027-02-01",
        "2027-02-28",
    )


def test_every_preset_resolves():
    for value in DATE_PRESETS:
        resolve_date_preset(value, today=date(2026, 10, 19))


def test_unknown_preset():
    with pytest.raises(ValueError, match="Unknown date preset"):
        resolve_date_preset("someday")
