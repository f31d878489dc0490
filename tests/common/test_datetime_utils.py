from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from src.hr_operations.hr_operations.common.datetime_utils import (
    month_bounds,
    parse_iso_datetime,
    parse_time_of_day,
    sunday_based_weekday,
    working_days_between,
)
from src.hr_operations.hr_operations.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (date(2026, 3, 2), date(2026, 3, 6), 5),
        (date(2026, 3, 6), date(2026, 3, 9), 2),
        (date(2026, 3, 7), date(2026, 3, 8), 0),
        (date(2026, 3, 9), date(2026, 3, 2), 0),
    ],
)
def test_working_days_between(start, end, expected):
    assert working_days_between(start, end) == expected


def test_sunday_based_weekday():
    assert sunday_based_weekday(date(2026, 3, 1)) == 0
    assert sunday_based_weekday(date(2026, 3, 7)) == 6


def _local(moment: datetime) -> datetime:
    return moment.astimezone().replace(tzinfo=None)


def test_parse_iso_datetime_accepts_z_suffix():
    assert parse_iso_datetime("2026-03-02T09:00:00Z") == _local(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))
    assert parse_iso_datetime("2026-03-02T09:00:00") == datetime(2026, 3, 2, 9, 0)
    with pytest.raises(ValidationError):
        parse_iso_datetime("yesterday")


def test_parse_time_of_day():
    assert parse_time_of_day("09:30") == time(9, 30)
    assert parse_time_of_day("2026-03-02T22:15:00") == time(22, 15)


def test_month_bounds():
    assert month_bounds("2026-02") == (date(2026, 2, 1), date(2026, 2, 28))
    assert month_bounds(None, today=date(2026, 12, 15)) == (date(2026, 12, 1), date(2026, 12, 31))
    with pytest.raises(ValidationError):
        month_bounds("2026/02")


def test_offsets_for_the_same_instant_parse_equal():
    with_offset = parse_iso_datetime("2024-01-15T09:00:00+05:00")
    as_utc = parse_iso_datetime("2024-01-15T04:00:00Z")

    assert with_offset == as_utc
    assert with_offset.tzinfo is None
    assert with_offset == _local(datetime(2024, 1, 15, 4, 0, tzinfo=timezone.utc))
