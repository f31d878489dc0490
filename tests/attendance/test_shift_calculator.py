from __future__ import annotations

from datetime import datetime, time

import pytest

from src.hr_operations.hr_operations.attendance.calculator.shift_calculator import (
    ShiftOvertimeCalculator,
    scheduled_hours,
)
from src.hr_operations.hr_operations.shifts.model import ShiftAttribute


def _shift(start, end, break_minutes=0):
    return ShiftAttribute(1, 1, "S", start, end, break_duration=break_minutes)


def test_scheduled_hours_subtracts_break():
    assert scheduled_hours(_shift(time(9), time(17), 30)) == 7.5


def test_scheduled_hours_across_midnight():
    assert scheduled_hours(_shift(time(22), time(6))) == 8.0


@pytest.mark.parametrize(
    "punch_out, work, overtime",
    [
        (datetime(2026, 3, 2, 17, 30), 8.5, 1.0),
        (datetime(2026, 3, 2, 16, 0), 7.0, 0.0),
    ],
)
def test_overtime_over_net_hours(punch_out, work, overtime):
    hours = ShiftOvertimeCalculator().compute(
        punch_in=datetime(2026, 3, 2, 9, 0), punch_out=punch_out, shift=_shift(time(9), time(17), 30)
    )
    assert hours.work_hours == pytest.approx(work)
    assert hours.overtime == pytest.approx(overtime)


def test_without_shift_everything_is_work():
    hours = ShiftOvertimeCalculator().compute(
        punch_in=datetime(2026, 3, 2, 9, 0), punch_out=datetime(2026, 3, 2, 19, 0), shift=None
    )
    assert (hours.work_hours, hours.overtime) == (10.0, 0.0)


def test_non_working_day_is_all_overtime():
    hours = ShiftOvertimeCalculator().compute(
        punch_in=datetime(2026, 3, 7, 9, 0),
        punch_out=datetime(2026, 3, 7, 11, 0),
        shift=_shift(time(9), time(17), 30),
        non_working_day=True,
    )
    assert (hours.work_hours, hours.overtime) == (0.0, 2.0)


def test_punch_out_before_punch_in_is_zero():
    hours = ShiftOvertimeCalculator().compute(
        punch_in=datetime(2026, 3, 2, 9, 0), punch_out=datetime(2026, 3, 2, 8, 0), shift=None
    )
    assert hours.work_hours == 0.0
