from __future__ import annotations

from datetime import datetime, time

from src.hr_operations.hr_operations.shifts.window import ShiftWindowEvaluator
from tests.fakes import InMemoryShifts


def _evaluator(start, end, grace=0):
    shifts = InMemoryShifts()
    shifts.add(company_id=1, company_user_id=20, start=start, end=end, grace=grace)
    return ShiftWindowEvaluator(shifts), shifts


def _check(evaluator, at):
    return evaluator.is_in_shift(company_user_id=20, company_id=1, now=at)


def test_grace_extends_both_edges():
    evaluator, _ = _evaluator(time(9), time(17), grace=15)

    assert _check(evaluator, datetime(2026, 3, 2, 8, 45)).allowed
    assert _check(evaluator, datetime(2026, 3, 2, 17, 15)).allowed
    assert not _check(evaluator, datetime(2026, 3, 2, 8, 44)).allowed
    assert not _check(evaluator, datetime(2026, 3, 2, 17, 16)).allowed


def test_within_window_reports_details():
    evaluator, _ = _evaluator(time(9), time(17))
    result = _check(evaluator, datetime(2026, 3, 2, 12, 0))

    assert result.reason == "Within shift window"
    assert result.shift_details["start_time"] == "09:00"
    assert result.shift_details["window_end"] == "2026-03-02T17:00:00"


def test_overnight_shift_after_midnight_belongs_to_previous_start():
    evaluator, _ = _evaluator(time(22), time(6))

    assert _check(evaluator, datetime(2026, 3, 2, 23, 0)).allowed
    after_midnight = _check(evaluator, datetime(2026, 3, 3, 1, 0))
    assert after_midnight.allowed
    assert after_midnight.shift_details["window_start"] == "2026-03-02T22:00:00"
    assert not _check(evaluator, datetime(2026, 3, 3, 12, 0)).allowed


def test_no_assignment():
    result = ShiftWindowEvaluator(InMemoryShifts()).is_in_shift(
        company_user_id=20, company_id=1, now=datetime(2026, 3, 2, 9, 0)
    )
    assert not result.allowed
    assert result.reason == "No active shift assigned to user"


def test_lookup_failure_is_reported_not_raised():
    evaluator, shifts = _evaluator(time(9), time(17))
    shifts.fail_lookups = True

    result = _check(evaluator, datetime(2026, 3, 2, 9, 0))

    assert not result.allowed
    assert result.reason == "Error checking shift assignment"


def test_inactive_attribute_is_ignored():
    evaluator, shifts = _evaluator(time(9), time(17))
    attribute_id = next(iter(shifts.attributes))
    shifts.update_attribute(attribute_id, fields={"is_active": 0})

    assert _check(evaluator, datetime(2026, 3, 2, 9, 0)).reason == "No active shift assigned to user"
