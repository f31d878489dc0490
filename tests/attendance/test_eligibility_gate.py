from __future__ import annotations

from datetime import date, datetime

from src.hr_operations.hr_operations.attendance.eligibility import EligibilityGate
from src.hr_operations.hr_operations.core.enums import EligibilityReason, LeaveStatus
from src.hr_operations.hr_operations.leaves.model import Leave
from tests.fakes import InMemoryCompanyOffs, InMemoryLeaves, InMemoryOffDays

SATURDAY = date(2026, 3, 7)


def _gate():
    leaves, off_days, company_offs = InMemoryLeaves(), InMemoryOffDays(), InMemoryCompanyOffs()
    return EligibilityGate(leaves, off_days, company_offs), leaves, off_days, company_offs


def _off_day(off_days, *, user_ids=()):
    off_day_id = off_days.create(
        company_id=1,
        company_off_id=1,
        created_by=20,
        name="Founders day",
        holiday_type="PUBLIC",
        from_date=SATURDAY,
        to_date=SATURDAY,
    )
    if user_ids:
        off_days.replace_users(off_day_id, user_ids)


def _check(gate):
    return gate.check_eligibility(company_id=1, user_id=10, company_user_id=20, now=datetime(2026, 3, 7, 9, 0))


def test_weekday_without_any_off_is_eligible():
    gate, *_ = _gate()
    result = gate.check_eligibility(company_id=1, user_id=10, company_user_id=20, now=datetime(2026, 3, 2, 9, 0))
    assert result.can_punch
    assert result.reason == EligibilityReason.ELIGIBLE_FOR_PUNCH


def test_approved_leave_wins_over_every_off_day():
    gate, leaves, off_days, company_offs = _gate()
    company_offs.create(company_id=1, week_days=[6], description=None)
    _off_day(off_days)
    leaves.items[5] = Leave(5, 1, 10, 20, 1, 1, SATURDAY, SATURDAY, status=LeaveStatus.APPROVED)

    result = _check(gate)

    assert not result.can_punch
    assert result.reason == EligibilityReason.ON_LEAVE
    assert result.details["leave_id"] == 5


def test_pending_leave_does_not_block():
    gate, leaves, *_ = _gate()
    leaves.items[5] = Leave(5, 1, 10, 20, 1, 1, SATURDAY, SATURDAY, status=LeaveStatus.PENDING)
    assert _check(gate).can_punch


def test_company_wide_off_day_before_member_and_weekly():
    gate, _, off_days, company_offs = _gate()
    company_offs.create(company_id=1, week_days=[6], description=None)
    _off_day(off_days, user_ids=[20])
    _off_day(off_days)

    assert _check(gate).reason == EligibilityReason.COMPANY_OFF_DAY


def test_member_specific_off_day():
    gate, _, off_days, company_offs = _gate()
    company_offs.create(company_id=1, week_days=[6], description=None)
    _off_day(off_days, user_ids=[20])

    assert _check(gate).reason == EligibilityReason.USER_SPECIFIC_OFF_DAY


def test_off_day_for_other_member_falls_through_to_weekly():
    gate, _, off_days, company_offs = _gate()
    company_offs.create(company_id=1, week_days=[0, 6], description=None)
    _off_day(off_days, user_ids=[21])

    result = _check(gate)
    assert result.reason == EligibilityReason.WEEKLY_COMPANY_OFF
    assert result.details["week_day"] == 6
