from __future__ import annotations

import threading
from datetime import date, datetime, time

import pytest

from src.hr_operations.hr_operations.attendance.eligibility import EligibilityGate
from src.hr_operations.hr_operations.attendance.service import AttendanceService, final_status_for
from src.hr_operations.hr_operations.common.locations import Location
from src.hr_operations.hr_operations.companies.model import Company
from src.hr_operations.hr_operations.core.enums import AttendanceStatus, CompanyUserStatus, LeaveStatus
from src.hr_operations.hr_operations.core.exceptions import (
    ConflictError,
    EligibilityError,
    NotFoundError,
    ValidationError,
)
from src.hr_operations.hr_operations.leaves.model import Leave
from src.hr_operations.hr_operations.users.model import CompanyUser
from tests.fakes import (
    FakeTx,
    InMemoryAttendance,
    InMemoryCompanies,
    InMemoryCompanyOffs,
    InMemoryLeaves,
    InMemoryMembers,
    InMemoryOffDays,
    InMemoryShifts,
)

COMPANY_ID = 1
USER_ID = 10
MEMBER_ID = 20
MONDAY = date(2026, 3, 2)


class Env:
    def __init__(self):
        self.attendance = InMemoryAttendance()
        self.shifts = InMemoryShifts()
        self.leaves = InMemoryLeaves()
        self.off_days = InMemoryOffDays()
        self.company_offs = InMemoryCompanyOffs()
        self.members = InMemoryMembers(
            CompanyUser(MEMBER_ID, USER_ID, COMPANY_ID, 1, "Engineer", status=CompanyUserStatus.ACTIVE)
        )
        self.tx = FakeTx()
        self.service = AttendanceService(
            self.attendance,
            InMemoryCompanies(Company(COMPANY_ID, "Acme")),
            self.members,
            self.shifts,
            EligibilityGate(self.leaves, self.off_days, self.company_offs),
            self.tx,
            clock=lambda: datetime(2026, 3, 2, 12, 0),
        )

    def punch_in(self, at: datetime, **kw):
        return self.service.punch_in(company_id=COMPANY_ID, user_id=USER_ID, time=at.isoformat(), **kw)

    def punch_out(self, at: datetime, **kw):
        return self.service.punch_out(company_id=COMPANY_ID, user_id=USER_ID, time=at.isoformat(), **kw)


@pytest.fixture()
def env():
    e = Env()
    e.shifts.add(
        company_id=COMPANY_ID,
        company_user_id=MEMBER_ID,
        start=time(9, 0),
        end=time(17, 0),
        break_duration=30,
        grace=15,
    )
    return e


def test_full_day_with_half_hour_overtime_break_rule(env):
    env.punch_in(datetime(2026, 3, 2, 9, 0))
    result = env.punch_out(datetime(2026, 3, 2, 17, 30))

    assert result.punch.work_hours == 8.5
    assert result.punch.overtime == 1.0
    assert result.attendance.total_work_hours == 8.5
    assert result.attendance.total_overtime == 1.0
    assert result.attendance.final_status == AttendanceStatus.PRESENT


def test_punch_in_keeps_location_and_status(env):
    result = env.punch_in(
        datetime(2026, 3, 2, 9, 5),
        location={"address": "HQ", "latitude": 10.77, "longitude": 106.7},
        device_id="kiosk-1",
    )

    assert result.punch.punch_in_location == Location(address="HQ", latitude="10.77", longitude="106.7")
    assert result.punch.status == AttendanceStatus.PRESENT
    assert result.punch.is_open
    assert result.shift.allowed
    assert result.eligibility.can_punch


def test_second_punch_in_while_open_is_conflict(env):
    env.punch_in(datetime(2026, 3, 2, 9, 0))

    with pytest.raises(ConflictError, match="already have an active punch-in"):
        env.punch_in(datetime(2026, 3, 2, 10, 0))

    day = env.attendance.get_day(company_id=COMPANY_ID, user_id=USER_ID, punch_date=MONDAY)
    assert sum(1 for p in day.punches if p.is_open) == 1


def test_concurrent_punch_ins_yield_one_punch(env):
    barrier = threading.Barrier(2)
    outcomes: list = []

    def worker():
        barrier.wait()
        try:
            env.punch_in(datetime(2026, 3, 2, 9, 0))
            outcomes.append("ok")
        except ConflictError:
            outcomes.append("conflict")

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["conflict", "ok"]
    day = env.attendance.get_day(company_id=COMPANY_ID, user_id=USER_ID, punch_date=MONDAY)
    assert len(day.punches) == 1


def test_multiple_sessions_sum_into_day_totals(env):
    env.punch_in(datetime(2026, 3, 2, 9, 0))
    env.punch_out(datetime(2026, 3, 2, 12, 0))
    env.punch_in(datetime(2026, 3, 2, 13, 0))
    result = env.punch_out(datetime(2026, 3, 2, 17, 15))

    assert len(result.attendance.punches) == 2
    assert result.attendance.total_work_hours == 7.25
    assert result.attendance.total_overtime == 0.0


def test_punch_in_outside_window_is_denied(env):
    with pytest.raises(EligibilityError, match="Outside shift window"):
        env.punch_in(datetime(2026, 3, 2, 8, 30))
    assert env.attendance.days == {}


def test_punch_in_on_weekly_off_day_is_denied(env):
    env.company_offs.create(company_id=COMPANY_ID, week_days=[0, 6], description=None)

    with pytest.raises(EligibilityError, match="weekly company off"):
        env.punch_in(datetime(2026, 3, 7, 9, 0))


def test_punch_in_on_approved_leave_is_denied(env):
    env.leaves.items[1] = Leave(
        leave_id=1,
        company_id=COMPANY_ID,
        user_id=USER_ID,
        company_user_id=MEMBER_ID,
        leave_type_id=1,
        users_leave_record_id=1,
        start_date=date(2026, 3, 2),
        end_date=date(2026, 3, 3),
        status=LeaveStatus.APPROVED,
    )

    with pytest.raises(EligibilityError, match="approved leave"):
        env.punch_in(datetime(2026, 3, 2, 9, 0))


def test_punch_out_on_non_working_day_counts_as_overtime(env):
    env.punch_in(datetime(2026, 3, 2, 9, 0))
    env.off_days.create(
        company_id=COMPANY_ID,
        company_off_id=1,
        created_by=MEMBER_ID,
        name="Flood closure",
        holiday_type="EMERGENCY",
        from_date=MONDAY,
        to_date=MONDAY,
    )

    result = env.punch_out(datetime(2026, 3, 2, 12, 0))

    assert result.punch.work_hours == 0.0
    assert result.punch.overtime == 3.0
    assert not result.eligibility.can_punch


def test_overnight_session_closes_against_previous_day():
    e = Env()
    e.shifts.add(company_id=COMPANY_ID, company_user_id=MEMBER_ID, start=time(22, 0), end=time(6, 0))

    e.punch_in(datetime(2026, 3, 2, 22, 0))
    result = e.punch_out(datetime(2026, 3, 3, 6, 30))

    assert result.attendance.punch_date == MONDAY
    assert result.punch.work_hours == 8.5
    assert result.punch.overtime == 0.5


def test_punch_out_without_open_punch(env):
    with pytest.raises(NotFoundError):
        env.punch_out(datetime(2026, 3, 2, 17, 0))

    env.punch_in(datetime(2026, 3, 2, 9, 0))
    env.punch_out(datetime(2026, 3, 2, 17, 0))
    with pytest.raises(ConflictError, match="already has punch out"):
        env.punch_out(datetime(2026, 3, 2, 17, 5))


def _lock_order(locks):
    return [kind for kind, _ in locks]


def test_punch_in_and_out_lock_attendance_before_punches(env):
    env.punch_in(datetime(2026, 3, 2, 9, 0))
    assert _lock_order(env.attendance.locks) == ["attendance", "punches"]

    env.attendance.locks.clear()
    env.punch_out(datetime(2026, 3, 2, 17, 0))
    assert _lock_order(env.attendance.locks) == ["attendance", "punches"]


def test_overnight_punch_out_locks_each_day_before_its_punches():
    e = Env()
    e.shifts.add(company_id=COMPANY_ID, company_user_id=MEMBER_ID, start=time(22, 0), end=time(6, 0))
    e.punch_in(datetime(2026, 3, 2, 22, 0))
    # Tuesday already has its own closed session.
    e.attendance.lock_or_create_day(
        company_id=COMPANY_ID, user_id=USER_ID, company_user_id=MEMBER_ID, punch_date=date(2026, 3, 3)
    )
    e.attendance.locks.clear()

    e.punch_out(datetime(2026, 3, 3, 6, 30))

    assert _lock_order(e.attendance.locks) == ["attendance", "punches", "attendance", "punches"]


def test_member_must_belong_to_company(env):
    with pytest.raises(ValidationError):
        env.service.punch_in(company_id=None, user_id=USER_ID)
    with pytest.raises(NotFoundError, match="User not found in company"):
        env.service.punch_in(company_id=COMPANY_ID, user_id=999)


def test_final_status_rules():
    assert final_status_for([]) == AttendanceStatus.ABSENT


def test_monthly_summary_and_admin_correction(env):
    env.punch_in(datetime(2026, 3, 2, 9, 0))
    done = env.punch_out(datetime(2026, 3, 2, 17, 30))

    summary = env.service.monthly_summary(company_id=COMPANY_ID, user_id=USER_ID, month="2026-03")
    assert summary.period_start == date(2026, 3, 1)
    assert summary.period_end == date(2026, 3, 31)
    assert summary.total_work_days == 1
    assert summary.present_days == 1
    assert summary.total_work_hours == 8.5

    corrected = env.service.update(done.attendance.attendance_id, status="half_day", work_hours=4)
    assert corrected.final_status == AttendanceStatus.HALF_DAY
    assert corrected.total_work_hours == 4.0

    env.service.remove(done.attendance.attendance_id)
    assert env.attendance.punches == {}
