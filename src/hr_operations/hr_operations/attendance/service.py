from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import month_bounds, now_local, parse_iso_date, parse_iso_datetime, round_hours
from ..common.locations import Location
from ..common.validators import normalize_paging, require_id, require_non_negative
from ..companies.repository import CompanyRepository
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError, EligibilityError, NotFoundError, ValidationError
from ..database.connection import TransactionManager
from ..shifts.repository import ShiftRepository
from ..shifts.window import ShiftWindowEvaluator, ShiftWindowResult
from ..users.repository import CompanyUserRepository
from .calculator.base import WorkHoursCalculator
from .calculator.shift_calculator import ShiftOvertimeCalculator
from .eligibility import EligibilityGate, EligibilityResult
from .model import Attendance, AttendanceDay, AttendanceSummary, UserPunch
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_PRESENT_LIKE = (AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.HALF_DAY)


@dataclass(frozen=True)
class PunchResult:
    attendance: Attendance
    punch: UserPunch
    eligibility: EligibilityResult
    shift: Optional[ShiftWindowResult] = None


def final_status_for(punches: Sequence[UserPunch]) -> AttendanceStatus:
    """First match wins: no punches, any HALF_DAY, any LATE, else PRESENT."""
    if not punches:
        return AttendanceStatus.ABSENT
    if any(p.status == AttendanceStatus.HALF_DAY for p in punches):
        return AttendanceStatus.HALF_DAY
    if any(p.status == AttendanceStatus.LATE for p in punches):
        return AttendanceStatus.LATE
    return AttendanceStatus.PRESENT


def _parse_status(value: Any, default: Optional[AttendanceStatus] = None) -> Optional[AttendanceStatus]:
    if value is None or value == "":
        return default
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value).upper())
    except ValueError:
        raise ValidationError(f"Invalid attendance status: {value}")


def _parse_time(value: Any, clock: Callable[[], datetime]) -> datetime:
    if value is None or value == "":
        return clock()
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return parse_iso_datetime(str(value))


def _optional_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value))


class AttendanceService:
    """Use case: punch in/out and the daily attendance roll-up."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        companies: CompanyRepository,
        members: CompanyUserRepository,
        shifts: ShiftRepository,
        gate: EligibilityGate,
        tx: TransactionManager,
        *,
        calculator: Optional[WorkHoursCalculator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._companies = companies
        self._members = members
        self._shifts = shifts
        self._gate = gate
        self._tx = tx
        self._calculator = calculator or ShiftOvertimeCalculator()
        self._window = ShiftWindowEvaluator(shifts)
        self._clock = clock

    def _resolve_member(self, company_id: Any, user_id: Any, company_user_id: Any) -> tuple[int, int, int]:
        if not company_id or not user_id:
            raise ValidationError("Company ID and User ID are required")
        company_id = require_id(company_id, "Company ID")
        user_id = require_id(user_id, "User ID")
        if not self._companies.get_by_id(company_id):
            raise NotFoundError("Company not found")

        if company_user_id:
            member = self._members.get_by_id(require_id(company_user_id, "Company user ID"))
        else:
            member = self._members.get_membership(user_id=user_id, company_id=company_id)
        if not member or member.company_id != company_id or member.user_id != user_id:
            raise NotFoundError("User not found in company")
        return company_id, user_id, member.company_user_id

    def punch_in(
        self,
        *,
        company_id: Any,
        user_id: Any,
        company_user_id: Any = None,
        time: Any = None,
        location: Any = None,
        device_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        remarks: Optional[str] = None,
        status: Any = None,
    ) -> PunchResult:
        company_id, user_id, company_user_id = self._resolve_member(company_id, user_id, company_user_id)
        punch_time = _parse_time(time, self._clock)
        punch_status = _parse_status(status, AttendanceStatus.PRESENT)
        punch_location = Location.from_payload(location)

        eligibility = self._gate.check_eligibility(
            company_id=company_id, user_id=user_id, company_user_id=company_user_id, now=punch_time
        )
        if not eligibility.can_punch:
            logger.warning("Punch-in denied for user %s: %s", user_id, eligibility.reason.value)
            raise EligibilityError(f"Cannot punch in: {eligibility.message}")

        window = self._window.is_in_shift(company_user_id=company_user_id, company_id=company_id, now=punch_time)
        if not window.allowed:
            logger.warning("Punch-in denied for user %s: %s", user_id, window.reason)
            raise EligibilityError(f"Cannot punch in: {window.reason}")

        with self._tx.transaction():
            attendance_id = self._attendance.lock_or_create_day(
                company_id=company_id,
                user_id=user_id,
                company_user_id=company_user_id,
                punch_date=punch_time.date(),
            )
            if self._attendance.get_open_punch(attendance_id, for_update=True):
                raise ConflictError("You already have an active punch-in. Please punch out first.")
            punch_id = self._attendance.create_punch(
                attendance_id=attendance_id,
                punch_in=punch_time,
                location=punch_location,
                status=punch_status,
                device_id=device_id,
                ip_address=ip_address,
                remarks=remarks,
            )

        logger.info("User %s punched in (company %s, attendance %s)", user_id, company_id, attendance_id)
        attendance = self._get(attendance_id)
        punch = next(p for p in attendance.punches if p.punch_id == punch_id)
        return PunchResult(attendance=attendance, punch=punch, eligibility=eligibility, shift=window)

    def _find_open_day(self, company_id: int, user_id: int, day: date) -> tuple[Attendance, UserPunch]:
        today = self._attendance.get_day(company_id=company_id, user_id=user_id, punch_date=day)
        # A session opened before midnight is closed against the previous day's record.
        for candidate in (today, self._attendance.get_day(company_id=company_id, user_id=user_id, punch_date=day - timedelta(days=1))):
            if candidate is None:
                continue
            # Attendance row before its punches, the same order punch_in locks them.
            self._attendance.lock_day(candidate.attendance_id)
            open_punch = self._attendance.get_open_punch(candidate.attendance_id, for_update=True)
            if open_punch:
                return candidate, open_punch

        if today is None:
            raise NotFoundError("No attendance found for this user today")
        latest = self._attendance.get_latest_punch(today.attendance_id)
        if latest is not None and not latest.is_open:
            raise ConflictError("User already has punch out for the latest punch")
        raise NotFoundError("No active punch-in found for this user today")

    def punch_out(
        self,
        *,
        company_id: Any,
        user_id: Any,
        company_user_id: Any = None,
        time: Any = None,
        location: Any = None,
        remarks: Optional[str] = None,
        status: Any = None,
    ) -> PunchResult:
        company_id, user_id, company_user_id = self._resolve_member(company_id, user_id, company_user_id)
        punch_time = _parse_time(time, self._clock)
        new_status = _parse_status(status)
        punch_location = Location.from_payload(location)

        eligibility = self._gate.check_eligibility(
            company_id=company_id, user_id=user_id, company_user_id=company_user_id, now=punch_time
        )

        with self._tx.transaction():
            attendance, open_punch = self._find_open_day(company_id, user_id, punch_time.date())

            shift = self._shifts.get_active_assignment(company_user_id=company_user_id, company_id=company_id)
            hours = self._calculator.compute(
                punch_in=open_punch.punch_in,
                punch_out=punch_time,
                shift=shift,
                non_working_day=not eligibility.can_punch,
            )
            self._attendance.close_punch(
                open_punch.punch_id,
                punch_out=punch_time,
                location=punch_location,
                work_hours=round_hours(hours.work_hours),
                overtime=round_hours(hours.overtime),
                status=new_status or open_punch.status,
                remarks=remarks or open_punch.remarks,
            )
            self.recalculate_totals(attendance.attendance_id)

        logger.info(
            "User %s punched out (attendance %s): %.2fh worked, %.2fh overtime",
            user_id,
            attendance.attendance_id,
            hours.work_hours,
            hours.overtime,
        )
        attendance = self._get(attendance.attendance_id)
        punch = next(p for p in attendance.punches if p.punch_id == open_punch.punch_id)
        return PunchResult(attendance=attendance, punch=punch, eligibility=eligibility)

    def recalculate_totals(self, attendance_id: int) -> None:
        punches = self._attendance.list_punches(attendance_id)
        closed = [p for p in punches if not p.is_open]
        self._attendance.update_totals(
            attendance_id,
            total_work_hours=round_hours(sum(p.work_hours or 0 for p in closed)),
            total_overtime=round_hours(sum(p.overtime or 0 for p in closed)),
            final_status=final_status_for(punches),
        )

    def check_status(self, *, company_id: Any, user_id: Any, company_user_id: Any = None, at: Any = None) -> dict:
        company_id, user_id, company_user_id = self._resolve_member(company_id, user_id, company_user_id)
        now = _parse_time(at, self._clock)
        return {
            "eligibility": self._gate.check_eligibility(
                company_id=company_id, user_id=user_id, company_user_id=company_user_id, now=now
            ),
            "shift": self._window.is_in_shift(company_user_id=company_user_id, company_id=company_id, now=now),
        }

    def _get(self, attendance_id: int) -> Attendance:
        attendance = self._attendance.get_by_id(int(attendance_id))
        if not attendance:
            raise NotFoundError(f"Attendance record with ID {attendance_id} not found")
        return attendance

    def get(self, attendance_id: int) -> Attendance:
        return self._get(attendance_id)

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        user_id: Optional[int] = None,
        start_date: Any = None,
        end_date: Any = None,
        page: Any = None,
        limit: Any = None,
    ) -> dict:
        page, limit = normalize_paging(page, limit)
        items, total = self._attendance.list(
            company_id=company_id,
            user_id=user_id,
            start_date=_optional_date(start_date),
            end_date=_optional_date(end_date),
            page=page,
            limit=limit,
        )
        return {
            "items": list(items),
            "pagination": {"page": page, "limit": limit, "total": total, "pages": (total + limit - 1) // limit},
        }

    def user_attendance(
        self,
        *,
        company_id: Any,
        user_id: Any,
        day: Any = None,
        start_date: Any = None,
        end_date: Any = None,
    ) -> Sequence[Attendance]:
        company_id = require_id(company_id, "Company ID")
        user_id = require_id(user_id, "User ID")
        single = _optional_date(day)
        if single:
            start, end = single, single
        else:
            start, end = _optional_date(start_date), _optional_date(end_date)
            if not (start and end):
                start = end = None
        return self._attendance.list_for_user(company_id=company_id, user_id=user_id, start_date=start, end_date=end)

    def update(
        self,
        attendance_id: int,
        *,
        status: Any = None,
        work_hours: Any = None,
        overtime: Any = None,
    ) -> Attendance:
        """Admin correction of the day's totals."""
        attendance = self._get(attendance_id)
        final_status = _parse_status(status, attendance.final_status)
        total_work = attendance.total_work_hours
        total_overtime = attendance.total_overtime
        if work_hours is not None:
            total_work = round_hours(require_non_negative(work_hours, "Work hours"))
        if overtime is not None:
            total_overtime = round_hours(require_non_negative(overtime, "Overtime"))

        self._attendance.update_totals(
            attendance.attendance_id,
            total_work_hours=total_work,
            total_overtime=total_overtime,
            final_status=final_status,
        )
        logger.info("Attendance %s corrected: status=%s", attendance.attendance_id, final_status.value)
        return self._get(attendance.attendance_id)

    def remove(self, attendance_id: int) -> None:
        attendance = self._get(attendance_id)
        with self._tx.transaction():
            self._attendance.delete_by_id(attendance.attendance_id)
        logger.info("Attendance %s removed with %d punch(es)", attendance.attendance_id, len(attendance.punches))

    def monthly_summary(self, *, company_id: Any, user_id: Any, month: Optional[str] = None) -> AttendanceSummary:
        company_id = require_id(company_id, "Company ID")
        user_id = require_id(user_id, "User ID")
        first, last = month_bounds(month, today=self._clock().date())
        records = self._attendance.list_for_user(company_id=company_id, user_id=user_id, start_date=first, end_date=last)

        return AttendanceSummary(
            user_id=user_id,
            company_id=company_id,
            period_start=first,
            period_end=last,
            total_work_days=len(records),
            present_days=sum(1 for a in records if a.final_status in _PRESENT_LIKE),
            absent_days=sum(1 for a in records if a.final_status == AttendanceStatus.ABSENT),
            total_work_hours=round_hours(sum(a.total_work_hours for a in records)),
            total_overtime=round_hours(sum(a.total_overtime for a in records)),
            days=tuple(
                AttendanceDay(
                    punch_date=a.punch_date,
                    status=a.final_status,
                    work_hours=a.total_work_hours,
                    overtime=a.total_overtime,
                    punches=len(a.punches),
                )
                for a in sorted(records, key=lambda a: a.punch_date)
            ),
        )
