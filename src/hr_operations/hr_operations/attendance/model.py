from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..common.locations import Location
from ..core.enums import AttendanceStatus, PunchType


@dataclass(frozen=True)
class UserPunch:
    """One punch-in and, once closed, its matching punch-out."""

    punch_id: int
    attendance_id: int
    punch_in: datetime
    punch_out: Optional[datetime] = None
    punch_in_location: Optional[Location] = None
    punch_out_location: Optional[Location] = None
    punch_type: PunchType = PunchType.IN
    status: AttendanceStatus = AttendanceStatus.PRESENT
    work_hours: Optional[float] = None
    overtime: Optional[float] = None
    device_id: Optional[str] = None
    ip_address: Optional[str] = None
    remarks: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.punch_out is None


@dataclass(frozen=True)
class Attendance:
    """Daily aggregate for one user in one company."""

    attendance_id: int
    company_id: int
    user_id: int
    company_user_id: Optional[int]
    punch_date: date
    final_status: AttendanceStatus = AttendanceStatus.PRESENT
    total_work_hours: float = 0.0
    total_overtime: float = 0.0
    punches: tuple[UserPunch, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AttendanceDay:
    punch_date: date
    status: AttendanceStatus
    work_hours: float
    overtime: float
    punches: int


@dataclass(frozen=True)
class AttendanceSummary:
    user_id: int
    company_id: int
    period_start: date
    period_end: date
    total_work_days: int
    present_days: int
    absent_days: int
    total_work_hours: float
    total_overtime: float
    days: tuple[AttendanceDay, ...] = ()
