from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..common.locations import Location
from ..core.enums import AttendanceStatus
from .model import Attendance, UserPunch


class AttendanceRepository(Protocol):
    def lock_or_create_day(
        self, *, company_id: int, user_id: int, company_user_id: Optional[int], punch_date: date
    ) -> int:
        """Find-or-create the day's attendance row and lock it for the running transaction."""
        raise NotImplementedError

    def lock_day(self, attendance_id: int) -> None:
        raise NotImplementedError

    def get_day(self, *, company_id: int, user_id: int, punch_date: date) -> Optional[Attendance]:
        raise NotImplementedError

    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        raise NotImplementedError

    def get_open_punch(self, attendance_id: int, *, for_update: bool = False) -> Optional[UserPunch]:
        raise NotImplementedError

    def get_latest_punch(self, attendance_id: int) -> Optional[UserPunch]:
        raise NotImplementedError

    def list_punches(self, attendance_id: int) -> Sequence[UserPunch]:
        raise NotImplementedError

    def create_punch(
        self,
        *,
        attendance_id: int,
        punch_in: datetime,
        location: Optional[Location],
        status: AttendanceStatus,
        device_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def close_punch(
        self,
        punch_id: int,
        *,
        punch_out: datetime,
        location: Optional[Location],
        work_hours: float,
        overtime: float,
        status: AttendanceStatus,
        remarks: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def update_totals(
        self,
        attendance_id: int,
        *,
        total_work_hours: float,
        total_overtime: float,
        final_status: AttendanceStatus,
    ) -> bool:
        raise NotImplementedError

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[Attendance], int]:
        raise NotImplementedError

    def list_for_user(
        self,
        *,
        company_id: int,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[Attendance]:
        raise NotImplementedError

    def delete_by_id(self, attendance_id: int) -> bool:
        raise NotImplementedError
