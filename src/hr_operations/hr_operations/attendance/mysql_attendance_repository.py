from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.locations import Location, parse_location, serialize_location
from ..core.enums import AttendanceStatus, PunchType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, in_clause
from .model import Attendance, UserPunch
from .repository import AttendanceRepository

_ATTENDANCE_SELECT = """
    SELECT attendance_id, company_id, user_id, company_user_id, punch_date,
           final_status, total_work_hours, total_overtime
    FROM attendances
"""

_PUNCH_SELECT = """
    SELECT punch_id, attendance_id, punch_in, punch_out, punch_in_location, punch_out_location,
           punch_type, status, work_hours, overtime, device_id, ip_address, remarks
    FROM user_punches
"""


def _punch(r: dict) -> UserPunch:
    return UserPunch(
        punch_id=int(r["punch_id"]),
        attendance_id=int(r["attendance_id"]),
        punch_in=r["punch_in"],
        punch_out=r.get("punch_out"),
        punch_in_location=parse_location(r.get("punch_in_location")),
        punch_out_location=parse_location(r.get("punch_out_location")),
        punch_type=PunchType(r.get("punch_type") or PunchType.IN.value),
        status=AttendanceStatus(r.get("status") or AttendanceStatus.PRESENT.value),
        work_hours=as_float(r["work_hours"]) if r.get("work_hours") is not None else None,
        overtime=as_float(r["overtime"]) if r.get("overtime") is not None else None,
        device_id=r.get("device_id"),
        ip_address=r.get("ip_address"),
        remarks=r.get("remarks"),
    )


def _attendance(r: dict, punches: Sequence[UserPunch] = ()) -> Attendance:
    return Attendance(
        attendance_id=int(r["attendance_id"]),
        company_id=int(r["company_id"]),
        user_id=int(r["user_id"]),
        company_user_id=int(r["company_user_id"]) if r.get("company_user_id") is not None else None,
        punch_date=r["punch_date"],
        final_status=AttendanceStatus(r.get("final_status") or AttendanceStatus.PRESENT.value),
        total_work_hours=as_float(r.get("total_work_hours")),
        total_overtime=as_float(r.get("total_overtime")),
        punches=tuple(punches),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _with_punches(self, cur, rows: list) -> list[Attendance]:
        if not rows:
            return []
        ids = [int(r["attendance_id"]) for r in rows]
        cur.execute(
            _PUNCH_SELECT + f" WHERE attendance_id IN ({in_clause(ids)}) ORDER BY punch_in, punch_id",
            tuple(ids),
        )
        punches: dict[int, list[UserPunch]] = defaultdict(list)
        for p in fetchall(cur):
            punches[int(p["attendance_id"])].append(_punch(p))
        return [_attendance(r, punches.get(int(r["attendance_id"]), ())) for r in rows]

    def lock_or_create_day(
        self, *, company_id: int, user_id: int, company_user_id: Optional[int], punch_date: date
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            # LAST_INSERT_ID(expr) makes lastrowid point at the existing row on duplicates.
            cur.execute(
                """
                INSERT INTO attendances(company_id, user_id, company_user_id, punch_date, final_status)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE attendance_id=LAST_INSERT_ID(attendance_id)
                """,
                (int(company_id), int(user_id), company_user_id, punch_date, AttendanceStatus.PRESENT.value),
            )
            attendance_id = int(cur.lastrowid)
            cur.execute("SELECT attendance_id FROM attendances WHERE attendance_id=%s FOR UPDATE", (attendance_id,))
            fetchone(cur)
            return attendance_id

    def lock_day(self, attendance_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT attendance_id FROM attendances WHERE attendance_id=%s FOR UPDATE", (int(attendance_id),))
            fetchone(cur)

    def get_day(self, *, company_id: int, user_id: int, punch_date: date) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _ATTENDANCE_SELECT + " WHERE company_id=%s AND user_id=%s AND punch_date=%s",
                (int(company_id), int(user_id), punch_date),
            )
            r = fetchone(cur)
            return self._with_punches(cur, [r])[0] if r else None

    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ATTENDANCE_SELECT + " WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return self._with_punches(cur, [r])[0] if r else None

    def get_open_punch(self, attendance_id: int, *, for_update: bool = False) -> Optional[UserPunch]:
        sql = _PUNCH_SELECT + " WHERE attendance_id=%s AND punch_out IS NULL ORDER BY punch_in DESC, punch_id DESC LIMIT 1"
        if for_update:
            sql += " FOR UPDATE"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(attendance_id),))
            r = fetchone(cur)
            return _punch(r) if r else None

    def get_latest_punch(self, attendance_id: int) -> Optional[UserPunch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _PUNCH_SELECT + " WHERE attendance_id=%s ORDER BY punch_in DESC, punch_id DESC LIMIT 1",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _punch(r) if r else None

    def list_punches(self, attendance_id: int) -> Sequence[UserPunch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_PUNCH_SELECT + " WHERE attendance_id=%s ORDER BY punch_in, punch_id", (int(attendance_id),))
            return [_punch(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_punches(
                    attendance_id, punch_in, punch_in_location, punch_type, status, device_id, ip_address, remarks
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(attendance_id),
                    punch_in,
                    serialize_location(location),
                    PunchType.IN.value,
                    status.value,
                    device_id,
                    ip_address,
                    remarks,
                ),
            )
            return int(cur.lastrowid)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE user_punches
                SET punch_out=%s, punch_out_location=%s, punch_type=%s, status=%s,
                    work_hours=%s, overtime=%s, remarks=%s
                WHERE punch_id=%s AND punch_out IS NULL
                """,
                (
                    punch_out,
                    serialize_location(location),
                    PunchType.OUT.value,
                    status.value,
                    work_hours,
                    overtime,
                    remarks,
                    int(punch_id),
                ),
            )
            return cur.rowcount > 0

    def update_totals(
        self,
        attendance_id: int,
        *,
        total_work_hours: float,
        total_overtime: float,
        final_status: AttendanceStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendances
                SET total_work_hours=%s, total_overtime=%s, final_status=%s
                WHERE attendance_id=%s
                """,
                (total_work_hours, total_overtime, final_status.value, int(attendance_id)),
            )
            return cur.rowcount > 0

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
        where = ["1=1"]
        params: list = []
        if company_id:
            where.append("company_id=%s")
            params.append(int(company_id))
        if user_id:
            where.append("user_id=%s")
            params.append(int(user_id))
        if start_date:
            where.append("punch_date >= %s")
            params.append(start_date)
        if end_date:
            where.append("punch_date <= %s")
            params.append(end_date)
        clause = " AND ".join(where)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendances WHERE {clause}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                _ATTENDANCE_SELECT
                + f" WHERE {clause} ORDER BY punch_date DESC, attendance_id DESC LIMIT %s OFFSET %s",
                tuple(params + [int(limit), (int(page) - 1) * int(limit)]),
            )
            return self._with_punches(cur, fetchall(cur)), total

    def list_for_user(
        self,
        *,
        company_id: int,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[Attendance]:
        sql = _ATTENDANCE_SELECT + " WHERE company_id=%s AND user_id=%s"
        params: list = [int(company_id), int(user_id)]
        if start_date:
            sql += " AND punch_date >= %s"
            params.append(start_date)
        if end_date:
            sql += " AND punch_date <= %s"
            params.append(end_date)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY punch_date DESC", tuple(params))
            return self._with_punches(cur, fetchall(cur))

    def delete_by_id(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_punches WHERE attendance_id=%s", (int(attendance_id),))
            cur.execute("DELETE FROM attendances WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0
