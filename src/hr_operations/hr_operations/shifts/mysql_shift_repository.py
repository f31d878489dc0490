from __future__ import annotations

from collections import defaultdict
from datetime import time
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time, set_clause
from .model import Shift, ShiftAttribute
from .repository import ShiftRepository

_SHIFT_COLUMNS = ("company_id", "created_by")
_ATTRIBUTE_COLUMNS = (
    "shift_name",
    "start_time",
    "end_time",
    "break_duration",
    "grace_period_minutes",
    "description",
    "color",
    "is_active",
)

_ATTRIBUTE_SELECT = """
    SELECT sa.shift_attribute_id, sa.shift_id, sa.shift_name, sa.start_time, sa.end_time,
           sa.break_duration, sa.grace_period_minutes, sa.description, sa.color, sa.is_active
    FROM shift_attributes sa
"""


def _attribute(r: dict, assigned: Sequence[int] = ()) -> ShiftAttribute:
    return ShiftAttribute(
        shift_attribute_id=int(r["shift_attribute_id"]),
        shift_id=int(r["shift_id"]),
        shift_name=r["shift_name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        break_duration=int(r.get("break_duration") or 0),
        grace_period_minutes=int(r.get("grace_period_minutes") or 0),
        description=r.get("description"),
        color=r.get("color"),
        is_active=bool(r.get("is_active", True)),
        assigned_user_ids=tuple(assigned),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_attributes(self, cur, shift_ids: Sequence[int], *, is_active: Optional[bool] = None) -> dict[int, list]:
        if not shift_ids:
            return {}
        sql = _ATTRIBUTE_SELECT + f" WHERE sa.shift_id IN ({in_clause(shift_ids)})"
        params: list = list(shift_ids)
        if is_active is not None:
            sql += " AND sa.is_active=%s"
            params.append(int(bool(is_active)))
        cur.execute(sql + " ORDER BY sa.shift_attribute_id", tuple(params))
        rows = fetchall(cur)

        assigned: dict[int, list[int]] = defaultdict(list)
        attribute_ids = [int(r["shift_attribute_id"]) for r in rows]
        if attribute_ids:
            cur.execute(
                f"""
                SELECT shift_attribute_id, company_user_id
                FROM shift_assignments
                WHERE shift_attribute_id IN ({in_clause(attribute_ids)})
                ORDER BY assigned_at, assignment_id
                """,
                tuple(attribute_ids),
            )
            for a in fetchall(cur):
                assigned[int(a["shift_attribute_id"])].append(int(a["company_user_id"]))

        by_shift: dict[int, list] = defaultdict(list)
        for r in rows:
            by_shift[int(r["shift_id"])].append(_attribute(r, assigned.get(int(r["shift_attribute_id"]), ())))
        return by_shift

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT shift_id, company_id, created_by, created_at FROM shifts WHERE shift_id=%s",
                (int(shift_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            attributes = self._load_attributes(cur, [int(r["shift_id"])])
            return Shift(
                shift_id=int(r["shift_id"]),
                company_id=int(r["company_id"]),
                created_by=int(r["created_by"]),
                created_at=r.get("created_at"),
                attributes=tuple(attributes.get(int(r["shift_id"]), ())),
            )

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        created_by: Optional[int] = None,
        assigned_company_user_id: Optional[int] = None,
        shift_name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Sequence[Shift]:
        where = ["1=1"]
        params: list = []
        if company_id:
            where.append("s.company_id=%s")
            params.append(int(company_id))
        if created_by:
            where.append("s.created_by=%s")
            params.append(int(created_by))
        if shift_name:
            where.append(
                "EXISTS (SELECT 1 FROM shift_attributes sa WHERE sa.shift_id=s.shift_id AND LOWER(sa.shift_name) LIKE %s)"
            )
            params.append(f"%{shift_name.lower()}%")
        if assigned_company_user_id:
            where.append(
                """
                EXISTS (
                    SELECT 1 FROM shift_attributes sa
                    JOIN shift_assignments a ON a.shift_attribute_id = sa.shift_attribute_id
                    WHERE sa.shift_id=s.shift_id AND a.company_user_id=%s
                )
                """
            )
            params.append(int(assigned_company_user_id))
        if is_active is not None:
            where.append("EXISTS (SELECT 1 FROM shift_attributes sa WHERE sa.shift_id=s.shift_id AND sa.is_active=%s)")
            params.append(int(bool(is_active)))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT s.shift_id, s.company_id, s.created_by, s.created_at
                FROM shifts s
                WHERE {' AND '.join(where)}
                ORDER BY s.created_at DESC, s.shift_id DESC
                """,
                tuple(params),
            )
            rows = fetchall(cur)
            attributes = self._load_attributes(cur, [int(r["shift_id"]) for r in rows], is_active=is_active)
            return [
                Shift(
                    shift_id=int(r["shift_id"]),
                    company_id=int(r["company_id"]),
                    created_by=int(r["created_by"]),
                    created_at=r.get("created_at"),
                    attributes=tuple(attributes.get(int(r["shift_id"]), ())),
                )
                for r in rows
            ]

    def create_shift(self, *, company_id: int, created_by: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO shifts(company_id, created_by) VALUES(%s,%s)",
                (int(company_id), int(created_by)),
            )
            return int(cur.lastrowid)

    def update_shift(self, shift_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        clause, params = set_clause(fields, _SHIFT_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE shifts SET {clause} WHERE shift_id=%s", tuple(params + [int(shift_id)]))
            return cur.rowcount > 0

    def delete_shift(self, shift_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shifts WHERE shift_id=%s", (int(shift_id),))
            return cur.rowcount > 0

    def create_attribute(
        self,
        *,
        shift_id: int,
        shift_name: str,
        start_time: time,
        end_time: time,
        break_duration: int,
        grace_period_minutes: int,
        description: Optional[str],
        color: Optional[str],
        is_active: bool = True,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shift_attributes(
                    shift_id, shift_name, start_time, end_time, break_duration,
                    grace_period_minutes, description, color, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(shift_id),
                    shift_name,
                    start_time,
                    end_time,
                    int(break_duration),
                    int(grace_period_minutes),
                    description,
                    color,
                    int(bool(is_active)),
                ),
            )
            return int(cur.lastrowid)

    def get_attribute(self, shift_attribute_id: int) -> Optional[ShiftAttribute]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ATTRIBUTE_SELECT + " WHERE sa.shift_attribute_id=%s", (int(shift_attribute_id),))
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                "SELECT company_user_id FROM shift_assignments WHERE shift_attribute_id=%s ORDER BY assigned_at, assignment_id",
                (int(shift_attribute_id),),
            )
            return _attribute(r, [int(a["company_user_id"]) for a in fetchall(cur)])

    def update_attribute(self, shift_attribute_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        clause, params = set_clause(fields, _ATTRIBUTE_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE shift_attributes SET {clause} WHERE shift_attribute_id=%s",
                tuple(params + [int(shift_attribute_id)]),
            )
            return cur.rowcount > 0

    def delete_attribute(self, shift_attribute_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shift_attributes WHERE shift_attribute_id=%s", (int(shift_attribute_id),))
            return cur.rowcount > 0

    def add_assignment(self, *, shift_attribute_id: int, company_user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO shift_assignments(shift_attribute_id, company_user_id) VALUES(%s,%s)",
                (int(shift_attribute_id), int(company_user_id)),
            )
            return int(cur.lastrowid)

    def remove_assignments(self, *, shift_attribute_id: int, company_user_ids: Sequence[int]) -> int:
        if not company_user_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                DELETE FROM shift_assignments
                WHERE shift_attribute_id=%s AND company_user_id IN ({in_clause(company_user_ids)})
                """,
                tuple([int(shift_attribute_id)] + [int(x) for x in company_user_ids]),
            )
            return int(cur.rowcount)

    def get_active_assignment(self, *, company_user_id: int, company_id: int) -> Optional[ShiftAttribute]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _ATTRIBUTE_SELECT
                + """
                JOIN shift_assignments a ON a.shift_attribute_id = sa.shift_attribute_id
                JOIN shifts s ON s.shift_id = sa.shift_id
                WHERE a.company_user_id=%s AND s.company_id=%s AND sa.is_active=1
                ORDER BY a.assigned_at DESC, a.assignment_id DESC
                LIMIT 1
                """,
                (int(company_user_id), int(company_id)),
            )
            r = fetchone(cur)
            return _attribute(r) if r else None
