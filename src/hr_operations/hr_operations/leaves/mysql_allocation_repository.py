from __future__ import annotations

from collections import defaultdict
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, in_clause, set_clause
from .model import CarryForwardDays, LeaveAttribute, LeaveTypeAllocation, UsersLeaveRecord
from .repository import AllocationRepository, LeaveRecordRepository

_ATTRIBUTE_COLUMNS = ("year", "leave_name", "role", "allocated_days", "is_active")

_RECORD_SELECT = """
    SELECT r.record_id, r.user_id, r.company_user_id, r.leave_attribute_id, r.year,
           r.used_days, r.remaining_days, r.carried_over_days,
           a.leave_name, a.allocated_days
    FROM users_leave_records r
    JOIN leave_attributes a ON a.leave_attribute_id = r.leave_attribute_id
"""


def _attribute(r: dict) -> LeaveAttribute:
    return LeaveAttribute(
        leave_attribute_id=int(r["leave_attribute_id"]),
        allocation_id=int(r["allocation_id"]),
        year=int(r["year"]),
        leave_name=r["leave_name"],
        role=r["role"],
        allocated_days=as_float(r.get("allocated_days")),
        is_active=bool(r.get("is_active", 1)),
        company_id=int(r["company_id"]) if r.get("company_id") is not None else None,
    )


def _record(r: dict) -> UsersLeaveRecord:
    return UsersLeaveRecord(
        record_id=int(r["record_id"]),
        user_id=int(r["user_id"]),
        company_user_id=int(r["company_user_id"]),
        leave_attribute_id=int(r["leave_attribute_id"]),
        year=int(r["year"]),
        used_days=as_float(r.get("used_days")),
        remaining_days=as_float(r.get("remaining_days")),
        carried_over_days=as_float(r.get("carried_over_days")),
        leave_name=r.get("leave_name"),
        allocated_days=as_float(r["allocated_days"]) if r.get("allocated_days") is not None else None,
    )


def _carry_forward(r: dict) -> CarryForwardDays:
    return CarryForwardDays(
        carry_forward_id=int(r["carry_forward_id"]),
        record_id=int(r["record_id"]),
        days=as_float(r.get("days")),
        year=int(r["year"]),
        created_at=r.get("created_at"),
    )


class MySQLAllocationRepository(AllocationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _with_attributes(self, cur, rows: list, *, leave_name=None, role=None, year=None) -> list[LeaveTypeAllocation]:
        if not rows:
            return []
        ids = [int(r["allocation_id"]) for r in rows]
        where = [f"a.allocation_id IN ({in_clause(ids)})"]
        params: list = list(ids)
        if leave_name:
            where.append("LOWER(a.leave_name)=LOWER(%s)")
            params.append(leave_name)
        if role:
            where.append("LOWER(a.role)=LOWER(%s)")
            params.append(role)
        if year:
            where.append("a.year=%s")
            params.append(int(year))
        cur.execute(
            f"""
            SELECT a.leave_attribute_id, a.allocation_id, a.year, a.leave_name, a.role,
                   a.allocated_days, a.is_active, t.company_id
            FROM leave_attributes a
            JOIN leave_type_allocations t ON t.allocation_id = a.allocation_id
            WHERE {' AND '.join(where)}
            ORDER BY a.leave_attribute_id
            """,
            tuple(params),
        )
        attrs: dict[int, list[LeaveAttribute]] = defaultdict(list)
        for a in fetchall(cur):
            attrs[int(a["allocation_id"])].append(_attribute(a))
        return [
            LeaveTypeAllocation(
                allocation_id=int(r["allocation_id"]),
                company_id=int(r["company_id"]),
                created_by=int(r["created_by"]),
                created_at=r.get("created_at"),
                attributes=tuple(attrs.get(int(r["allocation_id"]), ())),
            )
            for r in rows
        ]

    def get_by_id(self, allocation_id: int) -> Optional[LeaveTypeAllocation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT allocation_id, company_id, created_by, created_at FROM leave_type_allocations WHERE allocation_id=%s",
                (int(allocation_id),),
            )
            r = fetchone(cur)
            return self._with_attributes(cur, [r])[0] if r else None

    def get_for_company(self, company_id: int) -> Optional[LeaveTypeAllocation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT allocation_id, company_id, created_by, created_at FROM leave_type_allocations WHERE company_id=%s",
                (int(company_id),),
            )
            r = fetchone(cur)
            return self._with_attributes(cur, [r])[0] if r else None

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        leave_name: Optional[str] = None,
        role: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Sequence[LeaveTypeAllocation]:
        where, params = "1=1", []
        if company_id:
            where, params = "company_id=%s", [int(company_id)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT allocation_id, company_id, created_by, created_at
                FROM leave_type_allocations
                WHERE {where}
                ORDER BY created_at DESC, allocation_id DESC
                """,
                tuple(params),
            )
            items = self._with_attributes(cur, fetchall(cur), leave_name=leave_name, role=role, year=year)
        if leave_name or role or year:
            items = [a for a in items if a.attributes]
        return items

    def create(self, *, company_id: int, created_by: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO leave_type_allocations(company_id, created_by) VALUES(%s,%s)",
                (int(company_id), int(created_by)),
            )
            return int(cur.lastrowid)

    def update(self, allocation_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        clause, params = set_clause(fields, ("created_by",))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE leave_type_allocations SET {clause} WHERE allocation_id=%s",
                tuple(params + [int(allocation_id)]),
            )
            return cur.rowcount > 0

    def delete_by_id(self, allocation_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_type_allocations WHERE allocation_id=%s", (int(allocation_id),))
            return cur.rowcount > 0

    def get_attribute(self, leave_attribute_id: int) -> Optional[LeaveAttribute]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.leave_attribute_id, a.allocation_id, a.year, a.leave_name, a.role,
                       a.allocated_days, a.is_active, t.company_id
                FROM leave_attributes a
                JOIN leave_type_allocations t ON t.allocation_id = a.allocation_id
                WHERE a.leave_attribute_id=%s
                """,
                (int(leave_attribute_id),),
            )
            r = fetchone(cur)
            return _attribute(r) if r else None

    def create_attribute(
        self,
        *,
        allocation_id: int,
        year: int,
        leave_name: str,
        role: str,
        allocated_days: float,
        is_active: bool = True,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_attributes(allocation_id, year, leave_name, role, allocated_days, is_active)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(allocation_id), int(year), leave_name, role, float(allocated_days), 1 if is_active else 0),
            )
            return int(cur.lastrowid)

    def update_attribute(self, leave_attribute_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        fields = dict(fields)
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        clause, params = set_clause(fields, _ATTRIBUTE_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE leave_attributes SET {clause} WHERE leave_attribute_id=%s",
                tuple(params + [int(leave_attribute_id)]),
            )
            return cur.rowcount > 0


class MySQLLeaveRecordRepository(LeaveRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[UsersLeaveRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_RECORD_SELECT + " WHERE r.record_id=%s", (int(record_id),))
            r = fetchone(cur)
            return _record(r) if r else None

    def lock(self, record_id: int) -> Optional[UsersLeaveRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_RECORD_SELECT + " WHERE r.record_id=%s FOR UPDATE", (int(record_id),))
            r = fetchone(cur)
            return _record(r) if r else None

    def find(self, *, company_user_id: int, leave_attribute_id: int, year: int) -> Optional[UsersLeaveRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _RECORD_SELECT + " WHERE r.company_user_id=%s AND r.leave_attribute_id=%s AND r.year=%s",
                (int(company_user_id), int(leave_attribute_id), int(year)),
            )
            r = fetchone(cur)
            return _record(r) if r else None

    def list(
        self,
        *,
        user_id: Optional[int] = None,
        company_user_id: Optional[int] = None,
        leave_attribute_id: Optional[int] = None,
        company_id: Optional[int] = None,
        year: Optional[int] = None,
    ) -> Sequence[UsersLeaveRecord]:
        where = ["1=1"]
        params: list = []
        if user_id:
            where.append("r.user_id=%s")
            params.append(int(user_id))
        if company_user_id:
            where.append("r.company_user_id=%s")
            params.append(int(company_user_id))
        if leave_attribute_id:
            where.append("r.leave_attribute_id=%s")
            params.append(int(leave_attribute_id))
        if company_id:
            where.append(
                "EXISTS (SELECT 1 FROM leave_type_allocations t WHERE t.allocation_id=a.allocation_id AND t.company_id=%s)"
            )
            params.append(int(company_id))
        if year:
            where.append("r.year=%s")
            params.append(int(year))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_RECORD_SELECT + f" WHERE {' AND '.join(where)} ORDER BY r.record_id", tuple(params))
            return [_record(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        user_id: int,
        company_user_id: int,
        leave_attribute_id: int,
        year: int,
        remaining_days: float,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users_leave_records(
                    user_id, company_user_id, leave_attribute_id, year, used_days, remaining_days, carried_over_days
                )
                VALUES(%s,%s,%s,%s,0,%s,0)
                """,
                (int(user_id), int(company_user_id), int(leave_attribute_id), int(year), float(remaining_days)),
            )
            return int(cur.lastrowid)

    def save_balances(self, record: UsersLeaveRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users_leave_records
                SET used_days=%s, remaining_days=%s, carried_over_days=%s
                WHERE record_id=%s
                """,
                (record.used_days, record.remaining_days, record.carried_over_days, int(record.record_id)),
            )
            return cur.rowcount > 0

    def add_carry_forward(self, *, record_id: int, days: float, year: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO carry_forward_days(record_id, days, year) VALUES(%s,%s,%s)",
                (int(record_id), float(days), int(year)),
            )
            return int(cur.lastrowid)

    def get_carry_forward(self, carry_forward_id: int) -> Optional[CarryForwardDays]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT carry_forward_id, record_id, days, year, created_at FROM carry_forward_days WHERE carry_forward_id=%s",
                (int(carry_forward_id),),
            )
            r = fetchone(cur)
            return _carry_forward(r) if r else None

    def delete_carry_forward(self, carry_forward_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM carry_forward_days WHERE carry_forward_id=%s", (int(carry_forward_id),))
            return cur.rowcount > 0

    def list_carry_forwards(self, record_id: int) -> Sequence[CarryForwardDays]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT carry_forward_id, record_id, days, year, created_at
                FROM carry_forward_days
                WHERE record_id=%s
                ORDER BY created_at, carry_forward_id
                """,
                (int(record_id),),
            )
            return [_carry_forward(r) for r in fetchall(cur)]
