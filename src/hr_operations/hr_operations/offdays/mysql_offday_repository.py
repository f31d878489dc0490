from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, set_clause
from .model import CompanyOff, OffDay, format_week_days, parse_week_days
from .repository import CompanyOffRepository, OffDayRepository

_COMPANY_OFF_COLUMNS = ("week_days", "description")
_OFF_DAY_COLUMNS = ("name", "holiday_type", "from_date", "to_date", "start_time", "end_time", "description")

_OFF_DAY_SELECT = """
    SELECT o.off_day_id, o.company_id, o.company_off_id, o.created_by, o.name, o.holiday_type,
           o.from_date, o.to_date, o.start_time, o.end_time, o.description
    FROM off_days o
"""


def _company_off(r: dict) -> CompanyOff:
    return CompanyOff(
        company_off_id=int(r["company_off_id"]),
        company_id=int(r["company_id"]),
        week_days=parse_week_days(r.get("week_days")),
        description=r.get("description"),
        created_at=r.get("created_at"),
    )


def _off_day(r: dict, user_ids: Sequence[int] = ()) -> OffDay:
    return OffDay(
        off_day_id=int(r["off_day_id"]),
        company_id=int(r["company_id"]),
        company_off_id=int(r["company_off_id"]),
        created_by=int(r["created_by"]),
        name=r["name"],
        holiday_type=r["holiday_type"],
        from_date=r["from_date"],
        to_date=r["to_date"],
        start_time=r.get("start_time"),
        end_time=r.get("end_time"),
        description=r.get("description"),
        user_ids=tuple(user_ids),
    )


class MySQLCompanyOffRepository(CompanyOffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, company_off_id: int) -> Optional[CompanyOff]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT company_off_id, company_id, week_days, description, created_at FROM company_offs WHERE company_off_id=%s",
                (int(company_off_id),),
            )
            r = fetchone(cur)
            return _company_off(r) if r else None

    def get_for_company(self, company_id: int) -> Optional[CompanyOff]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT company_off_id, company_id, week_days, description, created_at FROM company_offs WHERE company_id=%s",
                (int(company_id),),
            )
            r = fetchone(cur)
            return _company_off(r) if r else None

    def list(self, *, company_id: Optional[int], page: int, limit: int) -> tuple[Sequence[CompanyOff], int]:
        where, params = "1=1", []
        if company_id:
            where, params = "company_id=%s", [int(company_id)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM company_offs WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"""
                SELECT company_off_id, company_id, week_days, description, created_at
                FROM company_offs
                WHERE {where}
                ORDER BY created_at DESC, company_off_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), (int(page) - 1) * int(limit)]),
            )
            return [_company_off(r) for r in fetchall(cur)], total

    def create(self, *, company_id: int, week_days: Iterable[int], description: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO company_offs(company_id, week_days, description) VALUES(%s,%s,%s)",
                (int(company_id), format_week_days(week_days), description),
            )
            return int(cur.lastrowid)

    def update(self, company_off_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        fields = dict(fields)
        if "week_days" in fields:
            fields["week_days"] = format_week_days(fields["week_days"])
        clause, params = set_clause(fields, _COMPANY_OFF_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE company_offs SET {clause} WHERE company_off_id=%s",
                tuple(params + [int(company_off_id)]),
            )
            return cur.rowcount > 0

    def delete_by_id(self, company_off_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM company_offs WHERE company_off_id=%s", (int(company_off_id),))
            return cur.rowcount > 0


class MySQLOffDayRepository(OffDayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _with_users(self, cur, rows: list) -> list[OffDay]:
        if not rows:
            return []
        ids = [int(r["off_day_id"]) for r in rows]
        cur.execute(
            f"""
            SELECT off_day_id, company_user_id
            FROM users_offs
            WHERE off_day_id IN ({in_clause(ids)})
            ORDER BY users_off_id
            """,
            tuple(ids),
        )
        users: dict[int, list[int]] = defaultdict(list)
        for u in fetchall(cur):
            users[int(u["off_day_id"])].append(int(u["company_user_id"]))
        return [_off_day(r, users.get(int(r["off_day_id"]), ())) for r in rows]

    def get_by_id(self, off_day_id: int) -> Optional[OffDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_OFF_DAY_SELECT + " WHERE o.off_day_id=%s", (int(off_day_id),))
            r = fetchone(cur)
            if not r:
                return None
            return self._with_users(cur, [r])[0]

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        company_user_id: Optional[int] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> Sequence[OffDay]:
        where = ["1=1"]
        params: list = []
        if company_id:
            where.append("o.company_id=%s")
            params.append(int(company_id))
        if company_user_id:
            where.append("EXISTS (SELECT 1 FROM users_offs u WHERE u.off_day_id=o.off_day_id AND u.company_user_id=%s)")
            params.append(int(company_user_id))
        if to_date:
            where.append("o.from_date <= %s")
            params.append(to_date)
        if from_date:
            where.append("o.to_date >= %s")
            params.append(from_date)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _OFF_DAY_SELECT + f" WHERE {' AND '.join(where)} ORDER BY o.from_date, o.off_day_id",
                tuple(params),
            )
            return self._with_users(cur, fetchall(cur))

    def create(
        self,
        *,
        company_id: int,
        company_off_id: int,
        created_by: int,
        name: str,
        holiday_type: str,
        from_date: date,
        to_date: date,
        start_time: Optional[str],
        end_time: Optional[str],
        description: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO off_days(
                    company_id, company_off_id, created_by, name, holiday_type,
                    from_date, to_date, start_time, end_time, description
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(company_id),
                    int(company_off_id),
                    int(created_by),
                    name,
                    holiday_type,
                    from_date,
                    to_date,
                    start_time,
                    end_time,
                    description,
                ),
            )
            return int(cur.lastrowid)

    def update(self, off_day_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        clause, params = set_clause(fields, _OFF_DAY_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE off_days SET {clause} WHERE off_day_id=%s", tuple(params + [int(off_day_id)]))
            return cur.rowcount > 0

    def delete_by_id(self, off_day_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM off_days WHERE off_day_id=%s", (int(off_day_id),))
            return cur.rowcount > 0

    def replace_users(self, off_day_id: int, company_user_ids: Sequence[int]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users_offs WHERE off_day_id=%s", (int(off_day_id),))
            for company_user_id in company_user_ids:
                cur.execute(
                    "INSERT IGNORE INTO users_offs(off_day_id, company_user_id) VALUES(%s,%s)",
                    (int(off_day_id), int(company_user_id)),
                )

    def find_company_wide(self, *, company_id: int, day: date) -> Optional[OffDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _OFF_DAY_SELECT
                + """
                WHERE o.company_id=%s AND o.from_date <= %s AND o.to_date >= %s
                  AND NOT EXISTS (SELECT 1 FROM users_offs u WHERE u.off_day_id=o.off_day_id)
                ORDER BY o.from_date
                LIMIT 1
                """,
                (int(company_id), day, day),
            )
            r = fetchone(cur)
            return _off_day(r) if r else None

    def find_for_member(self, *, company_id: int, company_user_id: int, day: date) -> Optional[OffDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _OFF_DAY_SELECT
                + """
                JOIN users_offs u ON u.off_day_id = o.off_day_id
                WHERE o.company_id=%s AND u.company_user_id=%s AND o.from_date <= %s AND o.to_date >= %s
                ORDER BY o.from_date
                LIMIT 1
                """,
                (int(company_id), int(company_user_id), day, day),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._with_users(cur, [r])[0]
