from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import CompanyUserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, set_clause
from .model import CompanyUser, User
from .repository import CompanyUserRepository, UserRepository

_USER_COLUMNS = ("email", "is_active")
_MEMBER_COLUMNS = ("role_id", "first_name", "middle_name", "last_name", "status", "is_active")

_MEMBER_SELECT = """
    SELECT cu.company_user_id, cu.user_id, cu.company_id, cu.role_id, r.name AS role_name,
           cu.first_name, cu.middle_name, cu.last_name, cu.status, cu.is_active
    FROM company_users cu
    LEFT JOIN company_roles r ON r.role_id = cu.role_id
"""


def _user(r: dict) -> User:
    return User(user_id=int(r["user_id"]), email=r["email"], is_active=bool(r.get("is_active", True)))


def _member(r: dict) -> CompanyUser:
    return CompanyUser(
        company_user_id=int(r["company_user_id"]),
        user_id=int(r["user_id"]),
        company_id=int(r["company_id"]),
        role_id=int(r["role_id"]) if r.get("role_id") is not None else None,
        role_name=r.get("role_name"),
        first_name=r.get("first_name"),
        middle_name=r.get("middle_name"),
        last_name=r.get("last_name"),
        status=CompanyUserStatus(r.get("status") or CompanyUserStatus.PENDING.value),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id, email, is_active FROM users WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _user(r) if r else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id, email, is_active FROM users WHERE email=%s", (email,))
            r = fetchone(cur)
            return _user(r) if r else None

    def list_all(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id, email, is_active FROM users ORDER BY user_id")
            return [_user(r) for r in fetchall(cur)]

    def create_user(self, *, email: str, is_active: bool = True) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO users(email, is_active) VALUES(%s,%s)", (email, int(bool(is_active))))
            return int(cur.lastrowid)

    def update(self, user_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        clause, params = set_clause(fields, _USER_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {clause} WHERE user_id=%s", tuple(params + [int(user_id)]))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0


class MySQLCompanyUserRepository(CompanyUserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, company_user_id: int) -> Optional[CompanyUser]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_MEMBER_SELECT + " WHERE cu.company_user_id=%s", (int(company_user_id),))
            r = fetchone(cur)
            return _member(r) if r else None

    def get_membership(self, *, user_id: int, company_id: int) -> Optional[CompanyUser]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _MEMBER_SELECT + " WHERE cu.user_id=%s AND cu.company_id=%s",
                (int(user_id), int(company_id)),
            )
            r = fetchone(cur)
            return _member(r) if r else None

    def list_for_company(self, company_id: int, *, active_only: bool = False) -> Sequence[CompanyUser]:
        sql = _MEMBER_SELECT + " WHERE cu.company_id=%s"
        if active_only:
            sql += " AND cu.is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY cu.company_user_id", (int(company_id),))
            return [_member(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: int) -> Sequence[CompanyUser]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_MEMBER_SELECT + " WHERE cu.user_id=%s ORDER BY cu.company_id", (int(user_id),))
            return [_member(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[CompanyUser]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_MEMBER_SELECT + " ORDER BY cu.company_user_id")
            return [_member(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        user_id: int,
        company_id: int,
        role_id: Optional[int],
        first_name: Optional[str],
        middle_name: Optional[str],
        last_name: Optional[str],
        status: CompanyUserStatus,
        is_active: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO company_users(user_id, company_id, role_id, first_name, middle_name, last_name, status, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    int(company_id),
                    role_id,
                    first_name,
                    middle_name,
                    last_name,
                    status.value,
                    int(bool(is_active)),
                ),
            )
            return int(cur.lastrowid)

    def update(self, company_user_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        fields = dict(fields)
        if isinstance(fields.get("status"), CompanyUserStatus):
            fields["status"] = fields["status"].value
        clause, params = set_clause(fields, _MEMBER_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE company_users SET {clause} WHERE company_user_id=%s",
                tuple(params + [int(company_user_id)]),
            )
            return cur.rowcount > 0

    def delete_by_id(self, company_user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM company_users WHERE company_user_id=%s", (int(company_user_id),))
            return cur.rowcount > 0
