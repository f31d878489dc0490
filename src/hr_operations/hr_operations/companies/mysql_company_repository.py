from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, set_clause
from .model import Company, CompanyRole
from .repository import CompanyRepository, RoleRepository

_COMPANY_COLUMNS = ("name", "email", "phone", "address", "is_active")
_ROLE_COLUMNS = ("name", "description")


def _company(r: dict) -> Company:
    return Company(
        company_id=int(r["company_id"]),
        name=r["name"],
        email=r.get("email"),
        phone=r.get("phone"),
        address=r.get("address"),
        is_active=bool(r.get("is_active", True)),
        created_at=r.get("created_at"),
    )


def _role(r: dict) -> CompanyRole:
    return CompanyRole(
        role_id=int(r["role_id"]),
        company_id=int(r["company_id"]),
        name=r["name"],
        description=r.get("description"),
    )


class MySQLCompanyRepository(CompanyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, company_id: int) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT company_id, name, email, phone, address, is_active, created_at
                FROM companies
                WHERE company_id=%s
                """,
                (int(company_id),),
            )
            r = fetchone(cur)
            return _company(r) if r else None

    def get_by_name(self, name: str) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT company_id, name, email, phone, address, is_active, created_at
                FROM companies
                WHERE name=%s
                """,
                (name,),
            )
            r = fetchone(cur)
            return _company(r) if r else None

    def list_all(self) -> Sequence[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT company_id, name, email, phone, address, is_active, created_at
                FROM companies
                ORDER BY created_at DESC, company_id DESC
                """
            )
            return [_company(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        name: str,
        email: Optional[str],
        phone: Optional[str],
        address: Optional[str],
        is_active: bool = True,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO companies(name, email, phone, address, is_active)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (name, email, phone, address, int(bool(is_active))),
            )
            return int(cur.lastrowid)

    def update(self, company_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        clause, params = set_clause(fields, _COMPANY_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE companies SET {clause} WHERE company_id=%s", tuple(params + [int(company_id)]))
            return cur.rowcount > 0

    def delete_by_id(self, company_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM companies WHERE company_id=%s", (int(company_id),))
            return cur.rowcount > 0


class MySQLRoleRepository(RoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, role_id: int) -> Optional[CompanyRole]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT role_id, company_id, name, description FROM company_roles WHERE role_id=%s",
                (int(role_id),),
            )
            r = fetchone(cur)
            return _role(r) if r else None

    def get_by_name(self, *, company_id: int, name: str) -> Optional[CompanyRole]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT role_id, company_id, name, description
                FROM company_roles
                WHERE company_id=%s AND name=%s
                """,
                (int(company_id), name),
            )
            r = fetchone(cur)
            return _role(r) if r else None

    def list_for_company(self, company_id: int) -> Sequence[CompanyRole]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT role_id, company_id, name, description
                FROM company_roles
                WHERE company_id=%s
                ORDER BY name
                """,
                (int(company_id),),
            )
            return [_role(r) for r in fetchall(cur)]

    def create(self, *, company_id: int, name: str, description: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO company_roles(company_id, name, description) VALUES(%s,%s,%s)",
                (int(company_id), name, description),
            )
            return int(cur.lastrowid)

    def update(self, role_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        clause, params = set_clause(fields, _ROLE_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE company_roles SET {clause} WHERE role_id=%s", tuple(params + [int(role_id)]))
            return cur.rowcount > 0

    def delete_by_id(self, role_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM company_roles WHERE role_id=%s", (int(role_id),))
            return cur.rowcount > 0
