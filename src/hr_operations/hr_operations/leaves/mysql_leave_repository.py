from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, set_clause
from .model import AttachmentUpload, Leave, LeaveAttachment, LeaveComment
from .repository import LeaveRepository

_LEAVE_COLUMNS = (
    "leave_type_id",
    "users_leave_record_id",
    "start_date",
    "end_date",
    "status",
    "approver_id",
    "reason",
    "rejection_reason",
)

_LEAVE_SELECT = """
    SELECT l.leave_id, l.company_id, l.user_id, l.company_user_id, l.leave_type_id, l.users_leave_record_id,
           l.start_date, l.end_date, l.status, l.approver_id, l.reason, l.rejection_reason,
           l.created_at, l.updated_at
    FROM leaves l
"""


def _leave(r: dict, comments: Sequence[LeaveComment] = (), attachments: Sequence[LeaveAttachment] = ()) -> Leave:
    return Leave(
        leave_id=int(r["leave_id"]),
        company_id=int(r["company_id"]),
        user_id=int(r["user_id"]),
        company_user_id=int(r["company_user_id"]),
        leave_type_id=int(r["leave_type_id"]),
        users_leave_record_id=int(r["users_leave_record_id"]) if r.get("users_leave_record_id") is not None else None,
        start_date=r["start_date"],
        end_date=r["end_date"],
        status=LeaveStatus(r.get("status") or LeaveStatus.PENDING.value),
        approver_id=int(r["approver_id"]) if r.get("approver_id") is not None else None,
        reason=r.get("reason"),
        rejection_reason=r.get("rejection_reason"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        comments=tuple(comments),
        attachments=tuple(attachments),
    )


def _comment(r: dict) -> LeaveComment:
    return LeaveComment(
        comment_id=int(r["comment_id"]),
        leave_id=int(r["leave_id"]),
        company_user_id=int(r["company_user_id"]),
        comment=r["comment"],
        comment_date=r.get("comment_date"),
    )


def _attachment(r: dict) -> LeaveAttachment:
    return LeaveAttachment(
        attachment_id=int(r["attachment_id"]),
        leave_id=int(r["leave_id"]),
        user_id=int(r["user_id"]),
        storage_path=r["storage_path"],
        file_name=r.get("file_name"),
        file_size=int(r["file_size"]) if r.get("file_size") is not None else None,
        mime_type=r.get("mime_type"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _with_details(self, cur, rows: list) -> list[Leave]:
        if not rows:
            return []
        ids = [int(r["leave_id"]) for r in rows]
        cur.execute(
            f"""
            SELECT comment_id, leave_id, company_user_id, comment, comment_date
            FROM leave_comments
            WHERE leave_id IN ({in_clause(ids)})
            ORDER BY comment_date, comment_id
            """,
            tuple(ids),
        )
        comments: dict[int, list[LeaveComment]] = defaultdict(list)
        for c in fetchall(cur):
            comments[int(c["leave_id"])].append(_comment(c))
        cur.execute(
            f"""
            SELECT attachment_id, leave_id, user_id, storage_path, file_name, file_size, mime_type
            FROM leave_attachments
            WHERE leave_id IN ({in_clause(ids)})
            ORDER BY attachment_id
            """,
            tuple(ids),
        )
        attachments: dict[int, list[LeaveAttachment]] = defaultdict(list)
        for a in fetchall(cur):
            attachments[int(a["leave_id"])].append(_attachment(a))
        return [
            _leave(r, comments.get(int(r["leave_id"]), ()), attachments.get(int(r["leave_id"]), ()))
            for r in rows
        ]

    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_LEAVE_SELECT + " WHERE l.leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            return self._with_details(cur, [r])[0] if r else None

    def lock(self, leave_id: int) -> Optional[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_LEAVE_SELECT + " WHERE l.leave_id=%s FOR UPDATE", (int(leave_id),))
            r = fetchone(cur)
            return _leave(r) if r else None

    def create(
        self,
        *,
        company_id: int,
        user_id: int,
        company_user_id: int,
        leave_type_id: int,
        users_leave_record_id: int,
        start_date: date,
        end_date: date,
        status: LeaveStatus,
        approver_id: Optional[int],
        reason: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leaves(
                    company_id, user_id, company_user_id, leave_type_id, users_leave_record_id,
                    start_date, end_date, status, approver_id, reason
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(company_id),
                    int(user_id),
                    int(company_user_id),
                    int(leave_type_id),
                    int(users_leave_record_id),
                    start_date,
                    end_date,
                    LeaveStatus(status).value,
                    approver_id,
                    reason,
                ),
            )
            return int(cur.lastrowid)

    def update(self, leave_id: int, *, fields: dict) -> bool:
        if not fields:
            return True
        fields = dict(fields)
        if isinstance(fields.get("status"), LeaveStatus):
            fields["status"] = fields["status"].value
        clause, params = set_clause(fields, _LEAVE_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE leaves SET {clause} WHERE leave_id=%s", tuple(params + [int(leave_id)]))
            return cur.rowcount > 0

    def delete_by_id(self, leave_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leaves WHERE leave_id=%s", (int(leave_id),))
            return cur.rowcount > 0

    def find_overlapping(
        self,
        *,
        company_id: int,
        user_id: int,
        start_date: date,
        end_date: date,
        statuses: Sequence[LeaveStatus],
        exclude_leave_id: Optional[int] = None,
    ) -> Optional[Leave]:
        if not statuses:
            return None
        values = [LeaveStatus(s).value for s in statuses]
        sql = (
            _LEAVE_SELECT
            + f"""
            WHERE l.user_id=%s AND l.company_id=%s
              AND l.start_date <= %s AND l.end_date >= %s
              AND l.status IN ({in_clause(values)})
            """
        )
        params: list = [int(user_id), int(company_id), end_date, start_date, *values]
        if exclude_leave_id:
            sql += " AND l.leave_id <> %s"
            params.append(int(exclude_leave_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY l.start_date LIMIT 1", tuple(params))
            r = fetchone(cur)
            return _leave(r) if r else None

    def find_approved_covering(self, *, company_id: int, user_id: int, day: date) -> Optional[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _LEAVE_SELECT
                + """
                WHERE l.company_id=%s AND l.user_id=%s AND l.status=%s
                  AND l.start_date <= %s AND l.end_date >= %s
                ORDER BY l.start_date
                LIMIT 1
                """,
                (int(company_id), int(user_id), LeaveStatus.APPROVED.value, day, day),
            )
            r = fetchone(cur)
            return _leave(r) if r else None

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[Leave], int]:
        where = ["1=1"]
        params: list = []
        if company_id:
            where.append("l.company_id=%s")
            params.append(int(company_id))
        if user_id:
            where.append("l.user_id=%s")
            params.append(int(user_id))
        if status:
            where.append("l.status=%s")
            params.append(LeaveStatus(status).value)
        clause = " AND ".join(where)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM leaves l WHERE {clause}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                _LEAVE_SELECT + f" WHERE {clause} ORDER BY l.created_at DESC, l.leave_id DESC LIMIT %s OFFSET %s",
                tuple(params + [int(limit), (int(page) - 1) * int(limit)]),
            )
            return self._with_details(cur, fetchall(cur)), total

    def list_for_user(
        self,
        *,
        user_id: int,
        company_id: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[Leave]:
        where = ["l.user_id=%s"]
        params: list = [int(user_id)]
        if company_id:
            where.append("l.company_id=%s")
            params.append(int(company_id))
        if year:
            where.append("(YEAR(l.start_date)=%s OR YEAR(l.end_date)=%s)")
            params.extend([int(year), int(year)])
        if status:
            where.append("l.status=%s")
            params.append(LeaveStatus(status).value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _LEAVE_SELECT + f" WHERE {' AND '.join(where)} ORDER BY l.start_date DESC, l.leave_id DESC",
                tuple(params),
            )
            return self._with_details(cur, fetchall(cur))

    def count_by_status(self, company_id: int) -> dict[LeaveStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT status, COUNT(*) AS total FROM leaves WHERE company_id=%s GROUP BY status",
                (int(company_id),),
            )
            counts = {s: 0 for s in LeaveStatus}
            for r in fetchall(cur):
                counts[LeaveStatus(r["status"])] = int(r["total"])
            return counts

    def add_comment(self, *, leave_id: int, company_user_id: int, comment: str, comment_date: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO leave_comments(leave_id, company_user_id, comment, comment_date) VALUES(%s,%s,%s,%s)",
                (int(leave_id), int(company_user_id), comment, comment_date),
            )
            return int(cur.lastrowid)

    def get_comment(self, comment_id: int) -> Optional[LeaveComment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT comment_id, leave_id, company_user_id, comment, comment_date FROM leave_comments WHERE comment_id=%s",
                (int(comment_id),),
            )
            r = fetchone(cur)
            return _comment(r) if r else None

    def add_attachment(self, *, leave_id: int, user_id: int, upload: AttachmentUpload) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_attachments(leave_id, user_id, storage_path, file_name, file_size, mime_type)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(leave_id), int(user_id), upload.storage_path, upload.file_name, upload.file_size, upload.mime_type),
            )
            return int(cur.lastrowid)
