from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional, Sequence

from .connection import DatabaseConnection
from .errors import translate_errors


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    bound = conn_factory.current()
    if bound is not None:
        # Part of a running transaction: the owner of the block commits or rolls back.
        with translate_errors():
            cur = bound.cursor(dictionary=dictionary)
            try:
                yield bound, cur
            finally:
                cur.close()
        return

    with translate_errors():
        conn = conn_factory.connect()
        try:
            cur = conn.cursor(dictionary=dictionary)
            try:
                yield conn, cur
                conn.commit()
            finally:
                cur.close()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Sequence[Any]) -> str:
    """Placeholders for ``IN (...)``; callers must not pass an empty sequence."""
    return ", ".join(["%s"] * len(values))


def set_clause(fields: dict, allowed: Sequence[str]) -> tuple[str, list[Any]]:
    """Build ``col=%s, ...`` for an UPDATE from whitelisted columns only."""
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValueError(f"Unsupported columns: {sorted(unknown)}")
    cols = [c for c in allowed if c in fields]
    return ", ".join(f"{c}=%s" for c in cols), [fields[c] for c in cols]


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Normalize MySQL TIME values across connector implementations.

    mysql-connector can return TIME as:
    - datetime.time
    - datetime.timedelta
    - string (e.g. '08:30:00')
    """

    if value is None:
        return None

    if isinstance(value, datetime):
        return value.time()

    if isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds()) % 86400
        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60
        return time(hour=hours, minute=minutes, second=seconds)

    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
        return time(hour=hours, minute=minutes, second=seconds)

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")


def as_float(value: Any) -> float:
    """DECIMAL columns come back as Decimal; the domain works in float hours/days."""
    return float(value) if value is not None else 0.0
