from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class CompanyOff:
    """Recurring weekly days off of a company (0=Sunday .. 6=Saturday)."""

    company_off_id: int
    company_id: int
    week_days: frozenset[int]
    description: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class OffDay:
    """Holiday range. With ``user_ids`` it only applies to those members."""

    off_day_id: int
    company_id: int
    company_off_id: int
    created_by: int
    name: str
    holiday_type: str
    from_date: date
    to_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    description: Optional[str] = None
    user_ids: tuple[int, ...] = ()

    @property
    def is_company_wide(self) -> bool:
        return not self.user_ids

    def covers(self, day: date) -> bool:
        return self.from_date <= day <= self.to_date


def format_week_days(days) -> str:
    return ",".join(str(d) for d in sorted(set(days)))


def parse_week_days(raw: Optional[str]) -> frozenset[int]:
    if not raw:
        return frozenset()
    return frozenset(int(p) for p in str(raw).split(",") if p.strip() != "")
