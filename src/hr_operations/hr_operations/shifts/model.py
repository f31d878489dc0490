from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional


@dataclass(frozen=True)
class ShiftAttribute:
    """One named time window of a shift (e.g. 'Morning 09:00-17:30')."""

    shift_attribute_id: int
    shift_id: int
    shift_name: str
    start_time: time
    end_time: time
    break_duration: int = 0
    grace_period_minutes: int = 0
    description: Optional[str] = None
    color: Optional[str] = None
    is_active: bool = True
    assigned_user_ids: tuple[int, ...] = ()

    @property
    def crosses_midnight(self) -> bool:
        return self.end_time <= self.start_time

    def window_on(self, day: date) -> tuple[datetime, datetime]:
        """Start/end of the shift that begins on ``day``, before grace."""
        start = datetime.combine(day, self.start_time)
        end = datetime.combine(day, self.end_time)
        if self.crosses_midnight:
            end += timedelta(days=1)
        return start, end


@dataclass(frozen=True)
class Shift:
    shift_id: int
    company_id: int
    created_by: int
    created_at: Optional[datetime] = None
    attributes: tuple[ShiftAttribute, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ShiftAssignment:
    assignment_id: int
    shift_attribute_id: int
    company_user_id: int
    assigned_at: Optional[datetime] = None


@dataclass(frozen=True)
class AssignmentResult:
    attribute: ShiftAttribute
    assignments_created: int
    existing_users_skipped: int
    users_removed: int
