from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import hours_between
from ...shifts.model import ShiftAttribute
from .base import PunchHours, WorkHoursCalculator


def scheduled_hours(shift: ShiftAttribute) -> float:
    """Net scheduled hours: (end - start, +24h across midnight) - break."""
    start = shift.start_time.hour + shift.start_time.minute / 60 + shift.start_time.second / 3600
    end = shift.end_time.hour + shift.end_time.minute / 60 + shift.end_time.second / 3600
    if end <= start:
        end += 24
    return (end - start) - (shift.break_duration or 0) / 60


class ShiftOvertimeCalculator(WorkHoursCalculator):
    """Worked time is the full session; overtime is whatever exceeds the shift's net hours.

    On a non-working day the whole session counts as overtime.
    Values are not rounded here.
    """

    def compute(
        self,
        *,
        punch_in: datetime,
        punch_out: datetime,
        shift: Optional[ShiftAttribute],
        non_working_day: bool = False,
    ) -> PunchHours:
        worked = hours_between(punch_in, punch_out)
        if non_working_day:
            return PunchHours(work_hours=0.0, overtime=worked)
        if shift is None:
            return PunchHours(work_hours=worked, overtime=0.0)
        return PunchHours(work_hours=worked, overtime=max(0.0, worked - scheduled_hours(shift)))
