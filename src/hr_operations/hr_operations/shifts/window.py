from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .model import ShiftAttribute
from .repository import ShiftRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShiftWindowResult:
    allowed: bool
    reason: str
    shift_details: Optional[dict] = None


def _details(attribute: ShiftAttribute, start: datetime, end: datetime) -> dict:
    return {
        "shift_attribute_id": attribute.shift_attribute_id,
        "shift_name": attribute.shift_name,
        "start_time": attribute.start_time.strftime("%H:%M"),
        "end_time": attribute.end_time.strftime("%H:%M"),
        "grace_period_minutes": attribute.grace_period_minutes,
        "window_start": start.isoformat(),
        "window_end": end.isoformat(),
    }


class ShiftWindowEvaluator:
    """Is ``now`` inside the member's assigned shift, grace included?

    Never raises: lookup failures are logged and reported as not allowed.
    """

    def __init__(self, shifts: ShiftRepository):
        self._shifts = shifts

    def is_in_shift(self, *, company_user_id: int, company_id: int, now: datetime) -> ShiftWindowResult:
        try:
            attribute = self._shifts.get_active_assignment(company_user_id=company_user_id, company_id=company_id)
        except Exception:
            logger.exception("Shift lookup failed for company user %s", company_user_id)
            return ShiftWindowResult(allowed=False, reason="Error checking shift assignment")

        if not attribute:
            return ShiftWindowResult(allowed=False, reason="No active shift assigned to user")

        grace = timedelta(minutes=attribute.grace_period_minutes)
        days = [now.date()]
        if attribute.crosses_midnight:
            # 01:00 may still belong to the shift that started yesterday.
            days.insert(0, now.date() - timedelta(days=1))

        start = end = None
        for day in days:
            start, end = attribute.window_on(day)
            start, end = start - grace, end + grace
            if start <= now <= end:
                return ShiftWindowResult(
                    allowed=True,
                    reason="Within shift window",
                    shift_details=_details(attribute, start, end),
                )

        return ShiftWindowResult(
            allowed=False,
            reason=f"Outside shift window ({attribute.shift_name} {attribute.start_time:%H:%M}-{attribute.end_time:%H:%M})",
            shift_details=_details(attribute, start, end),
        )
