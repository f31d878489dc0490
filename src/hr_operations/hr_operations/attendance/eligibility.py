from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import sunday_based_weekday
from ..core.enums import EligibilityReason
from ..leaves.repository import LeaveRepository
from ..offdays.repository import CompanyOffRepository, OffDayRepository


@dataclass(frozen=True)
class EligibilityResult:
    can_punch: bool
    reason: EligibilityReason
    message: str
    details: dict[str, Any] = field(default_factory=dict)


class EligibilityGate:
    """Decides whether ``now`` is a working day for the member.

    Checks run in order and the first match wins: approved leave, company-wide
    off day, member-specific off day, weekly company off.
    """

    def __init__(self, leaves: LeaveRepository, off_days: OffDayRepository, company_offs: CompanyOffRepository):
        self._leaves = leaves
        self._off_days = off_days
        self._company_offs = company_offs

    def check_eligibility(
        self,
        *,
        company_id: int,
        user_id: int,
        company_user_id: Optional[int],
        now: datetime,
    ) -> EligibilityResult:
        day = now.date()

        leave = self._leaves.find_approved_covering(company_id=company_id, user_id=user_id, day=day)
        if leave:
            return EligibilityResult(
                can_punch=False,
                reason=EligibilityReason.ON_LEAVE,
                message="User is currently on approved leave",
                details={"leave_id": leave.leave_id, "start_date": leave.start_date, "end_date": leave.end_date},
            )

        off_day = self._off_days.find_company_wide(company_id=company_id, day=day)
        if off_day:
            return EligibilityResult(
                can_punch=False,
                reason=EligibilityReason.COMPANY_OFF_DAY,
                message="Today is a company off day",
                details={"off_day_id": off_day.off_day_id, "name": off_day.name},
            )

        if company_user_id:
            off_day = self._off_days.find_for_member(company_id=company_id, company_user_id=company_user_id, day=day)
            if off_day:
                return EligibilityResult(
                    can_punch=False,
                    reason=EligibilityReason.USER_SPECIFIC_OFF_DAY,
                    message="User has a scheduled off day",
                    details={"off_day_id": off_day.off_day_id, "name": off_day.name},
                )

        company_off = self._company_offs.get_for_company(company_id)
        weekday = sunday_based_weekday(day)
        if company_off and weekday in company_off.week_days:
            return EligibilityResult(
                can_punch=False,
                reason=EligibilityReason.WEEKLY_COMPANY_OFF,
                message="Today is a weekly company off day",
                details={"company_off_id": company_off.company_off_id, "week_day": weekday},
            )

        return EligibilityResult(
            can_punch=True,
            reason=EligibilityReason.ELIGIBLE_FOR_PUNCH,
            message="User is eligible to punch in",
        )
