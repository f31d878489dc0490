from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import normalize_paging, require_id, require_non_empty
from ..companies.repository import CompanyRepository
from ..core.constants import MAX_WEEK_DAY, MIN_WEEK_DAY
from ..core.exceptions import NotFoundError, ValidationError
from ..database.connection import TransactionManager
from ..users.repository import CompanyUserRepository
from .model import CompanyOff, OffDay
from .repository import CompanyOffRepository, OffDayRepository

logger = logging.getLogger(__name__)


def validate_week_days(week_days: Iterable[Any]) -> list[int]:
    """0=Sunday .. 6=Saturday, no duplicates."""
    days: list[int] = []
    invalid: list[str] = []
    for raw in week_days or ():
        try:
            day = int(raw)
        except (TypeError, ValueError):
            invalid.append(str(raw))
            continue
        if day < MIN_WEEK_DAY or day > MAX_WEEK_DAY or isinstance(raw, bool):
            invalid.append(str(raw))
            continue
        days.append(day)
    if invalid:
        raise ValidationError(
            f"Invalid week days: {', '.join(invalid)}. Valid days are 0-6 (0=Sunday, 6=Saturday)"
        )
    if len(set(days)) != len(days):
        raise ValidationError("Duplicate week days are not allowed")
    return days


def _optional_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value))


class CompanyOffService:
    """Use case: weekly off days per company (one configuration per company)."""

    def __init__(self, company_offs: CompanyOffRepository, companies: CompanyRepository):
        self._company_offs = company_offs
        self._companies = companies

    def get(self, company_off_id: int) -> CompanyOff:
        company_off = self._company_offs.get_by_id(int(company_off_id))
        if not company_off:
            raise NotFoundError(f"CompanyOff with ID {company_off_id} not found")
        return company_off

    def create(self, *, company_id: Any, week_days: Sequence[Any], description: Optional[str] = None) -> CompanyOff:
        """Create the configuration, or merge the week days into the existing one."""
        company_id = require_id(company_id, "Company ID")
        if not self._companies.get_by_id(company_id):
            raise NotFoundError(f"Company with ID {company_id} not found")
        days = validate_week_days(week_days)

        existing = self._company_offs.get_for_company(company_id)
        if existing:
            fields: dict = {"week_days": set(existing.week_days) | set(days)}
            if description is not None:
                fields["description"] = description
            self._company_offs.update(existing.company_off_id, fields=fields)
            logger.info("Company %s weekly off days merged: %s", company_id, sorted(fields["week_days"]))
            return self.get(existing.company_off_id)

        company_off_id = self._company_offs.create(company_id=company_id, week_days=days, description=description)
        logger.info("Company %s weekly off days set: %s", company_id, sorted(days))
        return self.get(company_off_id)

    def list(self, *, company_id: Optional[int] = None, page: Any = None, limit: Any = None) -> dict:
        page, limit = normalize_paging(page, limit)
        items, total = self._company_offs.list(company_id=company_id, page=page, limit=limit)
        return {
            "items": list(items),
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": (total + limit - 1) // limit,
            },
        }

    def week_off(self, company_id: int) -> CompanyOff:
        company_off = self._company_offs.get_for_company(int(company_id))
        if not company_off:
            raise NotFoundError("Company off configuration not found")
        return company_off

    def update(self, company_off_id: int, *, week_days: Optional[Sequence[Any]] = None, description: Optional[str] = None) -> CompanyOff:
        company_off = self.get(company_off_id)
        fields: dict = {}
        if week_days is not None:
            fields["week_days"] = validate_week_days(week_days)
        if description is not None:
            fields["description"] = description
        self._company_offs.update(company_off.company_off_id, fields=fields)
        return self.get(company_off.company_off_id)

    def delete(self, company_off_id: int) -> None:
        company_off = self.get(company_off_id)
        self._company_offs.delete_by_id(company_off.company_off_id)


class OffDayService:
    """Use case: holiday ranges, company-wide or for selected members."""

    def __init__(
        self,
        off_days: OffDayRepository,
        company_offs: CompanyOffRepository,
        companies: CompanyRepository,
        members: CompanyUserRepository,
        tx: TransactionManager,
    ):
        self._off_days = off_days
        self._company_offs = company_offs
        self._companies = companies
        self._members = members
        self._tx = tx

    def get(self, off_day_id: int) -> OffDay:
        off_day = self._off_days.get_by_id(int(off_day_id))
        if not off_day:
            raise NotFoundError(f"OffDay with ID {off_day_id} not found")
        return off_day

    def _members_of(self, company_id: int, user_ids: Sequence[Any]) -> list[int]:
        ids = [require_id(x, "User ID") for x in user_ids]
        missing = []
        for company_user_id in ids:
            member = self._members.get_by_id(company_user_id)
            if not member or member.company_id != company_id:
                missing.append(str(company_user_id))
        if missing:
            raise ValidationError(f"Some users do not belong to the company: {', '.join(missing)}")
        return list(dict.fromkeys(ids))

    def create(
        self,
        *,
        company_id: Any,
        created_by: Any,
        name: str,
        holiday_type: str,
        from_date: Any,
        to_date: Any,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        description: Optional[str] = None,
        user_ids: Optional[Sequence[Any]] = None,
    ) -> OffDay:
        company_id = require_id(company_id, "Company ID")
        created_by = require_id(created_by, "Created by")
        name = require_non_empty(name, "Name")
        holiday_type = require_non_empty(holiday_type, "Holiday type")
        start = _optional_date(from_date)
        end = _optional_date(to_date)
        if not start or not end:
            raise ValidationError("From date and to date are required")

        if not self._companies.get_by_id(company_id):
            raise NotFoundError(f"Company with ID {company_id} not found")
        creator = self._members.get_by_id(created_by)
        if not creator or creator.company_id != company_id:
            raise NotFoundError(f"CompanyUser with ID {created_by} not found in company")
        if start > end:
            raise ValidationError("From date cannot be after to date")
        members = self._members_of(company_id, user_ids or [])

        with self._tx.transaction():
            company_off = self._company_offs.get_for_company(company_id)
            if company_off:
                company_off_id = company_off.company_off_id
            else:
                company_off_id = self._company_offs.create(
                    company_id=company_id, week_days=[], description="Auto-created company off configuration"
                )
            off_day_id = self._off_days.create(
                company_id=company_id,
                company_off_id=company_off_id,
                created_by=created_by,
                name=name,
                holiday_type=holiday_type,
                from_date=start,
                to_date=end,
                start_time=start_time,
                end_time=end_time,
                description=description or "",
            )
            if members:
                self._off_days.replace_users(off_day_id, members)

        logger.info("Off day %s (%s) created for company %s, %s..%s", off_day_id, name, company_id, start, end)
        return self.get(off_day_id)

    def list_for_company(self, company_id: int, *, from_date: Any = None, to_date: Any = None) -> Sequence[OffDay]:
        return self._off_days.list(
            company_id=int(company_id), from_date=_optional_date(from_date), to_date=_optional_date(to_date)
        )

    def list_for_member(self, company_user_id: int, *, from_date: Any = None, to_date: Any = None) -> Sequence[OffDay]:
        return self._off_days.list(
            company_user_id=int(company_user_id), from_date=_optional_date(from_date), to_date=_optional_date(to_date)
        )

    def upcoming_for_member(self, company_user_id: int, *, days: int = 30, today: Optional[date] = None) -> Sequence[OffDay]:
        start = today or now_local().date()
        return self._off_days.list(
            company_user_id=int(company_user_id), from_date=start, to_date=start + timedelta(days=int(days))
        )

    def update(self, off_day_id: int, data: dict) -> OffDay:
        off_day = self.get(off_day_id)
        fields: dict = {}
        for key in ("name", "holiday_type"):
            if data.get(key) is not None:
                fields[key] = require_non_empty(data[key], key.replace("_", " ").capitalize())
        for key in ("start_time", "end_time", "description"):
            if key in data:
                fields[key] = data[key]
        if data.get("from_date"):
            fields["from_date"] = _optional_date(data["from_date"])
        if data.get("to_date"):
            fields["to_date"] = _optional_date(data["to_date"])
        if fields.get("from_date", off_day.from_date) > fields.get("to_date", off_day.to_date):
            raise ValidationError("From date cannot be after to date")

        members = None
        if data.get("user_ids") is not None:
            members = self._members_of(off_day.company_id, data["user_ids"])

        with self._tx.transaction():
            self._off_days.update(off_day.off_day_id, fields=fields)
            if members is not None:
                self._off_days.replace_users(off_day.off_day_id, members)
        return self.get(off_day.off_day_id)

    def delete(self, off_day_id: int) -> None:
        off_day = self.get(off_day_id)
        self._off_days.delete_by_id(off_day.off_day_id)
        logger.info("Off day %s deleted", off_day.off_day_id)
