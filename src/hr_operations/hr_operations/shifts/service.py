from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import now_local, parse_time_of_day
from ..common.validators import optional_id, require_id, require_non_empty, require_non_negative
from ..companies.repository import CompanyRepository
from ..core.exceptions import NotFoundError, ValidationError
from ..database.connection import TransactionManager
from ..users.repository import CompanyUserRepository
from .model import AssignmentResult, Shift, ShiftAttribute
from .repository import ShiftRepository
from .window import ShiftWindowEvaluator, ShiftWindowResult

logger = logging.getLogger(__name__)


def _minutes(value: Any, field_name: str) -> int:
    if value is None or value == "":
        return 0
    return int(require_non_negative(value, field_name))


def _attribute_fields(data: dict, *, partial: bool) -> dict:
    """Validate an attribute payload; ``partial`` keeps only the keys present."""
    fields: dict = {}
    if not partial or data.get("shift_name") is not None:
        fields["shift_name"] = require_non_empty(data.get("shift_name"), "Shift name")
    for key in ("start_time", "end_time"):
        if not partial or data.get(key) is not None:
            if not data.get(key):
                raise ValidationError(f"{key.replace('_', ' ').capitalize()} is required")
            fields[key] = parse_time_of_day(str(data[key]))
    if not partial or "break_duration" in data:
        fields["break_duration"] = _minutes(data.get("break_duration"), "Break duration")
    if not partial or "grace_period_minutes" in data:
        fields["grace_period_minutes"] = _minutes(data.get("grace_period_minutes"), "Grace period")
    for key in ("description", "color"):
        if not partial or key in data:
            fields[key] = data.get(key)
    if partial and data.get("is_active") is not None:
        fields["is_active"] = int(bool(data["is_active"]))
    return fields


class ShiftService:
    """Use case: shifts, their time windows and who works them."""

    def __init__(
        self,
        shifts: ShiftRepository,
        members: CompanyUserRepository,
        companies: CompanyRepository,
        tx: TransactionManager,
    ):
        self._shifts = shifts
        self._members = members
        self._companies = companies
        self._tx = tx
        self._window = ShiftWindowEvaluator(shifts)

    def get(self, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift:
            raise NotFoundError("Shift not found")
        return shift

    def get_attribute(self, shift_attribute_id: int) -> ShiftAttribute:
        attribute = self._shifts.get_attribute(int(shift_attribute_id))
        if not attribute:
            raise NotFoundError("Shift attribute not found")
        return attribute

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        created_by: Optional[int] = None,
        assigned_company_user_id: Optional[int] = None,
        shift_name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Sequence[Shift]:
        return self._shifts.list(
            company_id=company_id,
            created_by=created_by,
            assigned_company_user_id=assigned_company_user_id,
            shift_name=shift_name,
            is_active=is_active,
        )

    def _require_member_of(self, company_user_id: int, company_id: int) -> None:
        member = self._members.get_by_id(company_user_id)
        if not member:
            raise NotFoundError("User not found")
        if member.company_id != company_id:
            raise ValidationError("User does not belong to the specified company")

    def _members_in_company(self, company_user_ids: Iterable[Any], company_id: int) -> list[int]:
        # Unknown ids and members of other companies are skipped, not rejected.
        kept: list[int] = []
        for raw in company_user_ids or ():
            member = self._members.get_by_id(require_id(raw, "Assigned user ID"))
            if member and member.company_id == company_id and member.company_user_id not in kept:
                kept.append(member.company_user_id)
        return kept

    def create(self, *, company_id: Any, created_by: Any, attributes: Sequence[dict]) -> Shift:
        company_id = require_id(company_id, "Company ID")
        created_by = require_id(created_by, "Created by")
        if not attributes:
            raise ValidationError("At least one shift attribute is required")
        parsed = [(_attribute_fields(a, partial=False), a.get("assigned_user_ids") or []) for a in attributes]

        if not self._companies.get_by_id(company_id):
            raise NotFoundError("Company not found")
        self._require_member_of(created_by, company_id)

        with self._tx.transaction():
            shift_id = self._shifts.create_shift(company_id=company_id, created_by=created_by)
            for fields, assigned in parsed:
                attribute_id = self._shifts.create_attribute(shift_id=shift_id, is_active=True, **fields)
                for company_user_id in self._members_in_company(assigned, company_id):
                    self._shifts.add_assignment(shift_attribute_id=attribute_id, company_user_id=company_user_id)

        logger.info("Shift %s created for company %s with %d attribute(s)", shift_id, company_id, len(parsed))
        return self.get(shift_id)

    def update(self, shift_id: int, *, company_id: Any = None, created_by: Any = None) -> Shift:
        shift = self.get(shift_id)
        fields: dict = {}
        new_company = optional_id(company_id, "Company ID")
        if new_company is not None:
            if not self._companies.get_by_id(new_company):
                raise NotFoundError("Company not found")
            fields["company_id"] = new_company
        new_creator = optional_id(created_by, "Created by")
        if new_creator is not None:
            self._require_member_of(new_creator, new_company or shift.company_id)
            fields["created_by"] = new_creator

        self._shifts.update_shift(shift.shift_id, fields=fields)
        return self.get(shift.shift_id)

    def delete(self, shift_id: int) -> None:
        shift = self.get(shift_id)
        self._shifts.delete_shift(shift.shift_id)
        logger.info("Shift %s deleted", shift.shift_id)

    def assign(
        self,
        *,
        shift_attribute_id: Any,
        assigned_user_ids: Sequence[Any],
        remove_user_ids: Optional[Sequence[Any]] = None,
    ) -> AssignmentResult:
        attribute = self.get_attribute(require_id(shift_attribute_id, "Shift attribute ID"))
        shift = self.get(attribute.shift_id)
        remove_ids = [require_id(x, "Removed user ID") for x in (remove_user_ids or ())]

        with self._tx.transaction():
            removed = self._shifts.remove_assignments(
                shift_attribute_id=attribute.shift_attribute_id, company_user_ids=remove_ids
            )
            existing = set(attribute.assigned_user_ids) - set(remove_ids)
            created = 0
            for company_user_id in self._members_in_company(assigned_user_ids, shift.company_id):
                if company_user_id in existing:
                    continue
                self._shifts.add_assignment(
                    shift_attribute_id=attribute.shift_attribute_id, company_user_id=company_user_id
                )
                created += 1

        logger.info(
            "Shift attribute %s assignments: +%d, -%d", attribute.shift_attribute_id, created, removed
        )
        return AssignmentResult(
            attribute=self.get_attribute(attribute.shift_attribute_id),
            assignments_created=created,
            existing_users_skipped=len(existing),
            users_removed=removed,
        )

    def update_attribute(self, shift_attribute_id: int, data: dict) -> ShiftAttribute:
        attribute = self.get_attribute(shift_attribute_id)
        fields = _attribute_fields(data, partial=True)
        self._shifts.update_attribute(attribute.shift_attribute_id, fields=fields)
        return self.get_attribute(attribute.shift_attribute_id)

    def delete_attribute(self, shift_attribute_id: int) -> None:
        attribute = self.get_attribute(shift_attribute_id)
        self._shifts.delete_attribute(attribute.shift_attribute_id)

    def current_shift(self, *, company_user_id: int, company_id: int) -> ShiftAttribute:
        attribute = self._shifts.get_active_assignment(company_user_id=int(company_user_id), company_id=int(company_id))
        if not attribute:
            raise NotFoundError("No active shift assigned to user")
        return attribute

    def check_window(self, *, company_user_id: int, company_id: int, now: Optional[datetime] = None) -> ShiftWindowResult:
        return self._window.is_in_shift(
            company_user_id=int(company_user_id), company_id=int(company_id), now=now or now_local()
        )
