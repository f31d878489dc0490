from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import optional_id, require_id, require_non_empty, require_non_negative, require_positive
from ..companies.repository import CompanyRepository
from ..core.enums import CompanyUserStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..database.connection import TransactionManager
from ..users.model import CompanyUser
from ..users.repository import CompanyUserRepository
from . import ledger
from .model import CarryForwardDays, LeaveAttribute, LeaveTypeAllocation, UsersLeaveRecord
from .repository import AllocationRepository, LeaveRecordRepository

logger = logging.getLogger(__name__)


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip().lower() == (b or "").strip().lower()


def is_active_member(member: Optional[CompanyUser]) -> bool:
    return bool(member and member.is_active and member.status == CompanyUserStatus.ACTIVE)


def _roles(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        roles = [require_non_empty(r, "Role") for r in value]
    else:
        roles = [require_non_empty(value, "Role")]
    if not roles:
        raise ValidationError("Role is required")
    return roles


class LeaveAllocationService:
    """Use case: per-company leave types and the member balances derived from them."""

    def __init__(
        self,
        allocations: AllocationRepository,
        records: LeaveRecordRepository,
        companies: CompanyRepository,
        members: CompanyUserRepository,
        tx: TransactionManager,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._allocations = allocations
        self._records = records
        self._companies = companies
        self._members = members
        self._tx = tx
        self._clock = clock

    def _expand(self, attributes: Iterable[dict]) -> list[dict]:
        """One entry per (leave_name, role, year); a list of roles fans out."""
        current_year = self._clock().year
        expanded: list[dict] = []
        for data in attributes or ():
            leave_name = require_non_empty(data.get("leave_name"), "Leave name")
            allocated = require_non_negative(data.get("allocated_days", 0), "Allocated days")
            year = int(data.get("year") or current_year)
            if year < current_year:
                raise ValidationError(f"Cannot create leave allocation for past year {year}")
            for role in _roles(data.get("role")):
                expanded.append(
                    {
                        "leave_name": leave_name,
                        "role": role,
                        "year": year,
                        "allocated_days": allocated,
                        "is_active": bool(data.get("is_active", True)),
                    }
                )
        return expanded

    @staticmethod
    def _reject_duplicates(new: Sequence[dict], existing: Sequence[LeaveAttribute] = ()) -> None:
        seen = {(a.leave_name.lower(), a.role.lower(), a.year) for a in existing}
        for item in new:
            key = (item["leave_name"].lower(), item["role"].lower(), item["year"])
            if key in seen:
                raise ConflictError(
                    f"Leave type '{item['leave_name']}' for role '{item['role']}' in {item['year']} already exists"
                )
            seen.add(key)

    def _precreate_records(self, company_id: int, leave_attribute_id: int, item: dict) -> int:
        created = 0
        for member in self._members.list_for_company(company_id, active_only=True):
            if not is_active_member(member) or not _same(member.role_name, item["role"]):
                continue
            if self._records.find(
                company_user_id=member.company_user_id, leave_attribute_id=leave_attribute_id, year=item["year"]
            ):
                continue
            self._records.create(
                user_id=member.user_id,
                company_user_id=member.company_user_id,
                leave_attribute_id=leave_attribute_id,
                year=item["year"],
                remaining_days=item["allocated_days"],
            )
            created += 1
        return created

    def _add_attributes(self, allocation_id: int, company_id: int, items: Sequence[dict]) -> int:
        created = 0
        for item in items:
            attribute_id = self._allocations.create_attribute(allocation_id=allocation_id, **item)
            if item["is_active"]:
                created += self._precreate_records(company_id, attribute_id, item)
        return created

    def create(self, *, company_id: Any, created_by: Any, attributes: Sequence[dict]) -> LeaveTypeAllocation:
        company_id = require_id(company_id, "Company ID")
        created_by = require_id(created_by, "Created by")
        if not attributes:
            raise ValidationError("At least one leave attribute is required")
        if not self._companies.get_by_id(company_id):
            raise NotFoundError(f"Company with ID {company_id} not found")
        creator = self._members.get_by_id(created_by)
        if not is_active_member(creator) or creator.company_id != company_id:
            raise NotFoundError("Creator is not an active member of the company")

        items = self._expand(attributes)

        with self._tx.transaction():
            # One allocation per company; a second create adds to it.
            existing = self._allocations.get_for_company(company_id)
            self._reject_duplicates(items, existing.attributes if existing else ())
            if existing:
                allocation_id = existing.allocation_id
            else:
                allocation_id = self._allocations.create(company_id=company_id, created_by=created_by)
            records = self._add_attributes(allocation_id, company_id, items)

        logger.info(
            "Leave allocation %s of company %s: %d type(s) added, %d record(s)",
            allocation_id,
            company_id,
            len(items),
            records,
        )
        return self.get(allocation_id)

    def get(self, allocation_id: int) -> LeaveTypeAllocation:
        allocation = self._allocations.get_by_id(int(allocation_id))
        if not allocation:
            raise NotFoundError(f"Leave allocation with ID {allocation_id} not found")
        return allocation

    def list(
        self,
        *,
        company_id: Any = None,
        leave_name: Optional[str] = None,
        role: Optional[str] = None,
        year: Any = None,
    ) -> Sequence[LeaveTypeAllocation]:
        return self._allocations.list(
            company_id=optional_id(company_id, "Company ID"),
            leave_name=leave_name or None,
            role=role or None,
            year=int(year) if year else None,
        )

    def update(
        self,
        allocation_id: int,
        *,
        attributes: Optional[Sequence[dict]] = None,
        new_attributes: Optional[Sequence[dict]] = None,
    ) -> LeaveTypeAllocation:
        """Edit existing attributes (by ``leave_attribute_id``) and append new ones.

        Changing allocated days recomputes remaining days of every record of that type.
        """
        allocation = self.get(allocation_id)
        by_id = {a.leave_attribute_id: a for a in allocation.attributes}
        new_items = self._expand(new_attributes or ())

        with self._tx.transaction():
            for data in attributes or ():
                attribute_id = require_id(data.get("leave_attribute_id"), "Leave attribute ID")
                current = by_id.get(attribute_id)
                if current is None:
                    raise NotFoundError(f"Leave attribute with ID {attribute_id} not found in allocation")
                fields: dict = {}
                if data.get("leave_name") is not None:
                    fields["leave_name"] = require_non_empty(data["leave_name"], "Leave name")
                if data.get("role") is not None:
                    fields["role"] = require_non_empty(data["role"], "Role")
                if data.get("is_active") is not None:
                    fields["is_active"] = bool(data["is_active"])
                if data.get("allocated_days") is not None:
                    fields["allocated_days"] = require_non_negative(data["allocated_days"], "Allocated days")
                self._allocations.update_attribute(attribute_id, fields=fields)

                if "allocated_days" in fields and fields["allocated_days"] != current.allocated_days:
                    for record in self._records.list(leave_attribute_id=attribute_id):
                        locked = self._records.lock(record.record_id)
                        self._records.save_balances(ledger.reallocate(locked, fields["allocated_days"]))
                    logger.info(
                        "Leave attribute %s reallocated: %g -> %g days",
                        attribute_id,
                        current.allocated_days,
                        fields["allocated_days"],
                    )

            refreshed = self._allocations.get_by_id(allocation.allocation_id)
            self._reject_duplicates(new_items, refreshed.attributes if refreshed else ())
            self._add_attributes(allocation.allocation_id, allocation.company_id, new_items)

        return self.get(allocation.allocation_id)

    def remove(self, allocation_id: int) -> None:
        """Delete the allocation. Its attributes, member records and the leave requests of those types go with it."""
        allocation = self.get(allocation_id)
        self._allocations.delete_by_id(allocation.allocation_id)
        logger.info("Leave allocation %s removed (company %s)", allocation.allocation_id, allocation.company_id)

    def list_user_records(
        self,
        *,
        user_id: Any = None,
        company_user_id: Any = None,
        company_id: Any = None,
        year: Any = None,
    ) -> Sequence[UsersLeaveRecord]:
        return self._records.list(
            user_id=optional_id(user_id, "User ID"),
            company_user_id=optional_id(company_user_id, "Company user ID"),
            company_id=optional_id(company_id, "Company ID"),
            year=int(year) if year else None,
        )

    def get_record(self, record_id: int) -> UsersLeaveRecord:
        record = self._records.get_by_id(int(record_id))
        if not record:
            raise NotFoundError(f"Leave record with ID {record_id} not found")
        return record

    def add_carry_forward(self, *, record_id: Any, days: Any, year: Any = None) -> CarryForwardDays:
        record_id = require_id(record_id, "Record ID")
        days = require_positive(days, "Carry forward days")
        year = int(year or self._clock().year)

        with self._tx.transaction():
            record = self._records.lock(record_id)
            if not record:
                raise NotFoundError(f"Leave record with ID {record_id} not found")
            self._records.save_balances(ledger.add_carried(record, days))
            carry_forward_id = self._records.add_carry_forward(record_id=record_id, days=days, year=year)

        logger.info("Carried %g day(s) forward into record %s", days, record_id)
        return self._records.get_carry_forward(carry_forward_id)

    def remove_carry_forward(self, carry_forward_id: int) -> None:
        with self._tx.transaction():
            carry = self._records.get_carry_forward(int(carry_forward_id))
            if not carry:
                raise NotFoundError(f"Carry forward with ID {carry_forward_id} not found")
            record = self._records.lock(carry.record_id)
            if not record:
                raise NotFoundError(f"Leave record with ID {carry.record_id} not found")
            self._records.save_balances(ledger.remove_carried(record, carry.days))
            self._records.delete_carry_forward(carry.carry_forward_id)
        logger.info("Carry forward %s removed from record %s", carry.carry_forward_id, carry.record_id)

    def list_carry_forwards(self, record_id: int) -> Sequence[CarryForwardDays]:
        record = self.get_record(record_id)
        return self._records.list_carry_forwards(record.record_id)
