from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import (
    AttachmentUpload,
    CarryForwardDays,
    Leave,
    LeaveAttribute,
    LeaveComment,
    LeaveTypeAllocation,
    UsersLeaveRecord,
)


class AllocationRepository(Protocol):
    def get_by_id(self, allocation_id: int) -> Optional[LeaveTypeAllocation]:
        raise NotImplementedError

    def get_for_company(self, company_id: int) -> Optional[LeaveTypeAllocation]:
        raise NotImplementedError

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        leave_name: Optional[str] = None,
        role: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Sequence[LeaveTypeAllocation]:
        raise NotImplementedError

    def create(self, *, company_id: int, created_by: int) -> int:
        raise NotImplementedError

    def update(self, allocation_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete_by_id(self, allocation_id: int) -> bool:
        raise NotImplementedError

    def get_attribute(self, leave_attribute_id: int) -> Optional[LeaveAttribute]:
        raise NotImplementedError

    def create_attribute(
        self,
        *,
        allocation_id: int,
        year: int,
        leave_name: str,
        role: str,
        allocated_days: float,
        is_active: bool = True,
    ) -> int:
        raise NotImplementedError

    def update_attribute(self, leave_attribute_id: int, *, fields: dict) -> bool:
        raise NotImplementedError


class LeaveRecordRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[UsersLeaveRecord]:
        raise NotImplementedError

    def lock(self, record_id: int) -> Optional[UsersLeaveRecord]:
        """Read the record with a row lock held until the transaction ends."""
        raise NotImplementedError

    def find(self, *, company_user_id: int, leave_attribute_id: int, year: int) -> Optional[UsersLeaveRecord]:
        raise NotImplementedError

    def list(
        self,
        *,
        user_id: Optional[int] = None,
        company_user_id: Optional[int] = None,
        leave_attribute_id: Optional[int] = None,
        company_id: Optional[int] = None,
        year: Optional[int] = None,
    ) -> Sequence[UsersLeaveRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        company_user_id: int,
        leave_attribute_id: int,
        year: int,
        remaining_days: float,
    ) -> int:
        raise NotImplementedError

    def save_balances(self, record: UsersLeaveRecord) -> bool:
        """Persist used/remaining/carried_over of ``record``."""
        raise NotImplementedError

    def add_carry_forward(self, *, record_id: int, days: float, year: int) -> int:
        raise NotImplementedError

    def get_carry_forward(self, carry_forward_id: int) -> Optional[CarryForwardDays]:
        raise NotImplementedError

    def delete_carry_forward(self, carry_forward_id: int) -> bool:
        raise NotImplementedError

    def list_carry_forwards(self, record_id: int) -> Sequence[CarryForwardDays]:
        raise NotImplementedError


class LeaveRepository(Protocol):
    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        raise NotImplementedError

    def lock(self, leave_id: int) -> Optional[Leave]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update(self, leave_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete_by_id(self, leave_id: int) -> bool:
        raise NotImplementedError

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
        raise NotImplementedError

    def find_approved_covering(self, *, company_id: int, user_id: int, day: date) -> Optional[Leave]:
        raise NotImplementedError

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[Leave], int]:
        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: int,
        company_id: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[Leave]:
        """Leaves starting or ending inside ``year`` when given."""
        raise NotImplementedError

    def count_by_status(self, company_id: int) -> dict[LeaveStatus, int]:
        raise NotImplementedError

    def add_comment(self, *, leave_id: int, company_user_id: int, comment: str, comment_date: datetime) -> int:
        raise NotImplementedError

    def get_comment(self, comment_id: int) -> Optional[LeaveComment]:
        raise NotImplementedError

    def add_attachment(self, *, leave_id: int, user_id: int, upload: AttachmentUpload) -> int:
        raise NotImplementedError
