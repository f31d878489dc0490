from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import working_days_between
from ..core.enums import LeaveStatus


@dataclass(frozen=True)
class LeaveAttribute:
    """A leave type granted to one role for one year (e.g. 'Annual', 'Engineer', 2026, 12 days)."""

    leave_attribute_id: int
    allocation_id: int
    year: int
    leave_name: str
    role: str
    allocated_days: float
    is_active: bool = True
    company_id: Optional[int] = None


@dataclass(frozen=True)
class LeaveTypeAllocation:
    allocation_id: int
    company_id: int
    created_by: int
    created_at: Optional[datetime] = None
    attributes: tuple[LeaveAttribute, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class UsersLeaveRecord:
    """Balance of one member for one leave type and year.

    remaining_days == allocated_days - used_days + carried_over_days
    """

    record_id: int
    user_id: int
    company_user_id: int
    leave_attribute_id: int
    year: int
    used_days: float = 0.0
    remaining_days: float = 0.0
    carried_over_days: float = 0.0
    leave_name: Optional[str] = None
    allocated_days: Optional[float] = None


@dataclass(frozen=True)
class CarryForwardDays:
    carry_forward_id: int
    record_id: int
    days: float
    year: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LeaveComment:
    comment_id: int
    leave_id: int
    company_user_id: int
    comment: str
    comment_date: Optional[datetime] = None


@dataclass(frozen=True)
class LeaveAttachment:
    attachment_id: int
    leave_id: int
    user_id: int
    storage_path: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class Leave:
    leave_id: int
    company_id: int
    user_id: int
    company_user_id: int
    leave_type_id: int
    users_leave_record_id: Optional[int]
    start_date: date
    end_date: date
    status: LeaveStatus = LeaveStatus.PENDING
    approver_id: Optional[int] = None
    reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    comments: tuple[LeaveComment, ...] = ()
    attachments: tuple[LeaveAttachment, ...] = ()

    @property
    def leave_days(self) -> int:
        return working_days_between(self.start_date, self.end_date)


@dataclass(frozen=True)
class AttachmentUpload:
    """What the upload layer hands over once the file is stored."""

    storage_path: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class LeaveStats:
    total: int
    pending: int
    approved: int
    rejected: int
    cancelled: int
    in_review: int


@dataclass(frozen=True)
class LeaveBalanceLine:
    leave_type: str
    allocated: float
    used: float
    remaining: float
    carried_over: float


@dataclass(frozen=True)
class LeaveBalance:
    user_id: int
    company_id: int
    year: int
    records: tuple[UsersLeaveRecord, ...]
    approved_leaves: tuple[Leave, ...]
    summary: tuple[LeaveBalanceLine, ...]
