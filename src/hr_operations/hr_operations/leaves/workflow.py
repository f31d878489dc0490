from __future__ import annotations

from typing import Mapping

from ..core.enums import LeaveStatus
from ..core.exceptions import ValidationError

TRANSITIONS: Mapping[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.PENDING: frozenset(
        {LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.IN_REVIEW, LeaveStatus.CANCELLED}
    ),
    LeaveStatus.IN_REVIEW: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED}),
    LeaveStatus.APPROVED: frozenset({LeaveStatus.REJECTED, LeaveStatus.CANCELLED}),
    LeaveStatus.REJECTED: frozenset({LeaveStatus.APPROVED, LeaveStatus.IN_REVIEW}),
    LeaveStatus.CANCELLED: frozenset({LeaveStatus.PENDING, LeaveStatus.IN_REVIEW}),
}

# Leaves in these states block another request over the same days.
BLOCKING_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED, LeaveStatus.IN_REVIEW)


def can_transition(current: LeaveStatus, new: LeaveStatus) -> bool:
    return new in TRANSITIONS.get(current, frozenset())


def validate_transition(current: LeaveStatus, new: LeaveStatus) -> None:
    if not can_transition(current, new):
        raise ValidationError(f"Invalid status transition from {current.value} to {new.value}")


def parse_leave_status(value) -> LeaveStatus:
    if isinstance(value, LeaveStatus):
        return value
    try:
        return LeaveStatus(str(value).upper())
    except ValueError:
        raise ValidationError(f"Invalid leave status: {value}")
