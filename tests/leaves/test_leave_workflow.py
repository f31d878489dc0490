from __future__ import annotations

import pytest

from src.hr_operations.hr_operations.core.enums import LeaveStatus as S
from src.hr_operations.hr_operations.core.exceptions import ValidationError
from src.hr_operations.hr_operations.leaves.workflow import can_transition, parse_leave_status, validate_transition


@pytest.mark.parametrize(
    "current, new",
    [
        (S.PENDING, S.APPROVED),
        (S.PENDING, S.IN_REVIEW),
        (S.IN_REVIEW, S.REJECTED),
        (S.APPROVED, S.CANCELLED),
        (S.REJECTED, S.APPROVED),
        (S.CANCELLED, S.PENDING),
    ],
)
def test_allowed_transitions(current, new):
    assert can_transition(current, new)


@pytest.mark.parametrize(
    "current, new",
    [
        (S.APPROVED, S.PENDING),
        (S.APPROVED, S.IN_REVIEW),
        (S.REJECTED, S.CANCELLED),
        (S.CANCELLED, S.APPROVED),
        (S.IN_REVIEW, S.PENDING),
    ],
)
def test_refused_transitions(current, new):
    with pytest.raises(ValidationError, match=f"from {current.value} to {new.value}"):
        validate_transition(current, new)


def test_parse_status():
    assert parse_leave_status("in_review") == S.IN_REVIEW
    with pytest.raises(ValidationError):
        parse_leave_status("archived")
