from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from src.hr_operations.hr_operations.core.enums import CompanyUserStatus, LeaveStatus
from src.hr_operations.hr_operations.core.exceptions import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from src.hr_operations.hr_operations.leaves.model import AttachmentUpload
from src.hr_operations.hr_operations.leaves.service import LeaveService
from src.hr_operations.hr_operations.users.model import CompanyUser
from tests.fakes import FakeTx, InMemoryAllocations, InMemoryLeaveRecords, InMemoryLeaves, InMemoryMembers


class Env:
    def __init__(self, remaining=10.0, used=0.0):
        self.allocations = InMemoryAllocations()
        self.records = InMemoryLeaveRecords(self.allocations)
        self.leaves = InMemoryLeaves()
        self.members = InMemoryMembers(
            CompanyUser(20, 10, 1, 1, "Engineer", status=CompanyUserStatus.ACTIVE),
            CompanyUser(21, 11, 1, 2, "Designer", status=CompanyUserStatus.ACTIVE),
            CompanyUser(30, 12, 2, 3, "Engineer", status=CompanyUserStatus.ACTIVE),
        )
        allocation_id = self.allocations.create(company_id=1, created_by=20)
        self.annual = self.allocations.create_attribute(
            allocation_id=allocation_id, year=2026, leave_name="Annual", role="Engineer", allocated_days=10
        )
        self.record_id = self.records.create(
            user_id=10, company_user_id=20, leave_attribute_id=self.annual, year=2026, remaining_days=remaining
        )
        if used:
            self.records.save_balances(replace(self.records.get_by_id(self.record_id), used_days=used))
        self.service = LeaveService(
            self.leaves, self.allocations, self.records, self.members, FakeTx(), clock=lambda: datetime(2026, 3, 1, 9)
        )

    def request(self, start, end, **kw):
        return self.service.create_leave(
            company_id=1, user_id=10, leave_type_id=self.annual, start_date=start, end_date=end, **kw
        )

    def balance(self):
        record = self.records.get_by_id(self.record_id)
        return record.remaining_days, record.used_days


@pytest.fixture()
def env():
    return Env()


def test_five_weekdays_against_three_remaining():
    e = Env(remaining=3.0, used=7.0)
    with pytest.raises(InsufficientBalanceError, match="Requested: 5, Available: 3"):
        e.request("2026-03-02", "2026-03-06")
    assert e.leaves.items == {}


def test_approve_then_reject_restores_balance(env):
    leave = env.request("2026-03-02", "2026-03-04", reason="Family trip")
    assert leave.status == LeaveStatus.PENDING
    assert leave.leave_days == 3
    assert env.balance() == (10.0, 0.0)

    approved = env.service.approve(leave.leave_id, approver_id=99)
    assert approved.status == LeaveStatus.APPROVED
    assert approved.approver_id == 99
    assert env.balance() == (7.0, 3.0)

    env.service.approve(leave.leave_id, approver_id=99)
    assert env.balance() == (7.0, 3.0)

    rejected = env.service.reject(leave.leave_id, approver_id=99, reason="Release week")
    assert rejected.status == LeaveStatus.REJECTED
    assert rejected.rejection_reason == "Release week"
    assert env.balance() == (10.0, 0.0)


def test_reject_twice_is_refused(env):
    leave = env.request("2026-03-02", "2026-03-04")
    env.service.reject(leave.leave_id)
    with pytest.raises(ValidationError, match="Invalid status transition"):
        env.service.reject(leave.leave_id)


def test_date_rules(env):
    with pytest.raises(ValidationError, match="End date must be after start date"):
        env.request("2026-03-04", "2026-03-04")
    with pytest.raises(ValidationError, match="at least one working day"):
        env.request("2026-03-07", "2026-03-08")


def test_leave_type_must_match_role_and_have_record(env):
    with pytest.raises(ValidationError, match="not available for role"):
        env.service.create_leave(
            company_id=1, user_id=11, leave_type_id=env.annual, start_date="2026-03-02", end_date="2026-03-03"
        )

    design = env.allocations.create_attribute(
        allocation_id=1, year=2026, leave_name="Annual", role="Designer", allocated_days=8
    )
    with pytest.raises(NotFoundError, match="No leave record"):
        env.service.create_leave(
            company_id=1, user_id=11, leave_type_id=design, start_date="2026-03-02", end_date="2026-03-03"
        )

    with pytest.raises(NotFoundError, match="Leave type not found"):
        env.service.create_leave(
            company_id=2, user_id=12, leave_type_id=env.annual, start_date="2026-03-02", end_date="2026-03-03"
        )


def test_overlap_with_open_leave_is_conflict(env):
    first = env.request("2026-03-02", "2026-03-04")
    with pytest.raises(ConflictError, match="overlaps"):
        env.request("2026-03-04", "2026-03-05")

    env.service.cancel(first.leave_id)
    assert env.request("2026-03-04", "2026-03-05").status == LeaveStatus.PENDING


def _commit_while_waiting_for_lock(e, competing):
    """Run ``competing`` the first time the record lock is taken, as a request that got it first."""
    lock = e.records.lock
    pending = [competing]

    def racing_lock(record_id):
        if pending:
            pending.pop()()
        return lock(record_id)

    e.records.lock = racing_lock


def test_overlap_is_checked_after_the_record_lock(env):
    _commit_while_waiting_for_lock(env, lambda: env.request("2026-03-03", "2026-03-05"))

    with pytest.raises(ConflictError, match="overlaps"):
        env.request("2026-03-02", "2026-03-04")
    assert len(env.leaves.items) == 1


def test_balance_is_checked_after_the_record_lock():
    e = Env(remaining=3.0, used=7.0)
    _commit_while_waiting_for_lock(e, lambda: e.request("2026-03-09", "2026-03-11", status="APPROVED"))

    with pytest.raises(InsufficientBalanceError, match="Available: 0"):
        e.request("2026-03-02", "2026-03-03")
    assert e.balance() == (0.0, 10.0)


def test_cancel_rules(env):
    leave = env.request("2026-03-02", "2026-03-04")
    assert env.service.cancel(leave.leave_id).status == LeaveStatus.CANCELLED
    assert env.service.cancel(leave.leave_id).status == LeaveStatus.CANCELLED

    other = env.request("2026-03-09", "2026-03-10")
    env.service.approve(other.leave_id)
    with pytest.raises(ValidationError, match="Cannot cancel an approved leave"):
        env.service.cancel(other.leave_id)


def test_approve_refused_when_balance_ran_out(env):
    first = env.request("2026-03-02", "2026-03-06")
    second = env.request("2026-03-09", "2026-03-13")
    record = env.records.get_by_id(env.record_id)
    env.records.save_balances(replace(record, used_days=6.0, remaining_days=4.0))

    with pytest.raises(InsufficientBalanceError):
        env.service.approve(first.leave_id)
    assert env.service.get(first.leave_id).status == LeaveStatus.PENDING
    assert env.service.get(second.leave_id).status == LeaveStatus.PENDING
    assert env.balance() == (4.0, 6.0)


def test_change_status_follows_transition_table(env):
    leave = env.request("2026-03-02", "2026-03-04")

    env.service.change_status(leave.leave_id, status="IN_REVIEW")
    env.service.change_status(leave.leave_id, status="APPROVED", approver_id=99)
    assert env.balance() == (7.0, 3.0)

    env.service.change_status(leave.leave_id, status="CANCELLED")
    assert env.balance() == (10.0, 0.0)

    with pytest.raises(ValidationError):
        env.service.change_status(leave.leave_id, status="APPROVED")
    with pytest.raises(ValidationError, match="Status is required"):
        env.service.change_status(leave.leave_id, status=None)


def test_created_approved_leave_debits_immediately(env):
    leave = env.request(
        date(2026, 3, 2),
        date(2026, 3, 3),
        status="APPROVED",
        attachment=AttachmentUpload(storage_path="/uploads/abc", file_name="../../etc/passwd", file_size=12),
    )

    assert leave.status == LeaveStatus.APPROVED
    assert env.balance() == (8.0, 2.0)
    assert leave.attachments[0].file_name == "etc_passwd"
    assert leave.attachments[0].storage_path == "/uploads/abc"


def test_remove_approved_leave_credits_back(env):
    leave = env.request("2026-03-02", "2026-03-04")
    env.service.approve(leave.leave_id)

    env.service.remove_leave(leave.leave_id)

    assert env.balance() == (10.0, 0.0)
    with pytest.raises(NotFoundError):
        env.service.get(leave.leave_id)


def test_update_leave_dates(env):
    leave = env.request("2026-03-02", "2026-03-04")
    moved = env.service.update_leave(leave.leave_id, start_date="2026-03-09", end_date="2026-03-11", reason="Moved")
    assert (moved.start_date, moved.end_date, moved.reason) == (date(2026, 3, 9), date(2026, 3, 11), "Moved")

    with pytest.raises(ValidationError):
        env.service.update_leave(leave.leave_id, end_date="2026-03-09")

    env.service.approve(leave.leave_id)
    with pytest.raises(ValidationError, match="approved leave cannot be changed"):
        env.service.update_leave(leave.leave_id, end_date="2026-03-12")
    assert env.service.update_leave(leave.leave_id, reason="Still moved").reason == "Still moved"


def test_comments_need_active_member_of_company(env):
    leave = env.request("2026-03-02", "2026-03-04")

    comment = env.service.add_comment(leave.leave_id, company_user_id=21, comment="Covered by Bao")
    assert comment.comment == "Covered by Bao"
    assert env.service.get(leave.leave_id).comments[0].comment_id == comment.comment_id

    with pytest.raises(ValidationError):
        env.service.add_comment(leave.leave_id, company_user_id=30, comment="Not my company")
    with pytest.raises(ValidationError):
        env.service.add_comment(leave.leave_id, company_user_id=21, comment="  ")


def test_stats_balance_and_listing(env):
    first = env.request("2026-03-02", "2026-03-04")
    second = env.request("2026-03-09", "2026-03-10")
    env.service.approve(first.leave_id)
    env.service.cancel(second.leave_id)

    stats = env.service.stats(1)
    assert (stats.total, stats.approved, stats.cancelled, stats.pending) == (2, 1, 1, 0)

    balance = env.service.balance(user_id=10, company_id=1)
    assert balance.year == 2026
    assert [l.leave_id for l in balance.approved_leaves] == [first.leave_id]
    line = balance.summary[0]
    assert (line.leave_type, line.allocated, line.used, line.remaining) == ("Annual", 10.0, 3.0, 7.0)

    page = env.service.list(company_id=1, status="approved", page=1, limit=5)
    assert [l.leave_id for l in page["items"]] == [first.leave_id]
    assert page["pagination"] == {"page": 1, "limit": 5, "total": 1, "pages": 1}

    assert len(env.service.user_leaves(user_id=10, year=2026)) == 2
