from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Optional, Sequence

from werkzeug.utils import secure_filename

from ..common.datetime_utils import now_local, parse_iso_date, working_days_between
from ..common.validators import normalize_paging, optional_id, require_id, require_non_empty
from ..core.enums import LeaveStatus
from ..core.exceptions import ConflictError, InsufficientBalanceError, NotFoundError, ValidationError
from ..database.connection import TransactionManager
from ..users.repository import CompanyUserRepository
from . import ledger
from .allocation_service import is_active_member
from .model import (
    AttachmentUpload,
    Leave,
    LeaveBalance,
    LeaveBalanceLine,
    LeaveComment,
    LeaveStats,
    UsersLeaveRecord,
)
from .repository import AllocationRepository, LeaveRecordRepository, LeaveRepository
from .workflow import BLOCKING_STATUSES, parse_leave_status, validate_transition

logger = logging.getLogger(__name__)


def _as_date(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f"{field_name} is required")
    return parse_iso_date(str(value))


def _clean_upload(upload: Optional[AttachmentUpload]) -> Optional[AttachmentUpload]:
    if upload is None:
        return None
    if not upload.storage_path:
        raise ValidationError("Attachment path is required")
    name = secure_filename(upload.file_name or "") or None
    return AttachmentUpload(
        storage_path=upload.storage_path,
        file_name=name,
        file_size=upload.file_size,
        mime_type=upload.mime_type,
    )


class LeaveService:
    """Use case: leave requests and their effect on the member's balance.

    Every balance change runs in the transaction that writes the status, with the
    leave row and the UsersLeaveRecord row locked.
    """

    def __init__(
        self,
        leaves: LeaveRepository,
        allocations: AllocationRepository,
        records: LeaveRecordRepository,
        members: CompanyUserRepository,
        tx: TransactionManager,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._leaves = leaves
        self._allocations = allocations
        self._records = records
        self._members = members
        self._tx = tx
        self._clock = clock

    # --- helpers -----------------------------------------------------------

    def _lock(self, leave_id: Any) -> Leave:
        leave = self._leaves.lock(require_id(leave_id, "Leave ID"))
        if not leave:
            raise NotFoundError(f"Leave with ID {leave_id} not found")
        return leave

    def _lock_record(self, leave: Leave) -> UsersLeaveRecord:
        record = self._records.lock(leave.users_leave_record_id) if leave.users_leave_record_id else None
        if not record:
            raise NotFoundError("User leave record not found")
        return record

    def _debit(self, leave: Leave) -> None:
        record = self._lock_record(leave)
        self._records.save_balances(ledger.debit(record, leave.leave_days))
        logger.info("Record %s debited %d day(s) for leave %s", record.record_id, leave.leave_days, leave.leave_id)

    def _credit(self, leave: Leave) -> None:
        record = self._lock_record(leave)
        self._records.save_balances(ledger.credit(record, leave.leave_days))
        logger.info("Record %s credited %d day(s) for leave %s", record.record_id, leave.leave_days, leave.leave_id)

    def _check_overlap(
        self, *, company_id: int, user_id: int, start: date, end: date, exclude_leave_id: Optional[int] = None
    ) -> None:
        clash = self._leaves.find_overlapping(
            company_id=company_id,
            user_id=user_id,
            start_date=start,
            end_date=end,
            statuses=BLOCKING_STATUSES,
            exclude_leave_id=exclude_leave_id,
        )
        if clash:
            raise ConflictError(
                f"Leave overlaps with leave {clash.leave_id} ({clash.start_date} to {clash.end_date}, {clash.status.value})"
            )

    # --- requests ----------------------------------------------------------

    def create_leave(
        self,
        *,
        company_id: Any,
        user_id: Any,
        leave_type_id: Any,
        start_date: Any,
        end_date: Any,
        company_user_id: Any = None,
        reason: Optional[str] = None,
        status: Any = None,
        approver_id: Any = None,
        attachment: Optional[AttachmentUpload] = None,
    ) -> Leave:
        company_id = require_id(company_id, "Company ID")
        user_id = require_id(user_id, "User ID")
        leave_type_id = require_id(leave_type_id, "Leave type ID")
        start = _as_date(start_date, "Start date")
        end = _as_date(end_date, "End date")
        initial = parse_leave_status(status) if status else LeaveStatus.PENDING
        approver_id = optional_id(approver_id, "Approver ID")
        upload = _clean_upload(attachment)

        if end <= start:
            raise ValidationError("End date must be after start date")
        leave_days = working_days_between(start, end)
        if leave_days <= 0:
            raise ValidationError("Leave must include at least one working day")

        attribute = self._allocations.get_attribute(leave_type_id)
        if not attribute or not attribute.is_active or attribute.company_id != company_id:
            raise NotFoundError("Leave type not found or inactive for this company")

        if company_user_id:
            member = self._members.get_by_id(require_id(company_user_id, "Company user ID"))
        else:
            member = self._members.get_membership(user_id=user_id, company_id=company_id)
        if not is_active_member(member) or member.company_id != company_id or member.user_id != user_id:
            raise NotFoundError("Active company user not found")
        if (member.role_name or "").strip().lower() != attribute.role.strip().lower():
            raise ValidationError(f"Leave type '{attribute.leave_name}' is not available for role '{member.role_name}'")

        year = self._clock().year
        record = self._records.find(
            company_user_id=member.company_user_id, leave_attribute_id=attribute.leave_attribute_id, year=year
        )
        if not record:
            raise NotFoundError(f"No leave record for '{attribute.leave_name}' in {year}")

        with self._tx.transaction():
            # Balance and overlap are checked under the record lock.
            locked = self._records.lock(record.record_id)
            if not locked:
                raise NotFoundError(f"No leave record for '{attribute.leave_name}' in {year}")
            if locked.remaining_days < leave_days:
                raise InsufficientBalanceError(
                    f"Insufficient leave days. Requested: {leave_days}, Available: {locked.remaining_days:g}"
                )
            self._check_overlap(company_id=company_id, user_id=user_id, start=start, end=end)
            leave_id = self._leaves.create(
                company_id=company_id,
                user_id=user_id,
                company_user_id=member.company_user_id,
                leave_type_id=attribute.leave_attribute_id,
                users_leave_record_id=record.record_id,
                start_date=start,
                end_date=end,
                status=initial,
                approver_id=approver_id,
                reason=reason,
            )
            if upload:
                self._leaves.add_attachment(leave_id=leave_id, user_id=user_id, upload=upload)
            if initial == LeaveStatus.APPROVED:
                self._records.save_balances(ledger.debit(locked, leave_days))

        logger.info(
            "Leave %s requested by user %s: %s to %s (%d day(s), %s)",
            leave_id,
            user_id,
            start,
            end,
            leave_days,
            initial.value,
        )
        return self.get(leave_id)

    def approve(self, leave_id: Any, *, approver_id: Any = None) -> Leave:
        approver_id = optional_id(approver_id, "Approver ID")
        with self._tx.transaction():
            leave = self._lock(leave_id)
            if leave.status == LeaveStatus.APPROVED:
                return self.get(leave.leave_id)
            if leave.status not in (LeaveStatus.PENDING, LeaveStatus.IN_REVIEW):
                raise ValidationError(f"Cannot approve a leave that is {leave.status.value}")
            self._debit(leave)
            self._leaves.update(leave.leave_id, fields={"status": LeaveStatus.APPROVED, "approver_id": approver_id})
        logger.info("Leave %s approved by %s", leave.leave_id, approver_id)
        return self.get(leave.leave_id)

    def reject(self, leave_id: Any, *, approver_id: Any = None, reason: Optional[str] = None) -> Leave:
        approver_id = optional_id(approver_id, "Approver ID")
        with self._tx.transaction():
            leave = self._lock(leave_id)
            validate_transition(leave.status, LeaveStatus.REJECTED)
            if leave.status == LeaveStatus.APPROVED:
                self._credit(leave)
            self._leaves.update(
                leave.leave_id,
                fields={"status": LeaveStatus.REJECTED, "approver_id": approver_id, "rejection_reason": reason},
            )
        logger.info("Leave %s rejected by %s", leave.leave_id, approver_id)
        return self.get(leave.leave_id)

    def cancel(self, leave_id: Any) -> Leave:
        with self._tx.transaction():
            leave = self._lock(leave_id)
            if leave.status == LeaveStatus.CANCELLED:
                return self.get(leave.leave_id)
            if leave.status == LeaveStatus.APPROVED:
                raise ValidationError("Cannot cancel an approved leave")
            self._leaves.update(leave.leave_id, fields={"status": LeaveStatus.CANCELLED})
        logger.info("Leave %s cancelled", leave.leave_id)
        return self.get(leave.leave_id)

    def change_status(
        self,
        leave_id: Any,
        *,
        status: Any,
        approver_id: Any = None,
        reason: Optional[str] = None,
    ) -> Leave:
        if not status:
            raise ValidationError("Status is required")
        new = parse_leave_status(status)
        approver_id = optional_id(approver_id, "Approver ID")
        with self._tx.transaction():
            leave = self._lock(leave_id)
            if leave.status == new:
                return self.get(leave.leave_id)
            validate_transition(leave.status, new)
            if leave.status == LeaveStatus.APPROVED:
                self._credit(leave)
            if new == LeaveStatus.APPROVED:
                self._debit(leave)
            fields: dict = {"status": new, "approver_id": approver_id}
            if new == LeaveStatus.REJECTED:
                fields["rejection_reason"] = reason
            self._leaves.update(leave.leave_id, fields=fields)
        logger.info("Leave %s status changed %s -> %s", leave.leave_id, leave.status.value, new.value)
        return self.get(leave.leave_id)

    def remove_leave(self, leave_id: Any) -> None:
        with self._tx.transaction():
            leave = self._lock(leave_id)
            if leave.status == LeaveStatus.APPROVED:
                self._credit(leave)
            self._leaves.delete_by_id(leave.leave_id)
        logger.info("Leave %s removed", leave.leave_id)

    def update_leave(
        self,
        leave_id: Any,
        *,
        reason: Optional[str] = None,
        approver_id: Any = None,
        start_date: Any = None,
        end_date: Any = None,
    ) -> Leave:
        with self._tx.transaction():
            leave = self._lock(leave_id)
            fields: dict = {}
            if reason is not None:
                fields["reason"] = reason
            if approver_id is not None:
                fields["approver_id"] = require_id(approver_id, "Approver ID")

            if start_date is not None or end_date is not None:
                start = _as_date(start_date, "Start date") if start_date is not None else leave.start_date
                end = _as_date(end_date, "End date") if end_date is not None else leave.end_date
                if (start, end) != (leave.start_date, leave.end_date):
                    if leave.status == LeaveStatus.APPROVED:
                        raise ValidationError("Dates of an approved leave cannot be changed")
                    if end <= start:
                        raise ValidationError("End date must be after start date")
                    if working_days_between(start, end) <= 0:
                        raise ValidationError("Leave must include at least one working day")
                    self._check_overlap(
                        company_id=leave.company_id,
                        user_id=leave.user_id,
                        start=start,
                        end=end,
                        exclude_leave_id=leave.leave_id,
                    )
                    fields["start_date"] = start
                    fields["end_date"] = end

            self._leaves.update(leave.leave_id, fields=fields)
        return self.get(leave.leave_id)

    # --- queries -----------------------------------------------------------

    def get(self, leave_id: Any) -> Leave:
        leave = self._leaves.get_by_id(require_id(leave_id, "Leave ID"))
        if not leave:
            raise NotFoundError(f"Leave with ID {leave_id} not found")
        return leave

    def list(
        self,
        *,
        company_id: Any = None,
        user_id: Any = None,
        status: Any = None,
        page: Any = None,
        limit: Any = None,
    ) -> dict:
        page, limit = normalize_paging(page, limit)
        items, total = self._leaves.list(
            company_id=optional_id(company_id, "Company ID"),
            user_id=optional_id(user_id, "User ID"),
            status=parse_leave_status(status) if status else None,
            page=page,
            limit=limit,
        )
        return {
            "items": list(items),
            "pagination": {"page": page, "limit": limit, "total": total, "pages": (total + limit - 1) // limit},
        }

    def user_leaves(self, *, user_id: Any, company_id: Any = None, year: Any = None, status: Any = None) -> Sequence[Leave]:
        return self._leaves.list_for_user(
            user_id=require_id(user_id, "User ID"),
            company_id=optional_id(company_id, "Company ID"),
            year=int(year) if year else None,
            status=parse_leave_status(status) if status else None,
        )

    def stats(self, company_id: Any) -> LeaveStats:
        counts = self._leaves.count_by_status(require_id(company_id, "Company ID"))
        return LeaveStats(
            total=sum(counts.values()),
            pending=counts.get(LeaveStatus.PENDING, 0),
            approved=counts.get(LeaveStatus.APPROVED, 0),
            rejected=counts.get(LeaveStatus.REJECTED, 0),
            cancelled=counts.get(LeaveStatus.CANCELLED, 0),
            in_review=counts.get(LeaveStatus.IN_REVIEW, 0),
        )

    def balance(self, *, user_id: Any, company_id: Any, year: Any = None) -> LeaveBalance:
        user_id = require_id(user_id, "User ID")
        company_id = require_id(company_id, "Company ID")
        year = int(year or self._clock().year)
        records = tuple(self._records.list(user_id=user_id, company_id=company_id, year=year))
        approved = tuple(
            self._leaves.list_for_user(user_id=user_id, company_id=company_id, year=year, status=LeaveStatus.APPROVED)
        )
        summary = tuple(
            LeaveBalanceLine(
                leave_type=r.leave_name or str(r.leave_attribute_id),
                allocated=r.allocated_days or 0.0,
                used=r.used_days,
                remaining=r.remaining_days,
                carried_over=r.carried_over_days,
            )
            for r in records
        )
        return LeaveBalance(
            user_id=user_id,
            company_id=company_id,
            year=year,
            records=records,
            approved_leaves=approved,
            summary=summary,
        )

    def add_comment(self, leave_id: Any, *, company_user_id: Any, comment: Any) -> LeaveComment:
        text = require_non_empty(comment, "Comment")
        leave = self.get(leave_id)
        member = self._members.get_by_id(require_id(company_user_id, "Company user ID"))
        if not is_active_member(member) or member.company_id != leave.company_id:
            raise ValidationError("Only active members of the leave's company can comment")
        comment_id = self._leaves.add_comment(
            leave_id=leave.leave_id,
            company_user_id=member.company_user_id,
            comment=text,
            comment_date=self._clock(),
        )
        logger.info("Comment %s added to leave %s", comment_id, leave.leave_id)
        return self._leaves.get_comment(comment_id)
