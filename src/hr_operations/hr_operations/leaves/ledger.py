"""Balance arithmetic on UsersLeaveRecord.

Each operation returns the new record and keeps
remaining == allocated - used + carried_over. Nothing here touches storage.
"""
from __future__ import annotations

from dataclasses import replace

from ..core.exceptions import InsufficientBalanceError, ValidationError
from .model import UsersLeaveRecord


def _days(value: float) -> float:
    return round(float(value), 2)


def debit(record: UsersLeaveRecord, days: float) -> UsersLeaveRecord:
    if record.remaining_days < days:
        raise InsufficientBalanceError(
            f"Insufficient leave days. Requested: {days:g}, Available: {record.remaining_days:g}"
        )
    return replace(
        record,
        used_days=_days(record.used_days + days),
        remaining_days=_days(record.remaining_days - days),
    )


def credit(record: UsersLeaveRecord, days: float) -> UsersLeaveRecord:
    return replace(
        record,
        used_days=_days(record.used_days - days),
        remaining_days=_days(record.remaining_days + days),
    )


def add_carried(record: UsersLeaveRecord, days: float) -> UsersLeaveRecord:
    if days <= 0:
        raise ValidationError("Carry forward days must be greater than 0")
    return replace(
        record,
        carried_over_days=_days(record.carried_over_days + days),
        remaining_days=_days(record.remaining_days + days),
    )


def remove_carried(record: UsersLeaveRecord, days: float) -> UsersLeaveRecord:
    if record.remaining_days - days < 0:
        raise ValidationError("Removing these carry forward days would make the remaining balance negative")
    return replace(
        record,
        carried_over_days=_days(record.carried_over_days - days),
        remaining_days=_days(record.remaining_days - days),
    )


def reallocate(record: UsersLeaveRecord, allocated_days: float) -> UsersLeaveRecord:
    remaining = _days(allocated_days - record.used_days + record.carried_over_days)
    if remaining < 0:
        raise ValidationError(
            f"Allocated days {allocated_days:g} are below days already used ({record.used_days:g})"
        )
    return replace(record, remaining_days=remaining, allocated_days=allocated_days)
