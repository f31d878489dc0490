from __future__ import annotations

import pytest

from src.hr_operations.hr_operations.core.exceptions import InsufficientBalanceError, ValidationError
from src.hr_operations.hr_operations.leaves import ledger
from src.hr_operations.hr_operations.leaves.model import UsersLeaveRecord

ALLOCATED = 10.0


def _record(used=0.0, remaining=10.0, carried=0.0):
    return UsersLeaveRecord(1, 10, 20, 1, 2026, used, remaining, carried)


def _balanced(record):
    return record.remaining_days == pytest.approx(ALLOCATED - record.used_days + record.carried_over_days)


def test_debit_then_credit_restores_balance():
    debited = ledger.debit(_record(), 3)
    assert (debited.remaining_days, debited.used_days) == (7.0, 3.0)
    assert _balanced(debited)

    credited = ledger.credit(debited, 3)
    assert (credited.remaining_days, credited.used_days) == (10.0, 0.0)


def test_debit_beyond_remaining_is_refused():
    with pytest.raises(InsufficientBalanceError, match="Requested: 5, Available: 3"):
        ledger.debit(_record(used=7, remaining=3), 5)


def test_carry_forward_keeps_invariant():
    record = ledger.add_carried(ledger.debit(_record(), 4), 2.5)
    assert record.carried_over_days == 2.5
    assert record.remaining_days == 8.5
    assert _balanced(record)

    record = ledger.remove_carried(record, 2.5)
    assert record.carried_over_days == 0.0
    assert _balanced(record)


def test_carry_forward_must_be_positive():
    with pytest.raises(ValidationError):
        ledger.add_carried(_record(), 0)


def test_removing_carry_forward_cannot_go_negative():
    record = ledger.debit(ledger.add_carried(_record(), 2), 12)
    assert record.remaining_days == 0.0
    with pytest.raises(ValidationError):
        ledger.remove_carried(record, 2)


def test_reallocate_recomputes_remaining():
    record = ledger.reallocate(_record(used=3, remaining=7, carried=1), 12)
    assert record.remaining_days == 10.0
    assert record.allocated_days == 12

    with pytest.raises(ValidationError):
        ledger.reallocate(_record(used=6, remaining=4), 5)
