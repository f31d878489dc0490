from __future__ import annotations

from datetime import datetime

import pytest

from src.hr_operations.hr_operations.companies.model import Company
from src.hr_operations.hr_operations.core.enums import CompanyUserStatus
from src.hr_operations.hr_operations.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.hr_operations.hr_operations.leaves import ledger
from src.hr_operations.hr_operations.leaves.allocation_service import LeaveAllocationService
from src.hr_operations.hr_operations.users.model import CompanyUser
from src.hr_operations.hr_operations.leaves.service import LeaveService
from tests.fakes import (
    FakeTx,
    InMemoryAllocations,
    InMemoryCompanies,
    InMemoryLeaveRecords,
    InMemoryLeaves,
    InMemoryMembers,
)


@pytest.fixture()
def env():
    allocations = InMemoryAllocations()
    records = InMemoryLeaveRecords(allocations)
    members = InMemoryMembers(
        CompanyUser(20, 10, 1, 1, "Engineer", status=CompanyUserStatus.ACTIVE),
        CompanyUser(21, 11, 1, 2, "Designer", status=CompanyUserStatus.ACTIVE),
        CompanyUser(22, 12, 1, 1, "engineer", status=CompanyUserStatus.PENDING),
        CompanyUser(23, 13, 1, 1, "Engineer", status=CompanyUserStatus.ACTIVE),
    )
    service = LeaveAllocationService(
        allocations,
        records,
        InMemoryCompanies(Company(1, "Acme")),
        members,
        FakeTx(),
        clock=lambda: datetime(2026, 3, 1, 9),
    )
    return service, records


def test_remove_takes_leave_requests_of_its_types_along():
    allocations = InMemoryAllocations()
    records = InMemoryLeaveRecords(allocations)
    leaves = InMemoryLeaves(allocations)
    members = InMemoryMembers(CompanyUser(20, 10, 1, 1, "Engineer", status=CompanyUserStatus.ACTIVE))

    def clock():
        return datetime(2026, 3, 1, 9)

    tx = FakeTx()
    allocation_service = LeaveAllocationService(
        allocations, records, InMemoryCompanies(Company(1, "Acme")), members, tx, clock=clock
    )
    leave_service = LeaveService(leaves, allocations, records, members, tx, clock=clock)

    allocation = allocation_service.create(
        company_id=1, created_by=20, attributes=[{"leave_name": "Annual", "role": "Engineer", "allocated_days": 10}]
    )
    leave = leave_service.create_leave(
        company_id=1,
        user_id=10,
        leave_type_id=allocation.attributes[0].leave_attribute_id,
        start_date="2026-03-02",
        end_date="2026-03-03",
    )
    leave_service.approve(leave.leave_id, approver_id=20)
    leave_service.add_comment(leave.leave_id, company_user_id=20, comment="Enjoy")

    allocation_service.remove(allocation.allocation_id)

    assert leaves.items == {}
    assert leaves.comments == {}
    assert records.items == {}
    with pytest.raises(NotFoundError):
        leave_service.get(leave.leave_id)


def _create(service, **extra):
    attributes = [
        {"leave_name": "Annual", "role": ["Engineer", "Designer"], "allocated_days": 12},
        {"leave_name": "Sick", "role": "Engineer", "allocated_days": 5, "year": 2027},
    ]
    return service.create(company_id=1, created_by=20, attributes=extra.get("attributes", attributes))


def test_create_expands_roles_and_precreates_records(env):
    service, records = env
    allocation = _create(service)

    assert [(a.leave_name, a.role, a.year) for a in allocation.attributes] == [
        ("Annual", "Engineer", 2026),
        ("Annual", "Designer", 2026),
        ("Sick", "Engineer", 2027),
    ]
    annual_engineer = allocation.attributes[0].leave_attribute_id
    owners = sorted(r.company_user_id for r in records.list(leave_attribute_id=annual_engineer))
    assert owners == [20, 23]
    assert all(r.remaining_days == 12.0 for r in records.list(leave_attribute_id=annual_engineer))
    assert len(records.list(company_user_id=21)) == 1


def test_create_rules(env):
    service, _ = env
    with pytest.raises(ValidationError, match="past year"):
        _create(service, attributes=[{"leave_name": "Annual", "role": "Engineer", "allocated_days": 1, "year": 2025}])
    with pytest.raises(ConflictError, match="already exists"):
        _create(
            service,
            attributes=[
                {"leave_name": "Annual", "role": "Engineer", "allocated_days": 1},
                {"leave_name": "annual", "role": "ENGINEER", "allocated_days": 2},
            ],
        )
    with pytest.raises(NotFoundError, match="active member"):
        service.create(company_id=1, created_by=22, attributes=[{"leave_name": "A", "role": "Engineer"}])

    _create(service)
    with pytest.raises(ConflictError, match="Leave type 'Annual' for role 'Engineer' in 2026 already exists"):
        _create(service)


def test_second_create_adds_to_the_company_allocation(env):
    service, records = env
    first = _create(service)

    second = service.create(
        company_id=1, created_by=21, attributes=[{"leave_name": "Study", "role": "designer", "allocated_days": 3}]
    )

    assert second.allocation_id == first.allocation_id
    assert [a.leave_name for a in second.attributes] == ["Annual", "Annual", "Sick", "Study"]
    study = second.attributes[-1].leave_attribute_id
    assert [r.company_user_id for r in records.list(leave_attribute_id=study)] == [21]
    assert len(service.list(company_id=1)) == 1


def test_changing_allocated_days_recomputes_remaining(env):
    service, records = env
    allocation = _create(service)
    attribute_id = allocation.attributes[0].leave_attribute_id
    record = records.find(company_user_id=20, leave_attribute_id=attribute_id, year=2026)
    records.save_balances(ledger.debit(record, 4))

    service.update(allocation.allocation_id, attributes=[{"leave_attribute_id": attribute_id, "allocated_days": 15}])

    record = records.get_by_id(record.record_id)
    assert (record.used_days, record.remaining_days, record.allocated_days) == (4.0, 11.0, 15.0)

    with pytest.raises(ValidationError):
        service.update(allocation.allocation_id, attributes=[{"leave_attribute_id": attribute_id, "allocated_days": 3}])


def test_update_appends_new_types(env):
    service, records = env
    allocation = _create(service)

    updated = service.update(
        allocation.allocation_id, new_attributes=[{"leave_name": "Study", "role": "Designer", "allocated_days": 3}]
    )

    assert [a.leave_name for a in updated.attributes][-1] == "Study"
    assert len(records.list(company_user_id=21)) == 2
    with pytest.raises(ConflictError):
        service.update(
            allocation.allocation_id, new_attributes=[{"leave_name": "Study", "role": "designer", "allocated_days": 1}]
        )


def test_carry_forward_round_trip(env):
    service, records = env
    allocation = _create(service)
    record = records.find(company_user_id=20, leave_attribute_id=allocation.attributes[0].leave_attribute_id, year=2026)

    carry = service.add_carry_forward(record_id=record.record_id, days=2.5)
    after = records.get_by_id(record.record_id)
    assert (after.carried_over_days, after.remaining_days) == (2.5, 14.5)
    assert [c.carry_forward_id for c in service.list_carry_forwards(record.record_id)] == [carry.carry_forward_id]

    service.remove_carry_forward(carry.carry_forward_id)
    after = records.get_by_id(record.record_id)
    assert (after.carried_over_days, after.remaining_days) == (0.0, 12.0)
    assert service.list_carry_forwards(record.record_id) == []

    with pytest.raises(ValidationError):
        service.add_carry_forward(record_id=record.record_id, days=0)
    with pytest.raises(NotFoundError):
        service.remove_carry_forward(carry.carry_forward_id)


def test_list_filters_and_remove(env):
    service, records = env
    allocation = _create(service)

    filtered = service.list(company_id=1, leave_name="sick")
    assert [a.leave_name for a in filtered[0].attributes] == ["Sick"]
    assert service.list(role="Manager") == []

    service.remove(allocation.allocation_id)
    assert records.items == {}
    with pytest.raises(NotFoundError):
        service.get(allocation.allocation_id)
