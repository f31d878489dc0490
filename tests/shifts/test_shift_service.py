from __future__ import annotations

from datetime import time

import pytest

from src.hr_operations.hr_operations.companies.model import Company
from src.hr_operations.hr_operations.core.enums import CompanyUserStatus
from src.hr_operations.hr_operations.core.exceptions import NotFoundError, ValidationError
from src.hr_operations.hr_operations.shifts.service import ShiftService
from src.hr_operations.hr_operations.users.model import CompanyUser
from tests.fakes import FakeTx, InMemoryCompanies, InMemoryMembers, InMemoryShifts


@pytest.fixture()
def service():
    members = InMemoryMembers(
        CompanyUser(20, 10, 1, None, None, status=CompanyUserStatus.ACTIVE),
        CompanyUser(21, 11, 1, None, None, status=CompanyUserStatus.ACTIVE),
        CompanyUser(30, 12, 2, None, None, status=CompanyUserStatus.ACTIVE),
    )
    companies = InMemoryCompanies(Company(1, "Acme"), Company(2, "Globex"))
    return ShiftService(InMemoryShifts(), members, companies, FakeTx())


def _morning(**extra):
    data = {"shift_name": "Morning", "start_time": "09:00", "end_time": "17:30", "break_duration": 30}
    data.update(extra)
    return data


def test_create_assigns_only_company_members(service):
    shift = service.create(company_id=1, created_by=20, attributes=[_morning(assigned_user_ids=[21, 30, 999])])

    attribute = shift.attributes[0]
    assert attribute.start_time == time(9, 0)
    assert attribute.end_time == time(17, 30)
    assert attribute.break_duration == 30
    assert attribute.assigned_user_ids == (21,)


def test_create_requires_creator_in_company(service):
    with pytest.raises(ValidationError, match="does not belong"):
        service.create(company_id=1, created_by=30, attributes=[_morning()])
    with pytest.raises(ValidationError, match="At least one"):
        service.create(company_id=1, created_by=20, attributes=[])
    with pytest.raises(NotFoundError):
        service.create(company_id=9, created_by=20, attributes=[_morning()])


def test_assign_and_unassign(service):
    shift = service.create(company_id=1, created_by=20, attributes=[_morning(assigned_user_ids=[20])])
    attribute_id = shift.attributes[0].shift_attribute_id

    result = service.assign(shift_attribute_id=attribute_id, assigned_user_ids=[20, 21])
    assert result.assignments_created == 1
    assert result.existing_users_skipped == 1
    assert result.attribute.assigned_user_ids == (20, 21)

    result = service.assign(shift_attribute_id=attribute_id, assigned_user_ids=[], remove_user_ids=[20])
    assert result.users_removed == 1
    assert result.attribute.assigned_user_ids == (21,)


def test_current_shift_is_latest_assignment(service):
    service.create(company_id=1, created_by=20, attributes=[_morning(assigned_user_ids=[21])])
    night = service.create(
        company_id=1,
        created_by=20,
        attributes=[{"shift_name": "Night", "start_time": "22:00", "end_time": "06:00", "assigned_user_ids": [21]}],
    )

    current = service.current_shift(company_user_id=21, company_id=1)
    assert current.shift_attribute_id == night.attributes[0].shift_attribute_id
    assert current.crosses_midnight

    with pytest.raises(NotFoundError):
        service.current_shift(company_user_id=20, company_id=1)


def test_update_attribute_partial(service):
    shift = service.create(company_id=1, created_by=20, attributes=[_morning()])
    attribute_id = shift.attributes[0].shift_attribute_id

    updated = service.update_attribute(attribute_id, {"grace_period_minutes": 10, "is_active": False})

    assert updated.grace_period_minutes == 10
    assert updated.is_active is False
    assert updated.shift_name == "Morning"

    with pytest.raises(ValidationError):
        service.update_attribute(attribute_id, {"break_duration": -5})
