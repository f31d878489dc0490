from __future__ import annotations

import pytest

from src.hr_operations.hr_operations.companies.model import Company, CompanyRole
from src.hr_operations.hr_operations.companies.service import CompanyService, RoleService
from src.hr_operations.hr_operations.core.enums import CompanyUserStatus
from src.hr_operations.hr_operations.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.hr_operations.hr_operations.users.model import User
from src.hr_operations.hr_operations.users.service import CompanyUserService, UserService
from tests.fakes import InMemoryCompanies, InMemoryMembers, InMemoryRoles, InMemoryUsers


class Env:
    def __init__(self):
        self.companies = InMemoryCompanies(Company(1, "Acme"), Company(2, "Globex"))
        self.roles = InMemoryRoles(CompanyRole(5, 1, "Engineer"), CompanyRole(6, 2, "Engineer"))
        self.users = InMemoryUsers(User(10, "an@acme.io"))
        self.members = InMemoryMembers(roles=self.roles)

        self.company_service = CompanyService(self.companies)
        self.role_service = RoleService(self.roles, self.companies)
        self.user_service = UserService(self.users)
        self.member_service = CompanyUserService(self.members, self.users, self.companies, self.roles)


@pytest.fixture()
def env():
    return Env()


def test_company_names_are_unique(env):
    created = env.company_service.create(name="  Initech ", email="hr@initech.io")
    assert created.name == "Initech"

    with pytest.raises(ConflictError):
        env.company_service.create(name="acme")
    with pytest.raises(ConflictError):
        env.company_service.update(created.company_id, name="Globex")
    with pytest.raises(ValidationError):
        env.company_service.create(name=" ")

    assert env.company_service.update(created.company_id, phone="555").phone == "555"


def test_role_names_are_unique_per_company(env):
    with pytest.raises(ConflictError):
        env.role_service.create(company_id=1, name="engineer")

    role = env.role_service.create(company_id=2, name="Manager")
    assert [r.name for r in env.role_service.list_for_company(2)] == ["Engineer", "Manager"]
    with pytest.raises(ConflictError):
        env.role_service.update(role.role_id, name="Engineer")
    with pytest.raises(NotFoundError):
        env.role_service.create(company_id=9, name="Manager")


def test_user_email_is_normalized_and_unique(env):
    user = env.user_service.create(email="Binh@Acme.IO")
    assert user.email == "binh@acme.io"

    with pytest.raises(ConflictError):
        env.user_service.create(email="AN@acme.io")
    with pytest.raises(ConflictError):
        env.user_service.update(user.user_id, email="an@acme.io")
    with pytest.raises(ValidationError, match="invalid"):
        env.user_service.create(email="not-an-email")

    assert env.user_service.update(user.user_id, is_active=False).is_active is False


def test_membership_rules(env):
    member = env.member_service.create(user_id=10, company_id=1, role_id=5, first_name="An")
    assert member.status is CompanyUserStatus.PENDING
    assert member.role_name == "Engineer"

    with pytest.raises(ConflictError, match="already a member"):
        env.member_service.create(user_id=10, company_id=1)
    with pytest.raises(ValidationError, match="does not belong"):
        env.member_service.create(user_id=10, company_id=2, role_id=5)
    with pytest.raises(NotFoundError):
        env.member_service.create(user_id=99, company_id=2)

    active = env.member_service.update_status(member.company_user_id, "active")
    assert active.status is CompanyUserStatus.ACTIVE
    with pytest.raises(ValidationError, match="Invalid status"):
        env.member_service.update_status(member.company_user_id, "retired")


def test_member_listing(env):
    env.member_service.create(user_id=10, company_id=1)
    env.member_service.create(user_id=10, company_id=2, role_id=6, status="ACTIVE")

    assert len(env.member_service.list(user_id=10)) == 2
    assert [m.company_id for m in env.member_service.list(company_id=2, user_id=10)] == [2]
