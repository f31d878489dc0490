from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import optional_id, require_id, require_non_empty
from ..companies.repository import CompanyRepository, RoleRepository
from ..core.enums import CompanyUserStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import CompanyUser, User
from .repository import CompanyUserRepository, UserRepository

logger = logging.getLogger(__name__)


def _normalize_email(email: Optional[str]) -> str:
    email = require_non_empty(email, "Email").lower()
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise ValidationError("Email is invalid")
    return email


def _parse_status(value) -> CompanyUserStatus:
    if isinstance(value, CompanyUserStatus):
        return value
    try:
        return CompanyUserStatus(str(value).upper())
    except ValueError:
        raise ValidationError(f"Invalid status: {value}")


class UserService:
    """Use case: platform accounts (email is unique)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_all(self) -> Sequence[User]:
        return self._users.list_all()

    def create(self, *, email: str, is_active: bool = True) -> User:
        email = _normalize_email(email)
        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")
        user_id = self._users.create_user(email=email, is_active=is_active)
        logger.info("User %s created", user_id)
        return self.get(user_id)

    def update(self, user_id: int, *, email: Optional[str] = None, is_active: Optional[bool] = None) -> User:
        user = self.get(user_id)
        fields: dict = {}
        if email is not None:
            email = _normalize_email(email)
            other = self._users.get_by_email(email)
            if other and other.user_id != user.user_id:
                raise ConflictError("User with this email already exists")
            fields["email"] = email
        if is_active is not None:
            fields["is_active"] = int(bool(is_active))
        self._users.update(user.user_id, fields=fields)
        return self.get(user.user_id)

    def delete(self, user_id: int) -> None:
        user = self.get(user_id)
        self._users.delete_by_id(user.user_id)
        logger.info("User %s deleted", user.user_id)


class CompanyUserService:
    """Use case: attach users to companies with a company-scoped role."""

    def __init__(
        self,
        members: CompanyUserRepository,
        users: UserRepository,
        companies: CompanyRepository,
        roles: RoleRepository,
    ):
        self._members = members
        self._users = users
        self._companies = companies
        self._roles = roles

    def get(self, company_user_id: int) -> CompanyUser:
        member = self._members.get_by_id(int(company_user_id))
        if not member:
            raise NotFoundError("Company user not found")
        return member

    def list(self, *, company_id: Optional[int] = None, user_id: Optional[int] = None) -> Sequence[CompanyUser]:
        if company_id:
            items = self._members.list_for_company(int(company_id))
            if user_id:
                items = [m for m in items if m.user_id == int(user_id)]
            return items
        if user_id:
            return self._members.list_for_user(int(user_id))
        return self._members.list_all()

    def _check_role(self, role_id: Optional[int], company_id: int) -> None:
        if role_id is None:
            return
        role = self._roles.get_by_id(role_id)
        if not role:
            raise NotFoundError("Role not found")
        if role.company_id != company_id:
            raise ValidationError("Role does not belong to this company")

    def create(
        self,
        *,
        user_id: int,
        company_id: int,
        role_id: Optional[int] = None,
        first_name: Optional[str] = None,
        middle_name: Optional[str] = None,
        last_name: Optional[str] = None,
        status=CompanyUserStatus.PENDING,
        is_active: bool = True,
    ) -> CompanyUser:
        user_id = require_id(user_id, "User ID")
        company_id = require_id(company_id, "Company ID")
        role_id = optional_id(role_id, "Role ID")

        if not self._users.get_by_id(user_id):
            raise NotFoundError("User not found")
        if not self._companies.get_by_id(company_id):
            raise NotFoundError("Company not found")
        self._check_role(role_id, company_id)
        if self._members.get_membership(user_id=user_id, company_id=company_id):
            raise ConflictError("User is already a member of this company")

        company_user_id = self._members.create(
            user_id=user_id,
            company_id=company_id,
            role_id=role_id,
            first_name=first_name,
            middle_name=middle_name,
            last_name=last_name,
            status=_parse_status(status),
            is_active=is_active,
        )
        logger.info("User %s joined company %s as company user %s", user_id, company_id, company_user_id)
        return self.get(company_user_id)

    def update(self, company_user_id: int, **changes) -> CompanyUser:
        member = self.get(company_user_id)
        fields: dict = {}
        if "role_id" in changes:
            role_id = optional_id(changes["role_id"], "Role ID")
            self._check_role(role_id, member.company_id)
            fields["role_id"] = role_id
        for name in ("first_name", "middle_name", "last_name"):
            if changes.get(name) is not None:
                fields[name] = changes[name]
        if changes.get("status") is not None:
            fields["status"] = _parse_status(changes["status"])
        if changes.get("is_active") is not None:
            fields["is_active"] = int(bool(changes["is_active"]))

        self._members.update(member.company_user_id, fields=fields)
        return self.get(member.company_user_id)

    def update_status(self, company_user_id: int, status) -> CompanyUser:
        member = self.get(company_user_id)
        new_status = _parse_status(status)
        self._members.update(member.company_user_id, fields={"status": new_status})
        logger.info("Company user %s status %s -> %s", member.company_user_id, member.status.value, new_status.value)
        return self.get(member.company_user_id)

    def delete(self, company_user_id: int) -> None:
        member = self.get(company_user_id)
        self._members.delete_by_id(member.company_user_id)
