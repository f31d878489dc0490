from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import require_id, require_non_empty
from ..core.exceptions import ConflictError, NotFoundError
from .model import Company, CompanyRole
from .repository import CompanyRepository, RoleRepository

logger = logging.getLogger(__name__)

_COMPANY_FIELDS = ("name", "email", "phone", "address", "is_active")


class CompanyService:
    """Use case: manage tenants."""

    def __init__(self, companies: CompanyRepository):
        self._companies = companies

    def get(self, company_id: int) -> Company:
        company = self._companies.get_by_id(int(company_id))
        if not company:
            raise NotFoundError("Company not found")
        return company

    def list_all(self) -> Sequence[Company]:
        return self._companies.list_all()

    def create(
        self,
        *,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        is_active: bool = True,
    ) -> Company:
        name = require_non_empty(name, "Company name")
        if self._companies.get_by_name(name):
            raise ConflictError("Company with this name already exists")

        company_id = self._companies.create(name=name, email=email, phone=phone, address=address, is_active=is_active)
        logger.info("Company %s created (%s)", company_id, name)
        return self.get(company_id)

    def update(self, company_id: int, **changes) -> Company:
        existing = self.get(company_id)
        fields = {k: v for k, v in changes.items() if k in _COMPANY_FIELDS and v is not None}

        if "name" in fields:
            fields["name"] = require_non_empty(fields["name"], "Company name")
            if fields["name"] != existing.name:
                other = self._companies.get_by_name(fields["name"])
                if other and other.company_id != existing.company_id:
                    raise ConflictError("Company with this name already exists")

        self._companies.update(existing.company_id, fields=fields)
        return self.get(existing.company_id)

    def delete(self, company_id: int) -> None:
        existing = self.get(company_id)
        self._companies.delete_by_id(existing.company_id)
        logger.info("Company %s deleted", existing.company_id)


class RoleService:
    """Use case: manage company roles (role names are unique per company)."""

    def __init__(self, roles: RoleRepository, companies: CompanyRepository):
        self._roles = roles
        self._companies = companies

    def get(self, role_id: int) -> CompanyRole:
        role = self._roles.get_by_id(int(role_id))
        if not role:
            raise NotFoundError("Role not found")
        return role

    def list_for_company(self, company_id: int) -> Sequence[CompanyRole]:
        if not self._companies.get_by_id(int(company_id)):
            raise NotFoundError("Company not found")
        return self._roles.list_for_company(int(company_id))

    def create(self, *, company_id: int, name: str, description: Optional[str] = None) -> CompanyRole:
        name = require_non_empty(name, "Role name")
        company_id = require_id(company_id, "Company ID")

        if not self._companies.get_by_id(company_id):
            raise NotFoundError("Company not found")
        if self._roles.get_by_name(company_id=company_id, name=name):
            raise ConflictError("Role with this name already exists in this company")

        role_id = self._roles.create(company_id=company_id, name=name, description=description)
        logger.info("Role %s (%s) created for company %s", role_id, name, company_id)
        return self.get(role_id)

    def update(self, role_id: int, *, name: Optional[str] = None, description: Optional[str] = None) -> CompanyRole:
        role = self.get(role_id)
        fields: dict = {}
        if name is not None:
            name = require_non_empty(name, "Role name")
            other = self._roles.get_by_name(company_id=role.company_id, name=name)
            if other and other.role_id != role.role_id:
                raise ConflictError("Role with this name already exists in this company")
            fields["name"] = name
        if description is not None:
            fields["description"] = description

        self._roles.update(role.role_id, fields=fields)
        return self.get(role.role_id)

    def delete(self, role_id: int) -> None:
        role = self.get(role_id)
        self._roles.delete_by_id(role.role_id)
