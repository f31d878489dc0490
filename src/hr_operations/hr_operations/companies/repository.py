from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Company, CompanyRole


class CompanyRepository(Protocol):
    def get_by_id(self, company_id: int) -> Optional[Company]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Company]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Company]:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        email: Optional[str],
        phone: Optional[str],
        address: Optional[str],
        is_active: bool = True,
    ) -> int:
        raise NotImplementedError

    def update(self, company_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete_by_id(self, company_id: int) -> bool:
        raise NotImplementedError


class RoleRepository(Protocol):
    def get_by_id(self, role_id: int) -> Optional[CompanyRole]:
        raise NotImplementedError

    def get_by_name(self, *, company_id: int, name: str) -> Optional[CompanyRole]:
        raise NotImplementedError

    def list_for_company(self, company_id: int) -> Sequence[CompanyRole]:
        raise NotImplementedError

    def create(self, *, company_id: int, name: str, description: Optional[str]) -> int:
        raise NotImplementedError

    def update(self, role_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete_by_id(self, role_id: int) -> bool:
        raise NotImplementedError
