from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import CompanyUserStatus
from .model import CompanyUser, User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

    def create_user(self, *, email: str, is_active: bool = True) -> int:
        raise NotImplementedError

    def update(self, user_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError


class CompanyUserRepository(Protocol):
    """Company memberships; reads join the role name."""

    def get_by_id(self, company_user_id: int) -> Optional[CompanyUser]:
        raise NotImplementedError

    def get_membership(self, *, user_id: int, company_id: int) -> Optional[CompanyUser]:
        raise NotImplementedError

    def list_for_company(self, company_id: int, *, active_only: bool = False) -> Sequence[CompanyUser]:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[CompanyUser]:
        raise NotImplementedError

    def list_all(self) -> Sequence[CompanyUser]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        company_id: int,
        role_id: Optional[int],
        first_name: Optional[str],
        middle_name: Optional[str],
        last_name: Optional[str],
        status: CompanyUserStatus,
        is_active: bool,
    ) -> int:
        raise NotImplementedError

    def update(self, company_user_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete_by_id(self, company_user_id: int) -> bool:
        raise NotImplementedError
