from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import CompanyUserStatus


@dataclass(frozen=True)
class User:
    """Platform account. Company-scoped data hangs off CompanyUser."""

    user_id: int
    email: str
    is_active: bool = True


@dataclass(frozen=True)
class CompanyUser:
    """Membership of a user in a company, with the role used by leave policies."""

    company_user_id: int
    user_id: int
    company_id: int
    role_id: Optional[int]
    role_name: Optional[str]
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    status: CompanyUserStatus = CompanyUserStatus.PENDING
    is_active: bool = True
