from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from .model import CompanyOff, OffDay


class CompanyOffRepository(Protocol):
    def get_by_id(self, company_off_id: int) -> Optional[CompanyOff]:
        raise NotImplementedError

    def get_for_company(self, company_id: int) -> Optional[CompanyOff]:
        raise NotImplementedError

    def list(self, *, company_id: Optional[int], page: int, limit: int) -> tuple[Sequence[CompanyOff], int]:
        raise NotImplementedError

    def create(self, *, company_id: int, week_days: Iterable[int], description: Optional[str]) -> int:
        raise NotImplementedError

    def update(self, company_off_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete_by_id(self, company_off_id: int) -> bool:
        raise NotImplementedError


class OffDayRepository(Protocol):
    def get_by_id(self, off_day_id: int) -> Optional[OffDay]:
        raise NotImplementedError

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        company_user_id: Optional[int] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> Sequence[OffDay]:
        """Off days overlapping [from_date, to_date]; open ends are unbounded."""
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: int,
        company_off_id: int,
        created_by: int,
        name: str,
        holiday_type: str,
        from_date: date,
        to_date: date,
        start_time: Optional[str],
        end_time: Optional[str],
        description: Optional[str],
    ) -> int:
        raise NotImplementedError

    def update(self, off_day_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete_by_id(self, off_day_id: int) -> bool:
        raise NotImplementedError

    def replace_users(self, off_day_id: int, company_user_ids: Sequence[int]) -> None:
        raise NotImplementedError

    def find_company_wide(self, *, company_id: int, day: date) -> Optional[OffDay]:
        raise NotImplementedError

    def find_for_member(self, *, company_id: int, company_user_id: int, day: date) -> Optional[OffDay]:
        raise NotImplementedError
