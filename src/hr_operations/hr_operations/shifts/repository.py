from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from .model import Shift, ShiftAttribute


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def list(
        self,
        *,
        company_id: Optional[int] = None,
        created_by: Optional[int] = None,
        assigned_company_user_id: Optional[int] = None,
        shift_name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Sequence[Shift]:
        raise NotImplementedError

    def create_shift(self, *, company_id: int, created_by: int) -> int:
        raise NotImplementedError

    def update_shift(self, shift_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete_shift(self, shift_id: int) -> bool:
        raise NotImplementedError

    def create_attribute(
        self,
        *,
        shift_id: int,
        shift_name: str,
        start_time: time,
        end_time: time,
        break_duration: int,
        grace_period_minutes: int,
        description: Optional[str],
        color: Optional[str],
        is_active: bool = True,
    ) -> int:
        raise NotImplementedError

    def get_attribute(self, shift_attribute_id: int) -> Optional[ShiftAttribute]:
        raise NotImplementedError

    def update_attribute(self, shift_attribute_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete_attribute(self, shift_attribute_id: int) -> bool:
        raise NotImplementedError

    def add_assignment(self, *, shift_attribute_id: int, company_user_id: int) -> int:
        raise NotImplementedError

    def remove_assignments(self, *, shift_attribute_id: int, company_user_ids: Sequence[int]) -> int:
        raise NotImplementedError

    def get_active_assignment(self, *, company_user_id: int, company_id: int) -> Optional[ShiftAttribute]:
        """Active attribute most recently assigned to the member, within the company."""
        raise NotImplementedError
