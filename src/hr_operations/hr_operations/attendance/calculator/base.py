from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...shifts.model import ShiftAttribute


@dataclass(frozen=True)
class PunchHours:
    work_hours: float
    overtime: float


class WorkHoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked time / overtime)."""

    @abstractmethod
    def compute(
        self,
        *,
        punch_in: datetime,
        punch_out: datetime,
        shift: Optional[ShiftAttribute],
        non_working_day: bool = False,
    ) -> PunchHours:
        raise NotImplementedError
