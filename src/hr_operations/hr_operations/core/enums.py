from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Status of a punch and final status of an attendance day."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    ON_LEAVE = "ON_LEAVE"
    HALF_DAY = "HALF_DAY"
    LATE = "LATE"
    EARLY_LEAVE = "EARLY_LEAVE"


class PunchType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class LeaveStatus(str, Enum):
    """Leave request workflow states."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    IN_REVIEW = "IN_REVIEW"


class CompanyUserStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class EligibilityReason(str, Enum):
    """Why the eligibility gate allowed or denied a punch (first match wins)."""

    ON_LEAVE = "ON_LEAVE"
    COMPANY_OFF_DAY = "COMPANY_OFF_DAY"
    USER_SPECIFIC_OFF_DAY = "USER_SPECIFIC_OFF_DAY"
    WEEKLY_COMPANY_OFF = "WEEKLY_COMPANY_OFF"
    ELIGIBLE_FOR_PUNCH = "ELIGIBLE_FOR_PUNCH"
