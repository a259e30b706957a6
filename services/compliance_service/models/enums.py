"""Enum definitions for compliance service models."""

import enum


class DocumentType(str, enum.Enum):
    WWCC = "wwcc"
    POLICE_CHECK = "police_check"
    FIRST_AID = "first_aid"
    INSURANCE = "insurance"
    OTHER = "other"


class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    REJECTED = "rejected"


class BackgroundCheckStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    CLEARED = "cleared"
    FAILED = "failed"


class EnforcementLevel(str, enum.Enum):
    """When a mandatory requirement blocks a volunteer."""

    ONBOARDING = "onboarding"
    SIGNUP = "signup"
    CHECKIN = "checkin"
