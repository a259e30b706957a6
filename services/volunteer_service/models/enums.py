"""Enum definitions for volunteer service models."""

import enum


class AssignmentStatus(str, enum.Enum):
    ASSIGNED = "assigned"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"


class HoursStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
