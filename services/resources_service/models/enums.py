"""Enum definitions for resources service models."""

import enum


class ResourceStatus(str, enum.Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class ResourceAssignmentType(str, enum.Enum):
    VOLUNTEER = "volunteer"
    EVENT = "event"


class ResourceAssignmentStatus(str, enum.Enum):
    ASSIGNED = "assigned"
    OVERDUE = "overdue"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class ReturnCondition(str, enum.Enum):
    GOOD = "good"
    FAIR = "fair"
    DAMAGED = "damaged"
