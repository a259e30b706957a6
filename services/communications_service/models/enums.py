"""Enum definitions for communications service models."""

import enum


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class EmailDeliveryStatus(str, enum.Enum):
    NOT_REQUESTED = "not_requested"
    SENT = "sent"
    FAILED = "failed"


class NotificationFrequency(str, enum.Enum):
    INSTANT = "instant"
    DAILY = "daily"
    WEEKLY = "weekly"


class CommunicationType(str, enum.Enum):
    EMAIL = "email"
    IN_APP = "in_app"


class CommunicationStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ScheduledJobType(str, enum.Enum):
    REMINDER = "reminder"
    COMMUNICATION = "communication"


class ScheduledJobStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
