"""Communications Service models package."""

from services.communications_service.models.core import (
    Communication,
    Notification,
    NotificationPreference,
    ScheduledJob,
)
from services.communications_service.models.enums import (
    CommunicationStatus,
    CommunicationType,
    EmailDeliveryStatus,
    NotificationFrequency,
    NotificationPriority,
    ScheduledJobStatus,
    ScheduledJobType,
)

__all__ = [
    "Communication",
    "CommunicationStatus",
    "CommunicationType",
    "EmailDeliveryStatus",
    "Notification",
    "NotificationFrequency",
    "NotificationPreference",
    "NotificationPriority",
    "ScheduledJob",
    "ScheduledJobStatus",
    "ScheduledJobType",
]
