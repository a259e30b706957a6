import uuid
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from services.communications_service.models import (
    CommunicationStatus,
    CommunicationType,
    EmailDeliveryStatus,
    NotificationFrequency,
    NotificationPriority,
    ScheduledJobStatus,
    ScheduledJobType,
)

# ============================================================================
# NOTIFICATION SCHEMAS
# ============================================================================


class NotificationResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    type: str
    title: str
    message: str
    payload: Optional[dict[str, Any]] = None
    category: Optional[str] = None
    priority: NotificationPriority
    action_url: Optional[str] = None
    read: bool
    read_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    email_status: EmailDeliveryStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int


class NotificationPreferenceUpdate(BaseModel):
    in_app_enabled: Optional[bool] = None
    email_enabled: Optional[bool] = None
    frequency: Optional[NotificationFrequency] = None


class NotificationPreferenceResponse(BaseModel):
    id: uuid.UUID
    notification_type: str
    in_app_enabled: bool
    email_enabled: bool
    frequency: NotificationFrequency
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# COMMUNICATION SCHEMAS
# ============================================================================

Audience = Union[str, dict[str, Any], list[str], None]


class CommunicationCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=1)
    type: CommunicationType = CommunicationType.EMAIL
    target_audience: Audience = None
    send_at: Optional[datetime] = None


class CommunicationUpdate(BaseModel):
    subject: Optional[str] = Field(None, min_length=1, max_length=255)
    body: Optional[str] = Field(None, min_length=1)
    type: Optional[CommunicationType] = None
    target_audience: Audience = None


class CommunicationSchedule(BaseModel):
    send_at: datetime


class CommunicationResponse(BaseModel):
    id: uuid.UUID
    organization_id: Optional[uuid.UUID] = None
    created_by: Optional[uuid.UUID] = None
    subject: str
    body: str
    type: CommunicationType
    target_audience: Optional[str] = None
    status: CommunicationStatus
    send_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    recipient_count: int
    attempts: int
    last_error: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# SCHEDULED JOB SCHEMAS
# ============================================================================


class ScheduledJobCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: ScheduledJobType
    run_at: datetime
    payload: Optional[dict[str, Any]] = None
    max_attempts: Optional[int] = Field(None, ge=1, le=10)


class ScheduledJobResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    payload: Optional[dict[str, Any]] = None
    run_at: datetime
    status: ScheduledJobStatus
    attempts: int
    max_attempts: int
    last_run_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_error: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
