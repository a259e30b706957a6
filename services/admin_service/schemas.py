import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class AuditLogResponse(BaseModel):
    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    action: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatusCounts(BaseModel):
    total: int
    by_status: dict[str, int]


class JobStatsResponse(BaseModel):
    scheduled_jobs: StatusCounts
    invite_send_jobs: StatusCounts


class DeliveryMetricsResponse(BaseModel):
    days: int
    total: int
    read: int
    unread: int
    email_sent: int
    email_failed: int
    read_rate: float


class HealthResponse(BaseModel):
    status: str
    database: dict[str, Any]
    checked_at: datetime


class DashboardSummary(BaseModel):
    users: int
    organizations: int
    pending_approvals: int
    pending_hours: int
    open_opportunities: int
