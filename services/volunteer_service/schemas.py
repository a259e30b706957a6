"""Pydantic schemas for the Volunteer Service."""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.volunteer_service.models import AssignmentStatus, HoursStatus

# ============================================================================
# SHIFT SCHEMAS
# ============================================================================


class ShiftBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    event_id: Optional[uuid.UUID] = None
    start_at: datetime
    end_at: datetime
    capacity: int = Field(0, ge=0)
    location: Optional[str] = None


class ShiftCreate(ShiftBase):
    pass


class RecurringShiftCreate(ShiftBase):
    recurrence_rule: str = Field(..., examples=["DAILY", "WEEKLY:MON,WED", "MONTHLY:1,15"])
    until: datetime
    template_name: Optional[str] = None


class ShiftUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    capacity: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None


class ShiftResponse(ShiftBase):
    id: uuid.UUID
    organization_id: uuid.UUID
    is_recurring: bool
    recurrence_rule: Optional[str] = None
    template_name: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ShiftTaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    required_volunteers: int = Field(1, ge=1)


class ShiftTaskResponse(ShiftTaskCreate):
    id: uuid.UUID
    shift_id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# ASSIGNMENT SCHEMAS
# ============================================================================


class AssignmentCreate(BaseModel):
    user_id: uuid.UUID
    task_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None


class BulkAssignmentCreate(BaseModel):
    user_ids: list[uuid.UUID] = Field(..., min_length=1)
    task_id: Optional[uuid.UUID] = None


class AssignmentStatusUpdate(BaseModel):
    status: AssignmentStatus


class AssignmentResponse(BaseModel):
    id: uuid.UUID
    shift_id: uuid.UUID
    task_id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    assigned_by: Optional[uuid.UUID] = None
    status: AssignmentStatus
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    hours: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BulkAssignmentError(BaseModel):
    user_id: str
    error: str


class BulkAssignmentResult(BaseModel):
    created: list[AssignmentResponse]
    errors: list[BulkAssignmentError]


class ConflictCheckRequest(BaseModel):
    user_id: uuid.UUID
    start_at: datetime
    end_at: datetime


class ConflictingShift(BaseModel):
    id: uuid.UUID
    title: str
    start_at: datetime
    end_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConflictCheckResponse(BaseModel):
    has_conflict: bool
    conflicts: list[ConflictingShift]
    message: str


# ============================================================================
# HOURS SCHEMAS
# ============================================================================


class HoursCreate(BaseModel):
    organization_id: uuid.UUID
    event_id: Optional[uuid.UUID] = None
    date: date
    hours: float = Field(..., gt=0, le=24)
    notes: Optional[str] = None


class HoursApprove(BaseModel):
    notes: Optional[str] = None


class HoursReject(BaseModel):
    reason: Optional[str] = None


class HoursBulkApprove(BaseModel):
    ids: list[uuid.UUID] = Field(..., min_length=1)


class HoursBulkApproveResponse(BaseModel):
    approved_count: int


class HoursResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: uuid.UUID
    event_id: Optional[uuid.UUID] = None
    shift_assignment_id: Optional[uuid.UUID] = None
    date: date
    hours: float
    status: HoursStatus
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrganizationHours(BaseModel):
    organization_id: uuid.UUID
    hours: float


class HoursSummaryResponse(BaseModel):
    user_id: uuid.UUID
    approved_hours: float
    pending_hours: float
    rejected_hours: float
    by_organization: list[OrganizationHours]
