import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.events_service.models import (
    ApplicationStatus,
    OpportunityStatus,
    OpportunityVisibility,
)

# ============================================================================
# EVENT SCHEMAS
# ============================================================================


class EventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    start_at: datetime
    end_at: Optional[datetime] = None
    capacity: int = Field(0, ge=0)


class EventCreate(EventBase):
    pass


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    capacity: Optional[int] = Field(None, ge=0)
    is_published: Optional[bool] = None


class EventResponse(EventBase):
    id: uuid.UUID
    organization_id: uuid.UUID
    is_published: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# OPPORTUNITY SCHEMAS
# ============================================================================


class OpportunityBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    event_id: Optional[uuid.UUID] = None
    capacity: int = Field(0, ge=0)
    start_at: datetime
    end_at: Optional[datetime] = None
    visibility: OpportunityVisibility = OpportunityVisibility.PUBLIC


class OpportunityCreate(OpportunityBase):
    pass


class OpportunityUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    event_id: Optional[uuid.UUID] = None
    capacity: Optional[int] = Field(None, ge=0)
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    visibility: Optional[OpportunityVisibility] = None


class OpportunityPublish(BaseModel):
    publish: bool = True


class OpportunityResponse(OpportunityBase):
    id: uuid.UUID
    organization_id: uuid.UUID
    slug: str
    status: OpportunityStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# APPLICATION SCHEMAS
# ============================================================================


class ApplicationCreate(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None


class ApplicationBulkUpdate(BaseModel):
    ids: list[uuid.UUID] = Field(..., min_length=1)
    status: ApplicationStatus
    notes: Optional[str] = None


class BulkError(BaseModel):
    id: str
    error: str


class ApplicationBulkResult(BaseModel):
    updated: list[str]
    errors: list[BulkError]


class ApplicationResponse(BaseModel):
    id: uuid.UUID
    opportunity_id: uuid.UUID
    user_id: uuid.UUID
    status: ApplicationStatus
    applied_at: datetime
    responded_at: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
