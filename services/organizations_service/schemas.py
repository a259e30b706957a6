import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from services.organizations_service.models import (
    InviteSendStatus,
    InviteStatus,
    MembershipStatus,
    OrganizationStatus,
    TeamRole,
)

# ============================================================================
# ORGANIZATION SCHEMAS
# ============================================================================


class OrganizationBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    timezone: str = "Australia/Sydney"
    public_profile: bool = True
    auto_approve_volunteers: bool = False


class OrganizationCreate(OrganizationBase):
    pass


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    timezone: Optional[str] = None
    public_profile: Optional[bool] = None
    auto_approve_volunteers: Optional[bool] = None


class OrganizationResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    timezone: str
    status: OrganizationStatus
    is_approved: bool
    is_active: bool
    public_profile: bool
    auto_approve_volunteers: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApprovalDecision(BaseModel):
    reason: Optional[str] = None


# ============================================================================
# TEAM & VOLUNTEER SCHEMAS
# ============================================================================


class TeamMemberCreate(BaseModel):
    user_id: uuid.UUID
    role: TeamRole = TeamRole.MEMBER


class TeamMemberResponse(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    user_id: uuid.UUID
    role: TeamRole
    is_active: bool
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VolunteerMembershipResponse(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    user_id: uuid.UUID
    status: MembershipStatus
    role: str
    notes: Optional[str] = None
    joined_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VolunteerStatusUpdate(BaseModel):
    status: MembershipStatus
    notes: Optional[str] = None


# ============================================================================
# INVITE SCHEMAS
# ============================================================================


class InviteCreate(BaseModel):
    email: EmailStr
    role: str = "volunteer"
    message: Optional[str] = Field(None, max_length=2000)


class InviteResponse(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    email: str
    role: str
    status: InviteStatus
    message: Optional[str] = None
    invited_by: Optional[uuid.UUID] = None
    expires_at: datetime
    responded_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InviteLookupResponse(BaseModel):
    """What an invitee sees when opening the accept link."""

    organization_id: uuid.UUID
    organization_name: str
    email: str
    role: str
    status: InviteStatus
    expires_at: datetime
    is_valid: bool


class InviteSendJobResponse(BaseModel):
    id: uuid.UUID
    invite_id: uuid.UUID
    status: InviteSendStatus
    attempts: int
    next_attempt_at: Optional[datetime] = None
    last_error: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InviteSendJobStats(BaseModel):
    total: int
    by_status: dict[str, int]
    success_rate: float
    avg_attempts: float


class RetryAllResponse(BaseModel):
    requeued: int
