import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.compliance_service.models import (
    BackgroundCheckStatus,
    DocumentStatus,
    DocumentType,
    EnforcementLevel,
)

# ============================================================================
# DOCUMENTS
# ============================================================================


class DocumentCreate(BaseModel):
    doc_type: DocumentType
    state: Optional[str] = Field(None, max_length=8)
    document_number: Optional[str] = Field(None, max_length=64)
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    organization_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None


class DocumentReject(BaseModel):
    reason: str = Field(..., min_length=1)


class DocumentResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: Optional[uuid.UUID] = None
    doc_type: DocumentType
    state: Optional[str] = None
    document_number: Optional[str] = None
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    status: DocumentStatus
    notes: Optional[str] = None
    verified_by: Optional[uuid.UUID] = None
    verified_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# BACKGROUND CHECKS
# ============================================================================


class BackgroundCheckCreate(BaseModel):
    check_type: str = "police_check"
    provider: Optional[str] = None
    organization_id: Optional[uuid.UUID] = None


class BackgroundCheckUpdate(BaseModel):
    status: BackgroundCheckStatus
    result: Optional[str] = None


class BackgroundCheckResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: Optional[uuid.UUID] = None
    check_type: str
    provider: Optional[str] = None
    status: BackgroundCheckStatus
    requested_at: datetime
    completed_at: Optional[datetime] = None
    result: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# VALIDATION
# ============================================================================


class WWCCValidationRequest(BaseModel):
    number: str
    state: str


class ABNValidationRequest(BaseModel):
    abn: str


class MobileValidationRequest(BaseModel):
    phone: str


class ValidationResponse(BaseModel):
    valid: bool
    message: Optional[str] = None
    formatted: Optional[str] = None


class ExpiryCheckResponse(BaseModel):
    expiring: int
    expired: int
    overdue_checks: int


# ============================================================================
# REQUIREMENTS
# ============================================================================


class RequirementCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    doc_type: DocumentType
    description: Optional[str] = None
    is_mandatory: bool = True
    enforcement_level: EnforcementLevel = EnforcementLevel.CHECKIN
    opportunity_id: Optional[uuid.UUID] = None


class RequirementUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    doc_type: Optional[DocumentType] = None
    description: Optional[str] = None
    is_mandatory: Optional[bool] = None
    enforcement_level: Optional[EnforcementLevel] = None
    opportunity_id: Optional[uuid.UUID] = None


class RequirementResponse(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    opportunity_id: Optional[uuid.UUID] = None
    name: str
    doc_type: DocumentType
    description: Optional[str] = None
    is_mandatory: bool
    enforcement_level: EnforcementLevel
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RequirementCheckResponse(BaseModel):
    compliant: bool
    missing: list[RequirementResponse]
