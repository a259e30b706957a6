import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from services.engagement_service.models import AchievementRuleType, CertificateStatus

# ============================================================================
# ACHIEVEMENTS
# ============================================================================


class AchievementBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    points: int = Field(0, ge=0)
    icon: Optional[str] = None
    rule_type: AchievementRuleType = AchievementRuleType.HOURS
    criteria: dict[str, Any] = Field(default_factory=dict)
    is_milestone: bool = False
    is_enabled: bool = True


class AchievementCreate(AchievementBase):
    key: Optional[str] = Field(None, max_length=100)


class AchievementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    points: Optional[int] = Field(None, ge=0)
    icon: Optional[str] = None
    criteria: Optional[dict[str, Any]] = None
    is_milestone: Optional[bool] = None
    is_enabled: Optional[bool] = None


class AchievementResponse(AchievementBase):
    id: uuid.UUID
    key: str
    organization_id: Optional[uuid.UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AchievementGrant(BaseModel):
    user_id: uuid.UUID
    reason: Optional[str] = None


class AchievementRevoke(BaseModel):
    user_id: uuid.UUID
    reason: Optional[str] = None


class UserAchievementResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    achievement_id: uuid.UUID
    granted_by: Optional[uuid.UUID] = None
    grant_reason: Optional[str] = None
    granted_at: datetime
    details: Optional[dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)


class AchievementProgressResponse(BaseModel):
    achievement_id: uuid.UUID
    current_value: float
    target_value: float
    percentage: int
    last_evaluated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EvaluationRequest(BaseModel):
    user_id: Optional[uuid.UUID] = None
    achievement_id: Optional[uuid.UUID] = None


class EvaluationResult(BaseModel):
    awarded: int
    updated: int


# ============================================================================
# CERTIFICATES
# ============================================================================


class CertificateCreate(BaseModel):
    user_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    hours: Optional[float] = Field(None, ge=0)


class CertificateRevoke(BaseModel):
    reason: str = Field(..., min_length=1)


class CertificateResponse(BaseModel):
    id: uuid.UUID
    verification_id: uuid.UUID
    user_id: uuid.UUID
    organization_id: uuid.UUID
    title: str
    description: Optional[str] = None
    hours: Optional[float] = None
    issued_by: Optional[uuid.UUID] = None
    issued_at: datetime
    status: CertificateStatus
    revoked_at: Optional[datetime] = None
    revocation_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CertificateVerification(BaseModel):
    valid: bool
    certificate: CertificateResponse
    revocation_reason: Optional[str] = None
