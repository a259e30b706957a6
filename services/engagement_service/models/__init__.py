"""Engagement Service models package."""

from services.engagement_service.models.core import (
    Achievement,
    AchievementProgress,
    Certificate,
    UserAchievement,
)
from services.engagement_service.models.enums import (
    AchievementRuleType,
    CertificateStatus,
)

__all__ = [
    "Achievement",
    "AchievementProgress",
    "AchievementRuleType",
    "Certificate",
    "CertificateStatus",
    "UserAchievement",
]
