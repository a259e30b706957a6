"""Business logic for the Engagement Service."""

from services.engagement_service.services.achievements import (
    create_achievement,
    update_achievement,
)
from services.engagement_service.services.certificates import (
    get_certificate_or_404,
    issue_certificate,
    revoke_certificate,
    verify_certificate,
)
from services.engagement_service.services.evaluation import (
    award_achievement,
    evaluate_all_users,
    evaluate_for_user,
    get_achievement_or_404,
    revoke_achievement,
)

__all__ = [
    "award_achievement",
    "create_achievement",
    "evaluate_all_users",
    "evaluate_for_user",
    "get_achievement_or_404",
    "get_certificate_or_404",
    "issue_certificate",
    "revoke_achievement",
    "revoke_certificate",
    "update_achievement",
    "verify_certificate",
]
