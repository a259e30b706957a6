"""
Achievement evaluation.

``evaluate_for_user`` checks every enabled achievement the user has not yet
earned against its rule and awards the ones that are met. Milestone
achievements that are not met yet get their progress recorded instead.
"""

import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional

from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from services.admin_service.services import record_audit
from services.communications_service.services import create_notification
from services.compliance_service.models import ComplianceDocument, DocumentStatus
from services.engagement_service.models import (
    Achievement,
    AchievementProgress,
    AchievementRuleType,
    UserAchievement,
)
from services.users_service.models import User
from services.volunteer_service.models import (
    AssignmentStatus,
    HoursStatus,
    Shift,
    ShiftAssignment,
    VolunteerHour,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass
class RuleResult:
    earned: bool
    current: Optional[float] = None
    target: Optional[float] = None
    metadata: dict[str, Any] = field(default_factory=dict)


def _criterion(criteria: dict, key: str, legacy_key: str) -> Any:
    """Criteria keys are camelCase; older rows used snake_case."""
    value = criteria.get(key)
    return value if value is not None else criteria.get(legacy_key)


def _criteria_org(achievement: Achievement) -> Optional[uuid.UUID]:
    criteria = achievement.criteria or {}
    value = _criterion(criteria, "organizationId", "organization_id") or achievement.organization_id
    return uuid.UUID(str(value)) if value else None


def _criteria_window(achievement: Achievement) -> Optional[int]:
    value = _criterion(achievement.criteria or {}, "withinDays", "within_days")
    return int(value) if value else None


# ── Rules ───────────────────────────────────────────────────────────


async def _hours_rule(db: AsyncSession, user_id: uuid.UUID, achievement: Achievement) -> RuleResult:
    criteria = achievement.criteria or {}
    threshold = float(criteria.get("threshold") or 0)
    query = select(func.coalesce(func.sum(VolunteerHour.hours), 0)).where(
        VolunteerHour.user_id == user_id,
        VolunteerHour.status == HoursStatus.APPROVED,
    )
    organization_id = _criteria_org(achievement)
    if organization_id:
        query = query.where(VolunteerHour.organization_id == organization_id)
    within_days = _criteria_window(achievement)
    if within_days:
        cutoff = utc_now().date() - timedelta(days=within_days)
        query = query.where(VolunteerHour.date >= cutoff)

    total = float((await db.execute(query)).scalar() or 0)
    return RuleResult(
        earned=total >= threshold,
        current=total,
        target=threshold,
        metadata={"total_hours": total, "threshold": threshold},
    )


async def _events_rule(db: AsyncSession, user_id: uuid.UUID, achievement: Achievement) -> RuleResult:
    """Completed shift assignments count as events attended."""
    criteria = achievement.criteria or {}
    threshold = float(criteria.get("threshold") or 0)
    query = select(func.count(ShiftAssignment.id)).where(
        ShiftAssignment.user_id == user_id,
        ShiftAssignment.status == AssignmentStatus.COMPLETED,
    )
    organization_id = _criteria_org(achievement)
    if organization_id:
        query = query.join(Shift, Shift.id == ShiftAssignment.shift_id).where(
            Shift.organization_id == organization_id
        )
    within_days = _criteria_window(achievement)
    if within_days:
        cutoff = utc_now() - timedelta(days=within_days)
        query = query.where(ShiftAssignment.checked_out_at >= cutoff)

    total = (await db.execute(query)).scalar() or 0
    return RuleResult(
        earned=total >= threshold,
        current=total,
        target=threshold,
        metadata={"total_events": total, "threshold": threshold},
    )


def _month_index(year: int, month: int) -> int:
    return year * 12 + month - 1


def longest_monthly_streak(monthly: dict[int, float], min_hours: float) -> int:
    """Longest run of consecutive months each with at least ``min_hours``."""
    qualifying = sorted(month for month, hours in monthly.items() if hours >= min_hours)
    longest = run = 0
    previous = None
    for month in qualifying:
        run = run + 1 if previous is not None and month == previous + 1 else 1
        longest = max(longest, run)
        previous = month
    return longest


async def _frequency_rule(
    db: AsyncSession, user_id: uuid.UUID, achievement: Achievement
) -> RuleResult:
    """Longest streak of consecutive months, anywhere in the history, meeting the hours minimum."""
    criteria = achievement.criteria or {}
    required = int(criteria.get("consecutiveMonths") or 3)
    min_hours = float(criteria.get("minHoursPerMonth") or 1)

    rows = (
        await db.execute(
            select(VolunteerHour.date, VolunteerHour.hours).where(
                VolunteerHour.user_id == user_id,
                VolunteerHour.status == HoursStatus.APPROVED,
            )
        )
    ).all()

    monthly: dict[int, float] = {}
    for day, hours in rows:
        key = _month_index(day.year, day.month)
        monthly[key] = monthly.get(key, 0.0) + float(hours or 0)

    streak = longest_monthly_streak(monthly, min_hours)
    return RuleResult(
        earned=streak >= required,
        current=streak,
        target=required,
        metadata={"max_consecutive_months": streak, "required_months": required},
    )


async def _certification_rule(
    db: AsyncSession, user_id: uuid.UUID, achievement: Achievement
) -> RuleResult:
    required = list((achievement.criteria or {}).get("requiredCertifications") or [])
    if not required:
        return RuleResult(earned=False)

    held = set(
        (
            await db.execute(
                select(ComplianceDocument.doc_type).where(
                    ComplianceDocument.user_id == user_id,
                    ComplianceDocument.status.in_(
                        (DocumentStatus.VERIFIED, DocumentStatus.EXPIRING)
                    ),
                )
            )
        ).scalars()
    )
    held_values = {doc_type.value for doc_type in held}
    return RuleResult(
        earned=all(cert in held_values for cert in required),
        metadata={"required": required, "held": sorted(held_values)},
    )


async def _evaluate_rule(
    db: AsyncSession, user_id: uuid.UUID, achievement: Achievement
) -> RuleResult:
    rule_type = achievement.rule_type
    if rule_type == AchievementRuleType.CUSTOM:
        logger.warning(f"Custom rule for achievement {achievement.id} is not evaluated automatically")
        return RuleResult(earned=False)

    rules = {
        AchievementRuleType.HOURS: _hours_rule,
        AchievementRuleType.EVENTS: _events_rule,
        AchievementRuleType.FREQUENCY: _frequency_rule,
        AchievementRuleType.CERTIFICATION: _certification_rule,
    }
    rule = rules.get(rule_type)
    if rule is None:
        # Legacy rows name the rule in criteria.type
        fallback = (achievement.criteria or {}).get("type")
        rule = {"hours": _hours_rule, "events": _events_rule}.get(fallback)
    if rule is None:
        return RuleResult(earned=False)
    return await rule(db, user_id, achievement)


# ── Awarding ────────────────────────────────────────────────────────


async def get_achievement_or_404(db: AsyncSession, achievement_id: uuid.UUID) -> Achievement:
    achievement = await db.get(Achievement, achievement_id)
    if achievement is None:
        raise NotFoundError("Achievement not found")
    return achievement


async def _get_user_achievement(
    db: AsyncSession, user_id: uuid.UUID, achievement_id: uuid.UUID
) -> Optional[UserAchievement]:
    result = await db.execute(
        select(UserAchievement).where(
            UserAchievement.user_id == user_id,
            UserAchievement.achievement_id == achievement_id,
        )
    )
    return result.scalar_one_or_none()


async def award_achievement(
    db: AsyncSession,
    user_id: uuid.UUID,
    achievement: Achievement,
    metadata: Optional[dict] = None,
    granted_by: Optional[uuid.UUID] = None,
    grant_reason: Optional[str] = None,
) -> UserAchievement:
    """Grant ``achievement``; returns the existing row when already earned."""
    existing = await _get_user_achievement(db, user_id, achievement.id)
    if existing is not None:
        logger.info(f"Achievement {achievement.id} already awarded to user {user_id}")
        return existing

    achievement_id, title = achievement.id, achievement.title
    user_achievement = UserAchievement(
        user_id=user_id,
        achievement_id=achievement_id,
        granted_by=granted_by,
        grant_reason=grant_reason,
        granted_at=utc_now(),
        details=metadata,
    )
    db.add(user_achievement)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        return await _get_user_achievement(db, user_id, achievement_id)

    await create_notification(
        db,
        user_id,
        type="achievement_earned",
        title="Achievement Unlocked!",
        message=f'You\'ve earned the "{title}" achievement!',
        payload={"achievement_id": str(achievement_id)},
        category="achievements",
        action_url="/volunteer/achievements",
    )
    await record_audit(
        db,
        granted_by or user_id,
        "achievement_granted" if granted_by else "achievement_earned",
        "achievement",
        achievement_id,
        {
            "recipient_user_id": str(user_id),
            "achievement_title": title,
            "grant_reason": grant_reason,
            "automatic": granted_by is None,
        },
    )
    await db.commit()
    await db.refresh(user_achievement)
    logger.info(f"Achievement {achievement_id} awarded to user {user_id}")
    return user_achievement


async def revoke_achievement(
    db: AsyncSession,
    user_id: uuid.UUID,
    achievement_id: uuid.UUID,
    revoked_by: uuid.UUID,
    reason: Optional[str] = None,
) -> None:
    user_achievement = await _get_user_achievement(db, user_id, achievement_id)
    if user_achievement is None:
        raise NotFoundError("User has not earned this achievement")
    await record_audit(
        db,
        revoked_by,
        "achievement_revoked",
        "achievement",
        achievement_id,
        {"recipient_user_id": str(user_id), "reason": reason},
    )
    await db.delete(user_achievement)
    await db.commit()


async def update_progress(
    db: AsyncSession,
    user_id: uuid.UUID,
    achievement_id: uuid.UUID,
    current: float,
    target: float,
) -> AchievementProgress:
    percentage = min(round(current / target * 100), 100) if target else 0
    result = await db.execute(
        select(AchievementProgress).where(
            AchievementProgress.user_id == user_id,
            AchievementProgress.achievement_id == achievement_id,
        )
    )
    progress = result.scalar_one_or_none()
    if progress is None:
        progress = AchievementProgress(user_id=user_id, achievement_id=achievement_id)
        db.add(progress)
    progress.current_value = current
    progress.target_value = target
    progress.percentage = percentage
    progress.last_evaluated_at = utc_now()
    await db.commit()
    return progress


async def evaluate_for_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    achievement_id: Optional[uuid.UUID] = None,
) -> dict[str, int]:
    """Returns ``{"awarded": n, "updated": m}``."""
    query = select(Achievement.id).where(Achievement.is_enabled.is_(True))
    if achievement_id is not None:
        query = query.where(Achievement.id == achievement_id)
    achievement_ids = list((await db.execute(query)).scalars().all())

    earned_ids = set(
        (
            await db.execute(
                select(UserAchievement.achievement_id).where(
                    UserAchievement.user_id == user_id
                )
            )
        ).scalars()
    )

    awarded = updated = 0
    for candidate_id in achievement_ids:
        if candidate_id in earned_ids:
            continue
        achievement = await db.get(Achievement, candidate_id)
        result = await _evaluate_rule(db, user_id, achievement)
        if result.earned:
            await award_achievement(db, user_id, achievement, metadata=result.metadata)
            awarded += 1
        elif achievement.is_milestone and result.target:
            await update_progress(db, user_id, achievement.id, result.current, result.target)
            updated += 1

    logger.info(f"Evaluated achievements for user {user_id}: {awarded} awarded, {updated} updated")
    return {"awarded": awarded, "updated": updated}


async def evaluate_all_users(db: AsyncSession) -> dict[str, int]:
    """Nightly sweep over every enabled account; one user's failure does not stop the rest."""
    user_ids = list(
        (await db.execute(select(User.id).where(User.is_disabled.is_(False)))).scalars()
    )
    totals = {"users": 0, "awarded": 0, "updated": 0, "failed": 0}
    for user_id in user_ids:
        try:
            result = await evaluate_for_user(db, user_id)
        except Exception as e:
            await db.rollback()
            logger.error(f"Achievement evaluation failed for user {user_id}: {e}")
            totals["failed"] += 1
            continue
        totals["users"] += 1
        totals["awarded"] += result["awarded"]
        totals["updated"] += result["updated"]
    return totals
