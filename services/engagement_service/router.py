"""Achievement endpoints for volunteers, organizations and admins."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user, require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.engagement_service.models import (
    Achievement,
    AchievementProgress,
    UserAchievement,
)
from services.engagement_service.schemas import (
    AchievementCreate,
    AchievementGrant,
    AchievementProgressResponse,
    AchievementResponse,
    AchievementRevoke,
    AchievementUpdate,
    EvaluationRequest,
    EvaluationResult,
    UserAchievementResponse,
)
from services.engagement_service.services import (
    award_achievement,
    create_achievement,
    evaluate_for_user,
    get_achievement_or_404,
    revoke_achievement,
    update_achievement,
)
from services.organizations_service.permissions import org_manager_user
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["achievements"])


# ── Volunteer ───────────────────────────────────────────────────────


@router.get("/achievements", response_model=list[AchievementResponse])
async def list_achievements(
    organization_id: Optional[uuid.UUID] = None,
    db: AsyncSession = Depends(get_async_db),
):
    """Enabled achievements: global ones plus those of ``organization_id``."""
    query = select(Achievement).where(Achievement.is_enabled.is_(True))
    if organization_id:
        query = query.where(
            or_(
                Achievement.organization_id.is_(None),
                Achievement.organization_id == organization_id,
            )
        )
    else:
        query = query.where(Achievement.organization_id.is_(None))
    result = await db.execute(query.order_by(Achievement.points, Achievement.title))
    return result.scalars().all()


@router.get("/achievements/me", response_model=list[UserAchievementResponse])
async def my_achievements(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == current_user.id)
        .order_by(UserAchievement.granted_at.desc())
    )
    return result.scalars().all()


@router.get("/achievements/me/progress", response_model=list[AchievementProgressResponse])
async def my_progress(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(AchievementProgress).where(AchievementProgress.user_id == current_user.id)
    )
    return result.scalars().all()


@router.post("/achievements/me/evaluate", response_model=EvaluationResult)
async def evaluate_me(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return await evaluate_for_user(db, current_user.id)


# ── Organization ────────────────────────────────────────────────────


@router.post(
    "/organizations/{organization_id}/achievements",
    response_model=AchievementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_org_achievement(
    organization_id: uuid.UUID,
    data: AchievementCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_achievement(db, organization_id=organization_id, **data.model_dump())


# ── Admin ───────────────────────────────────────────────────────────


@router.post(
    "/admin/achievements",
    response_model=AchievementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_global_achievement(
    data: AchievementCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_achievement(db, **data.model_dump())


@router.patch("/admin/achievements/{achievement_id}", response_model=AchievementResponse)
async def edit_achievement(
    achievement_id: uuid.UUID,
    data: AchievementUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    achievement = await get_achievement_or_404(db, achievement_id)
    return await update_achievement(db, achievement, **data.model_dump(exclude_unset=True))


@router.post(
    "/admin/achievements/{achievement_id}/grant",
    response_model=UserAchievementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def grant(
    achievement_id: uuid.UUID,
    data: AchievementGrant,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    achievement = await get_achievement_or_404(db, achievement_id)
    return await award_achievement(
        db,
        data.user_id,
        achievement,
        granted_by=current_user.id,
        grant_reason=data.reason,
    )


@router.post("/admin/achievements/{achievement_id}/revoke", status_code=204)
async def revoke(
    achievement_id: uuid.UUID,
    data: AchievementRevoke,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await revoke_achievement(db, data.user_id, achievement_id, current_user.id, data.reason)


@router.post("/admin/achievements/evaluate", response_model=EvaluationResult)
async def evaluate_user(
    data: EvaluationRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Re-evaluate one user (defaults to the caller), optionally for one achievement."""
    return await evaluate_for_user(db, data.user_id or current_user.id, data.achievement_id)
