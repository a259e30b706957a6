"""Notification inbox and delivery preference endpoints."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.communications_service.models import (
    NotificationPreference,
    NotificationPriority,
)
from services.communications_service.schemas import (
    MarkAllReadResponse,
    NotificationPreferenceResponse,
    NotificationPreferenceUpdate,
    NotificationResponse,
    UnreadCountResponse,
)
from services.communications_service.services.notifications import (
    get_unread_count,
    list_for_user_query,
    mark_all_as_read,
    mark_as_read,
    upsert_preference,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=Page[NotificationResponse])
async def list_my_notifications(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    category: Optional[str] = None,
    priority: Optional[NotificationPriority] = None,
    read: Optional[bool] = None,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_async_db),
):
    """Newest first. Expired notifications are hidden."""
    query = list_for_user_query(current_user.id, category, priority, read)
    rows, total = await paginate(db, query, params)
    return build_page([NotificationResponse.model_validate(n) for n in rows], total, params)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return {"unread": await get_unread_count(db, current_user.id)}


@router.post("/read-all", response_model=MarkAllReadResponse)
async def read_all(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return {"updated": await mark_all_as_read(db, current_user.id)}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def read_one(
    notification_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return await mark_as_read(db, current_user.id, notification_id)


# ── Preferences ─────────────────────────────────────────────────────


@router.get("/preferences", response_model=list[NotificationPreferenceResponse])
async def list_preferences(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Stored preferences only; types without a row are fully enabled."""
    result = await db.execute(
        select(NotificationPreference)
        .where(NotificationPreference.user_id == current_user.id)
        .order_by(NotificationPreference.notification_type)
    )
    return result.scalars().all()


@router.put(
    "/preferences/{notification_type}", response_model=NotificationPreferenceResponse
)
async def update_preference(
    notification_type: str,
    data: NotificationPreferenceUpdate,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return await upsert_preference(
        db, current_user.id, notification_type, **data.model_dump(exclude_unset=True)
    )
