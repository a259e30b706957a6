"""Admin endpoints for user accounts."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.admin_service.services import record_audit
from services.users_service.models import User
from services.users_service.schemas import UserResponse
from services.users_service.services import get_user_or_404, set_admin, set_disabled
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/users", tags=["admin-users"])


@router.get("/", response_model=Page[UserResponse])
async def list_users(
    q: Optional[str] = None,
    is_disabled: Optional[bool] = None,
    is_admin: Optional[bool] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List users with optional search and flags."""
    query = select(User)
    if q:
        term = f"%{q.lower()}%"
        query = query.where(
            or_(
                User.email.ilike(term),
                User.first_name.ilike(term),
                User.last_name.ilike(term),
            )
        )
    if is_disabled is not None:
        query = query.where(User.is_disabled.is_(is_disabled))
    if is_admin is not None:
        query = query.where(User.is_admin.is_(is_admin))

    rows, total = await paginate(db, query.order_by(User.created_at.desc()), params)
    return build_page([UserResponse.model_validate(u) for u in rows], total, params)


@router.post("/{user_id}/disable", response_model=UserResponse)
async def disable_user(
    user_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    user = await get_user_or_404(db, user_id)
    await record_audit(db, current_user.id, "user_disabled", "user", user.id)
    return await set_disabled(db, user, True)


@router.post("/{user_id}/enable", response_model=UserResponse)
async def enable_user(
    user_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    user = await get_user_or_404(db, user_id)
    await record_audit(db, current_user.id, "user_enabled", "user", user.id)
    return await set_disabled(db, user, False)


@router.post("/{user_id}/grant-admin", response_model=UserResponse)
async def grant_admin(
    user_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    user = await get_user_or_404(db, user_id)
    await record_audit(db, current_user.id, "admin_granted", "user", user.id)
    return await set_admin(db, user, True)


@router.post("/{user_id}/revoke-admin", response_model=UserResponse)
async def revoke_admin(
    user_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    user = await get_user_or_404(db, user_id)
    await record_audit(db, current_user.id, "admin_revoked", "user", user.id)
    return await set_admin(db, user, False)
