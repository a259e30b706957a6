"""Invite endpoints: organization-side management and invitee responses."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.common.rate_limit import public_limit
from libs.db.session import get_async_db
from services.organizations_service.models import InviteStatus, OrganizationInvite
from services.organizations_service.permissions import (
    get_organization_or_404,
    org_manager_user,
    org_team_user,
)
from services.organizations_service.schemas import (
    InviteCreate,
    InviteLookupResponse,
    InviteResponse,
    VolunteerMembershipResponse,
)
from services.organizations_service.services import (
    accept_invite,
    cancel_invite,
    create_invite,
    decline_invite,
    get_invite_by_token,
    get_invite_or_404,
    resend_invite,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["invites"])


# ── Organization side ───────────────────────────────────────────────


@router.post(
    "/organizations/{organization_id}/invites",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def invite_volunteer(
    organization_id: uuid.UUID,
    data: InviteCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Invite someone by email. The email is sent by the invite worker."""
    return await create_invite(
        db,
        organization_id,
        data.email,
        invited_by=current_user.id,
        role=data.role,
        message=data.message,
    )


@router.get(
    "/organizations/{organization_id}/invites", response_model=Page[InviteResponse]
)
async def list_invites(
    organization_id: uuid.UUID,
    status_filter: Optional[InviteStatus] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(OrganizationInvite).where(
        OrganizationInvite.organization_id == organization_id
    )
    if status_filter:
        query = query.where(OrganizationInvite.status == status_filter)
    rows, total = await paginate(
        db, query.order_by(OrganizationInvite.created_at.desc()), params
    )
    return build_page([InviteResponse.model_validate(i) for i in rows], total, params)


@router.post(
    "/organizations/{organization_id}/invites/{invite_id}/resend",
    response_model=InviteResponse,
)
async def resend(
    organization_id: uuid.UUID,
    invite_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    invite = await get_invite_or_404(db, invite_id, organization_id)
    return await resend_invite(db, invite)


@router.post(
    "/organizations/{organization_id}/invites/{invite_id}/cancel",
    response_model=InviteResponse,
)
async def cancel(
    organization_id: uuid.UUID,
    invite_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    invite = await get_invite_or_404(db, invite_id, organization_id)
    return await cancel_invite(db, invite)


# ── Invitee side ────────────────────────────────────────────────────


@router.get("/invites/{token}", response_model=InviteLookupResponse)
@public_limit
async def lookup_invite(
    request: Request, token: str, db: AsyncSession = Depends(get_async_db)
):
    """Public view of an invite, used by the accept page."""
    invite = await get_invite_by_token(db, token)
    organization = await get_organization_or_404(db, invite.organization_id)
    return InviteLookupResponse(
        organization_id=organization.id,
        organization_name=organization.name,
        email=invite.email,
        role=invite.role,
        status=invite.status,
        expires_at=invite.expires_at,
        is_valid=invite.is_valid(),
    )


@router.post("/invites/{token}/accept", response_model=VolunteerMembershipResponse)
async def accept(
    token: str,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return await accept_invite(db, token, current_user)


@router.post("/invites/{token}/decline", response_model=InviteResponse)
async def decline(token: str, db: AsyncSession = Depends(get_async_db)):
    return await decline_invite(db, token)
