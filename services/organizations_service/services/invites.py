"""Organization invite lifecycle: create, resend, accept, decline, cancel."""

import secrets
import uuid
from datetime import timedelta
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from libs.common.logging import get_logger
from services.organizations_service.models import (
    InviteStatus,
    MembershipStatus,
    OrganizationInvite,
    OrganizationVolunteer,
)
from services.organizations_service.permissions import get_organization_or_404
from services.organizations_service.services.invite_sender import enqueue_invite_send
from services.users_service.models import User
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def generate_token() -> str:
    return secrets.token_hex(32)


def _expiry():
    return utc_now() + timedelta(days=get_settings().INVITE_EXPIRY_DAYS)


async def _find_membership(
    db: AsyncSession, organization_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[OrganizationVolunteer]:
    result = await db.execute(
        select(OrganizationVolunteer).where(
            OrganizationVolunteer.organization_id == organization_id,
            OrganizationVolunteer.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def create_invite(
    db: AsyncSession,
    organization_id: uuid.UUID,
    email: str,
    invited_by: Optional[uuid.UUID],
    role: str = "volunteer",
    message: Optional[str] = None,
) -> OrganizationInvite:
    await get_organization_or_404(db, organization_id)
    email = email.strip().lower()

    user = (
        await db.execute(select(User).where(func.lower(User.email) == email))
    ).scalar_one_or_none()
    if user is not None:
        membership = await _find_membership(db, organization_id, user.id)
        if membership is not None and membership.status in (
            MembershipStatus.ACTIVE,
            MembershipStatus.PENDING,
        ):
            raise ConflictError("User is already a volunteer of this organization")

    pending = (
        await db.execute(
            select(OrganizationInvite).where(
                OrganizationInvite.organization_id == organization_id,
                func.lower(OrganizationInvite.email) == email,
                OrganizationInvite.status == InviteStatus.PENDING,
            )
        )
    ).scalars().all()
    if any(invite.is_valid() for invite in pending):
        raise ConflictError("An active invite already exists for this email")

    invite = OrganizationInvite(
        organization_id=organization_id,
        email=email,
        role=role,
        message=message,
        token=generate_token(),
        status=InviteStatus.PENDING,
        invited_by=invited_by,
        expires_at=_expiry(),
    )
    db.add(invite)
    await db.commit()
    await db.refresh(invite)

    await enqueue_invite_send(db, invite.id)
    logger.info(f"Invite {invite.id} created for organization {organization_id}")
    return invite


async def get_invite_or_404(
    db: AsyncSession, invite_id: uuid.UUID, organization_id: Optional[uuid.UUID] = None
) -> OrganizationInvite:
    invite = await db.get(OrganizationInvite, invite_id)
    if invite is None or (
        organization_id is not None and invite.organization_id != organization_id
    ):
        raise NotFoundError("Invite not found")
    return invite


async def get_invite_by_token(db: AsyncSession, token: str) -> OrganizationInvite:
    result = await db.execute(
        select(OrganizationInvite).where(OrganizationInvite.token == token)
    )
    invite = result.scalar_one_or_none()
    if invite is None:
        raise NotFoundError("Invite not found")
    return invite


async def resend_invite(db: AsyncSession, invite: OrganizationInvite) -> OrganizationInvite:
    if invite.status != InviteStatus.PENDING:
        raise InvalidStateError("Only pending invites can be resent")
    invite.token = generate_token()
    invite.expires_at = _expiry()
    await db.commit()
    await enqueue_invite_send(db, invite.id)
    await db.refresh(invite)
    return invite


def _ensure_valid(invite: OrganizationInvite) -> None:
    if invite.status == InviteStatus.PENDING and invite.is_expired():
        raise InvalidStateError("Invite has expired", code="INVITE_EXPIRED")
    if not invite.is_valid():
        raise InvalidStateError("Invite is no longer valid")


async def accept_invite(
    db: AsyncSession, token: str, current_user: AuthUser
) -> OrganizationVolunteer:
    invite = await get_invite_by_token(db, token)
    _ensure_valid(invite)

    user = await db.get(User, current_user.id)
    if user is None or user.email.lower() != invite.email.lower():
        raise PermissionDeniedError("This invite was sent to a different email address")

    now = utc_now()
    membership = await _find_membership(db, invite.organization_id, user.id)
    if membership is None:
        membership = OrganizationVolunteer(
            organization_id=invite.organization_id,
            user_id=user.id,
            role=invite.role,
        )
        db.add(membership)
    membership.status = MembershipStatus.ACTIVE
    membership.joined_at = now

    invite.status = InviteStatus.ACCEPTED
    invite.responded_at = now
    await db.commit()
    await db.refresh(membership)
    logger.info(f"Invite {invite.id} accepted by {user.id}")
    return membership


async def decline_invite(db: AsyncSession, token: str) -> OrganizationInvite:
    invite = await get_invite_by_token(db, token)
    _ensure_valid(invite)
    invite.status = InviteStatus.DECLINED
    invite.responded_at = utc_now()
    await db.commit()
    return invite


async def cancel_invite(db: AsyncSession, invite: OrganizationInvite) -> OrganizationInvite:
    if invite.status != InviteStatus.PENDING:
        raise InvalidStateError("Only pending invites can be cancelled")
    invite.status = InviteStatus.CANCELLED
    await db.commit()
    return invite
