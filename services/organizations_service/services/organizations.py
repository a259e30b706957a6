"""Organization CRUD, approval, team and volunteer membership."""

import re
import uuid
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.errors import ConflictError, InvalidStateError, NotFoundError
from libs.common.logging import get_logger
from services.communications_service.services.notifications import create_notification
from services.organizations_service.models import (
    MembershipStatus,
    Organization,
    OrganizationStatus,
    OrganizationTeamMember,
    OrganizationVolunteer,
    TeamRole,
)
from services.organizations_service.permissions import team_user_ids
from services.users_service.models import User
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "organization"


async def _unique_slug(db: AsyncSession, name: str) -> str:
    base = slugify(name)
    slug = base
    suffix = 2
    while (
        await db.execute(select(Organization.id).where(Organization.slug == slug))
    ).scalar_one_or_none():
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


async def create_organization(
    db: AsyncSession, owner_id: uuid.UUID, **fields
) -> Organization:
    """Create an organization awaiting approval; the creator becomes owner."""
    organization = Organization(
        slug=await _unique_slug(db, fields["name"]),
        status=OrganizationStatus.PENDING,
        is_approved=False,
        **fields,
    )
    db.add(organization)
    await db.flush()
    db.add(
        OrganizationTeamMember(
            organization_id=organization.id,
            user_id=owner_id,
            role=TeamRole.OWNER,
            is_active=True,
        )
    )
    await db.commit()
    await db.refresh(organization)
    logger.info(f"Organization {organization.slug} created by {owner_id}")
    return organization


async def set_approval(
    db: AsyncSession, organization: Organization, approved: bool, reason: Optional[str] = None
) -> Organization:
    if approved:
        organization.status = OrganizationStatus.ACTIVE
        organization.is_approved = True
    else:
        organization.status = OrganizationStatus.REJECTED
        organization.is_approved = False

    for user_id in await team_user_ids(db, organization.id):
        await create_notification(
            db,
            user_id,
            type="organization_approved" if approved else "organization_rejected",
            title="Organization approved" if approved else "Organization not approved",
            message=(
                f"{organization.name} is now live."
                if approved
                else f"{organization.name} was not approved. {reason or ''}".strip()
            ),
            category="organization",
            payload={"organization_id": str(organization.id)},
        )
    await db.commit()
    await db.refresh(organization)
    return organization


# ── Team ────────────────────────────────────────────────────────────


async def add_team_member(
    db: AsyncSession, organization_id: uuid.UUID, user_id: uuid.UUID, role: TeamRole
) -> OrganizationTeamMember:
    if await db.get(User, user_id) is None:
        raise NotFoundError("User not found")
    existing = (
        await db.execute(
            select(OrganizationTeamMember).where(
                OrganizationTeamMember.organization_id == organization_id,
                OrganizationTeamMember.user_id == user_id,
            )
        )
    ).scalar_one_or_none()
    if existing is not None and existing.is_active:
        raise ConflictError("User is already on this team")
    if existing is None:
        existing = OrganizationTeamMember(organization_id=organization_id, user_id=user_id)
        db.add(existing)
    existing.role = role
    existing.is_active = True
    await db.commit()
    await db.refresh(existing)
    return existing


async def remove_team_member(
    db: AsyncSession, organization_id: uuid.UUID, member_id: uuid.UUID
) -> None:
    member = await db.get(OrganizationTeamMember, member_id)
    if member is None or member.organization_id != organization_id:
        raise NotFoundError("Team member not found")
    if member.role == TeamRole.OWNER:
        owners = (
            await db.execute(
                select(OrganizationTeamMember.id).where(
                    OrganizationTeamMember.organization_id == organization_id,
                    OrganizationTeamMember.role == TeamRole.OWNER,
                    OrganizationTeamMember.is_active.is_(True),
                )
            )
        ).scalars().all()
        if len(owners) <= 1:
            raise InvalidStateError("Cannot remove the last owner")
    member.is_active = False
    await db.commit()


# ── Volunteers ──────────────────────────────────────────────────────


async def join_organization(
    db: AsyncSession, organization: Organization, user_id: uuid.UUID
) -> OrganizationVolunteer:
    """Volunteer asks to join; auto-approving organizations activate at once."""
    if organization.status != OrganizationStatus.ACTIVE:
        raise InvalidStateError("Organization is not accepting volunteers")

    membership = (
        await db.execute(
            select(OrganizationVolunteer).where(
                OrganizationVolunteer.organization_id == organization.id,
                OrganizationVolunteer.user_id == user_id,
            )
        )
    ).scalar_one_or_none()
    if membership is not None and membership.status in (
        MembershipStatus.ACTIVE,
        MembershipStatus.PENDING,
    ):
        raise ConflictError("Already a volunteer of this organization")

    if membership is None:
        membership = OrganizationVolunteer(organization_id=organization.id, user_id=user_id)
        db.add(membership)

    if organization.auto_approve_volunteers:
        membership.status = MembershipStatus.ACTIVE
        membership.joined_at = utc_now()
    else:
        membership.status = MembershipStatus.PENDING
        await db.flush()
        for team_user_id in await team_user_ids(db, organization.id):
            await create_notification(
                db,
                team_user_id,
                type="volunteer_join_request",
                title="New volunteer request",
                message="A volunteer has asked to join your organization.",
                category="organization",
                payload={
                    "organization_id": str(organization.id),
                    "user_id": str(user_id),
                },
            )

    await db.commit()
    await db.refresh(membership)
    return membership


async def update_volunteer_status(
    db: AsyncSession,
    organization_id: uuid.UUID,
    membership_id: uuid.UUID,
    status: MembershipStatus,
    notes: Optional[str] = None,
) -> OrganizationVolunteer:
    membership = await db.get(OrganizationVolunteer, membership_id)
    if membership is None or membership.organization_id != organization_id:
        raise NotFoundError("Volunteer membership not found")

    previous = membership.status
    membership.status = status
    if notes is not None:
        membership.notes = notes
    if status == MembershipStatus.ACTIVE and membership.joined_at is None:
        membership.joined_at = utc_now()

    if previous == MembershipStatus.PENDING and status == MembershipStatus.ACTIVE:
        await create_notification(
            db,
            membership.user_id,
            type="volunteer_approved",
            title="You're in!",
            message="Your request to join the organization was approved.",
            category="organization",
            payload={"organization_id": str(organization_id)},
        )

    await db.commit()
    await db.refresh(membership)
    return membership
