"""Organization-scoped authorization helpers.

Platform admins pass every check. Everyone else must be an active team
member of the organization, optionally with one of the given roles.
"""

import uuid
from typing import Annotated, Iterable, Optional

from fastapi import Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError, PermissionDeniedError
from libs.db.session import get_async_db
from services.organizations_service.models import (
    Organization,
    OrganizationTeamMember,
    TeamRole,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

MANAGER_ROLES = (TeamRole.OWNER, TeamRole.ADMIN, TeamRole.COORDINATOR)


async def get_organization_or_404(
    db: AsyncSession, organization_id: uuid.UUID
) -> Organization:
    organization = await db.get(Organization, organization_id)
    if not organization:
        raise NotFoundError("Organization not found")
    return organization


async def get_team_membership(
    db: AsyncSession, organization_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[OrganizationTeamMember]:
    result = await db.execute(
        select(OrganizationTeamMember).where(
            OrganizationTeamMember.organization_id == organization_id,
            OrganizationTeamMember.user_id == user_id,
            OrganizationTeamMember.is_active.is_(True),
        )
    )
    return result.scalar_one_or_none()


async def require_team_member(
    db: AsyncSession,
    organization_id: uuid.UUID,
    user: AuthUser,
    roles: Optional[Iterable[TeamRole]] = None,
) -> Optional[OrganizationTeamMember]:
    """Raise 403 unless ``user`` may act for the organization."""
    await get_organization_or_404(db, organization_id)
    if user.is_admin:
        return None

    membership = await get_team_membership(db, organization_id, user.id)
    if membership is None:
        raise PermissionDeniedError("Not a member of this organization's team")
    if roles is not None and membership.role not in set(roles):
        raise PermissionDeniedError("Insufficient organization role")
    return membership


async def team_user_ids(
    db: AsyncSession, organization_id: uuid.UUID
) -> list[uuid.UUID]:
    """Active team members, used as notification recipients for the org."""
    result = await db.execute(
        select(OrganizationTeamMember.user_id).where(
            OrganizationTeamMember.organization_id == organization_id,
            OrganizationTeamMember.is_active.is_(True),
        )
    )
    return list(result.scalars().all())


# ── Dependencies ────────────────────────────────────────────────────


async def org_team_user(
    organization_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
) -> AuthUser:
    """Route dependency: caller belongs to ``organization_id``'s team."""
    await require_team_member(db, organization_id, current_user)
    return current_user


async def org_manager_user(
    organization_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
) -> AuthUser:
    """Route dependency: caller is an owner, admin or coordinator."""
    await require_team_member(db, organization_id, current_user, roles=MANAGER_ROLES)
    return current_user
