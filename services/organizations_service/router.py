"""Organization, team and volunteer-membership endpoints."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.organizations_service.models import (
    MembershipStatus,
    Organization,
    OrganizationStatus,
    OrganizationTeamMember,
    OrganizationVolunteer,
)
from services.organizations_service.permissions import (
    get_organization_or_404,
    org_manager_user,
    org_team_user,
)
from services.organizations_service.schemas import (
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
    TeamMemberCreate,
    TeamMemberResponse,
    VolunteerMembershipResponse,
    VolunteerStatusUpdate,
)
from services.organizations_service.services import (
    add_team_member,
    create_organization,
    join_organization,
    remove_team_member,
    update_volunteer_status,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/organizations", tags=["organizations"])


# ── Organizations ───────────────────────────────────────────────────


@router.get("/", response_model=Page[OrganizationResponse])
async def list_organizations(
    q: Optional[str] = None,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_async_db),
):
    """List approved, public organizations."""
    query = select(Organization).where(
        Organization.status == OrganizationStatus.ACTIVE,
        Organization.is_active.is_(True),
        Organization.public_profile.is_(True),
    )
    if q:
        query = query.where(Organization.name.ilike(f"%{q}%"))
    rows, total = await paginate(db, query.order_by(Organization.name), params)
    return build_page([OrganizationResponse.model_validate(o) for o in rows], total, params)


@router.post("/", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_org(
    data: OrganizationCreate,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Register an organization. It stays pending until an admin approves it."""
    return await create_organization(db, current_user.id, **data.model_dump())


@router.get("/mine", response_model=list[OrganizationResponse])
async def my_organizations(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Organizations whose team I belong to."""
    result = await db.execute(
        select(Organization)
        .join(
            OrganizationTeamMember,
            OrganizationTeamMember.organization_id == Organization.id,
        )
        .where(
            OrganizationTeamMember.user_id == current_user.id,
            OrganizationTeamMember.is_active.is_(True),
        )
        .order_by(Organization.name)
    )
    return result.scalars().all()


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_org(organization_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    return await get_organization_or_404(db, organization_id)


@router.patch("/{organization_id}", response_model=OrganizationResponse)
async def update_org(
    organization_id: uuid.UUID,
    data: OrganizationUpdate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    organization = await get_organization_or_404(db, organization_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(organization, field, value)
    await db.commit()
    await db.refresh(organization)
    return organization


@router.post(
    "/{organization_id}/join",
    response_model=VolunteerMembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
async def join_org(
    organization_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Ask to volunteer with an organization."""
    organization = await get_organization_or_404(db, organization_id)
    return await join_organization(db, organization, current_user.id)


# ── Team ────────────────────────────────────────────────────────────


@router.get("/{organization_id}/team", response_model=list[TeamMemberResponse])
async def list_team(
    organization_id: uuid.UUID,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(OrganizationTeamMember).where(
            OrganizationTeamMember.organization_id == organization_id,
            OrganizationTeamMember.is_active.is_(True),
        )
    )
    return result.scalars().all()


@router.post(
    "/{organization_id}/team",
    response_model=TeamMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_team(
    organization_id: uuid.UUID,
    data: TeamMemberCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await add_team_member(db, organization_id, data.user_id, data.role)


@router.delete("/{organization_id}/team/{member_id}", status_code=204)
async def remove_team(
    organization_id: uuid.UUID,
    member_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    await remove_team_member(db, organization_id, member_id)


# ── Volunteers ──────────────────────────────────────────────────────


@router.get(
    "/{organization_id}/volunteers",
    response_model=Page[VolunteerMembershipResponse],
)
async def list_volunteers(
    organization_id: uuid.UUID,
    status_filter: Optional[MembershipStatus] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(OrganizationVolunteer).where(
        OrganizationVolunteer.organization_id == organization_id
    )
    if status_filter:
        query = query.where(OrganizationVolunteer.status == status_filter)
    rows, total = await paginate(
        db, query.order_by(OrganizationVolunteer.created_at.desc()), params
    )
    return build_page(
        [VolunteerMembershipResponse.model_validate(m) for m in rows], total, params
    )


@router.patch(
    "/{organization_id}/volunteers/{membership_id}",
    response_model=VolunteerMembershipResponse,
)
async def update_volunteer(
    organization_id: uuid.UUID,
    membership_id: uuid.UUID,
    data: VolunteerStatusUpdate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await update_volunteer_status(
        db, organization_id, membership_id, data.status, data.notes
    )


@router.delete("/{organization_id}/volunteers/{membership_id}", status_code=204)
async def remove_volunteer(
    organization_id: uuid.UUID,
    membership_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    membership = await db.get(OrganizationVolunteer, membership_id)
    if membership is None or membership.organization_id != organization_id:
        raise NotFoundError("Volunteer membership not found")
    membership.status = MembershipStatus.REMOVED
    await db.commit()
