"""Organization view of its volunteers' compliance records and requirements."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.compliance_service.models import (
    BackgroundCheck,
    ComplianceDocument,
    DocumentStatus,
    DocumentType,
)
from services.compliance_service.schemas import (
    BackgroundCheckResponse,
    DocumentResponse,
    RequirementCheckResponse,
    RequirementCreate,
    RequirementResponse,
    RequirementUpdate,
)
from services.compliance_service.services import (
    create_requirement,
    delete_requirement,
    get_requirement_or_404,
    list_requirements,
    missing_requirements,
    organization_compliance_status,
    update_requirement,
)
from services.organizations_service.models import MembershipStatus, OrganizationVolunteer
from services.organizations_service.permissions import org_manager_user, org_team_user
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/organizations/{organization_id}/compliance", tags=["compliance"]
)


def _volunteer_ids(organization_id: uuid.UUID):
    return select(OrganizationVolunteer.user_id).where(
        OrganizationVolunteer.organization_id == organization_id,
        OrganizationVolunteer.status == MembershipStatus.ACTIVE,
    )


@router.get("/documents", response_model=Page[DocumentResponse])
async def list_volunteer_documents(
    organization_id: uuid.UUID,
    status_filter: Optional[DocumentStatus] = None,
    doc_type: Optional[DocumentType] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Documents held by the organization's active volunteers."""
    query = select(ComplianceDocument).where(
        ComplianceDocument.user_id.in_(_volunteer_ids(organization_id))
    )
    if status_filter:
        query = query.where(ComplianceDocument.status == status_filter)
    if doc_type:
        query = query.where(ComplianceDocument.doc_type == doc_type)
    query = query.order_by(ComplianceDocument.expires_at)
    rows, total = await paginate(db, query, params)
    return build_page([DocumentResponse.model_validate(d) for d in rows], total, params)


@router.get("/background-checks", response_model=list[BackgroundCheckResponse])
async def list_volunteer_checks(
    organization_id: uuid.UUID,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(BackgroundCheck)
        .where(BackgroundCheck.user_id.in_(_volunteer_ids(organization_id)))
        .order_by(BackgroundCheck.requested_at.desc())
    )
    return result.scalars().all()


@router.get("/status")
async def compliance_status(
    organization_id: uuid.UUID,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Per-requirement coverage across active volunteers plus documents expiring soon."""
    return await organization_compliance_status(db, organization_id)


# ── Requirements ────────────────────────────────────────────────────


@router.get("/requirements", response_model=list[RequirementResponse])
async def list_org_requirements(
    organization_id: uuid.UUID,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_requirements(db, organization_id)


@router.post("/requirements", response_model=RequirementResponse, status_code=201)
async def create_org_requirement(
    organization_id: uuid.UUID,
    data: RequirementCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_requirement(db, organization_id, **data.model_dump())


@router.patch("/requirements/{requirement_id}", response_model=RequirementResponse)
async def update_org_requirement(
    organization_id: uuid.UUID,
    requirement_id: uuid.UUID,
    data: RequirementUpdate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    requirement = await get_requirement_or_404(db, organization_id, requirement_id)
    return await update_requirement(db, requirement, **data.model_dump(exclude_unset=True))


@router.delete("/requirements/{requirement_id}", status_code=204)
async def delete_org_requirement(
    organization_id: uuid.UUID,
    requirement_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    requirement = await get_requirement_or_404(db, organization_id, requirement_id)
    await delete_requirement(db, requirement)


@router.get("/volunteers/{user_id}/check", response_model=RequirementCheckResponse)
async def check_volunteer(
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    opportunity_id: Optional[uuid.UUID] = None,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Which mandatory requirements a volunteer still has to meet."""
    missing = await missing_requirements(db, user_id, organization_id, opportunity_id)
    return RequirementCheckResponse(
        compliant=not missing,
        missing=[RequirementResponse.model_validate(r) for r in missing],
    )
