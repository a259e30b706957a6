"""Application endpoints for volunteers and organization teams."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.events_service.models import Application, ApplicationStatus, Opportunity
from services.events_service.schemas import (
    ApplicationBulkResult,
    ApplicationBulkUpdate,
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatusUpdate,
)
from services.events_service.services import (
    apply,
    authorize_for_application,
    bulk_update_status,
    get_application_or_404,
    get_opportunity_or_404,
    update_status,
    withdraw,
)
from services.organizations_service.permissions import (
    org_manager_user,
    org_team_user,
    require_team_member,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["applications"])


def _page(rows, total, params):
    return build_page([ApplicationResponse.model_validate(a) for a in rows], total, params)


# ── Volunteer ───────────────────────────────────────────────────────


@router.post(
    "/opportunities/{opportunity_id}/apply",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_to_opportunity(
    opportunity_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    data: ApplicationCreate = ApplicationCreate(),
    db: AsyncSession = Depends(get_async_db),
):
    opportunity = await get_opportunity_or_404(db, opportunity_id)
    return await apply(db, opportunity, current_user.id, data.notes)


@router.get("/applications/me", response_model=Page[ApplicationResponse])
async def my_applications(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    status_filter: Optional[ApplicationStatus] = None,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Application).where(Application.user_id == current_user.id)
    if status_filter:
        query = query.where(Application.status == status_filter)
    rows, total = await paginate(db, query.order_by(Application.applied_at.desc()), params)
    return _page(rows, total, params)


@router.post("/applications/{application_id}/withdraw", response_model=ApplicationResponse)
async def withdraw_application(
    application_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    application = await get_application_or_404(db, application_id)
    return await withdraw(db, application, current_user.id)


# ── Organization team ───────────────────────────────────────────────


@router.get(
    "/opportunities/{opportunity_id}/applications",
    response_model=Page[ApplicationResponse],
)
async def list_opportunity_applications(
    opportunity_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    status_filter: Optional[ApplicationStatus] = None,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_async_db),
):
    opportunity = await get_opportunity_or_404(db, opportunity_id)
    await require_team_member(db, opportunity.organization_id, current_user)

    query = select(Application).where(Application.opportunity_id == opportunity_id)
    if status_filter:
        query = query.where(Application.status == status_filter)
    rows, total = await paginate(db, query.order_by(Application.applied_at.desc()), params)
    return _page(rows, total, params)


@router.get(
    "/organizations/{organization_id}/applications",
    response_model=Page[ApplicationResponse],
)
async def list_organization_applications(
    organization_id: uuid.UUID,
    status_filter: Optional[ApplicationStatus] = None,
    opportunity_id: Optional[uuid.UUID] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Application)
        .join(Opportunity, Opportunity.id == Application.opportunity_id)
        .where(Opportunity.organization_id == organization_id)
    )
    if opportunity_id:
        query = query.where(Opportunity.id == opportunity_id)
    if status_filter:
        query = query.where(Application.status == status_filter)
    rows, total = await paginate(db, query.order_by(Application.applied_at.desc()), params)
    return _page(rows, total, params)


@router.patch("/applications/{application_id}", response_model=ApplicationResponse)
async def decide_application(
    application_id: uuid.UUID,
    data: ApplicationStatusUpdate,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Accept or reject. Accepting checks the opportunity's capacity."""
    application = await get_application_or_404(db, application_id)
    await authorize_for_application(db, application, current_user)
    return await update_status(db, application, data.status, data.notes)


@router.post(
    "/organizations/{organization_id}/applications/bulk",
    response_model=ApplicationBulkResult,
)
async def bulk_decide_applications(
    organization_id: uuid.UUID,
    data: ApplicationBulkUpdate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await bulk_update_status(db, organization_id, data.ids, data.status, data.notes)
