"""Organization hours review: pending list, approve, reject, bulk approve."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.organizations_service.permissions import org_manager_user, org_team_user
from services.volunteer_service.schemas import (
    HoursApprove,
    HoursBulkApprove,
    HoursBulkApproveResponse,
    HoursReject,
    HoursResponse,
    HoursSummaryResponse,
)
from services.volunteer_service.services import (
    approve_hours,
    bulk_approve,
    get_hours_or_404,
    hours_summary,
    pending_query,
    reject_hours,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/organizations/{organization_id}/hours", tags=["hours"])


@router.get("/pending", response_model=Page[HoursResponse])
async def list_pending_hours(
    organization_id: uuid.UUID,
    volunteer_id: Optional[uuid.UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = pending_query(organization_id, volunteer_id, start_date, end_date)
    rows, total = await paginate(db, query, params)
    return build_page([HoursResponse.model_validate(h) for h in rows], total, params)


@router.post("/bulk-approve", response_model=HoursBulkApproveResponse)
async def bulk_approve_hours(
    organization_id: uuid.UUID,
    data: HoursBulkApprove,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Fails with 400 unless every id belongs to this organization."""
    count = await bulk_approve(db, organization_id, data.ids, current_user.id)
    return {"approved_count": count}


@router.get("/volunteers/{user_id}/summary", response_model=HoursSummaryResponse)
async def volunteer_summary(
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await hours_summary(db, user_id)


@router.post("/{hours_id}/approve", response_model=HoursResponse)
async def approve(
    organization_id: uuid.UUID,
    hours_id: uuid.UUID,
    data: HoursApprove = HoursApprove(),
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    entry = await get_hours_or_404(db, hours_id, organization_id)
    return await approve_hours(db, entry, current_user.id, data.notes)


@router.post("/{hours_id}/reject", response_model=HoursResponse)
async def reject(
    organization_id: uuid.UUID,
    hours_id: uuid.UUID,
    data: HoursReject = HoursReject(),
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    entry = await get_hours_or_404(db, hours_id, organization_id)
    return await reject_hours(db, entry, current_user.id, data.reason)
