"""Admin endpoints: organization approvals and the invite email queue."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.admin_service.services import record_audit
from services.organizations_service.models import (
    InviteSendStatus,
    Organization,
    OrganizationStatus,
)
from services.organizations_service.permissions import get_organization_or_404
from services.organizations_service.schemas import (
    ApprovalDecision,
    InviteSendJobResponse,
    InviteSendJobStats,
    OrganizationResponse,
    RetryAllResponse,
)
from services.organizations_service.services import set_approval
from services.organizations_service.services.send_jobs import (
    get_job_or_404,
    job_stats,
    list_jobs_query,
    retry_all_failed,
    retry_job,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin", tags=["admin-organizations"])


# ── Approvals ───────────────────────────────────────────────────────


@router.get("/organizations", response_model=Page[OrganizationResponse])
async def list_all_organizations(
    status_filter: Optional[OrganizationStatus] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Organization)
    if status_filter:
        query = query.where(Organization.status == status_filter)
    rows, total = await paginate(db, query.order_by(Organization.created_at.desc()), params)
    return build_page([OrganizationResponse.model_validate(o) for o in rows], total, params)


@router.post("/organizations/{organization_id}/approve", response_model=OrganizationResponse)
async def approve_organization(
    organization_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    organization = await get_organization_or_404(db, organization_id)
    await record_audit(db, current_user.id, "organization_approved", "organization", organization.id)
    return await set_approval(db, organization, True)


@router.post("/organizations/{organization_id}/reject", response_model=OrganizationResponse)
async def reject_organization(
    organization_id: uuid.UUID,
    data: ApprovalDecision,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    organization = await get_organization_or_404(db, organization_id)
    await record_audit(
        db,
        current_user.id,
        "organization_rejected",
        "organization",
        organization.id,
        details={"reason": data.reason},
    )
    return await set_approval(db, organization, False, data.reason)


# ── Invite send jobs ────────────────────────────────────────────────


@router.get("/invite-send-jobs", response_model=Page[InviteSendJobResponse])
async def list_invite_send_jobs(
    status_filter: Optional[InviteSendStatus] = None,
    invite_id: Optional[uuid.UUID] = None,
    q: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = list_jobs_query(status_filter, invite_id, q, start_date, end_date)
    rows, total = await paginate(db, query, params)
    return build_page([InviteSendJobResponse.model_validate(j) for j in rows], total, params)


@router.get("/invite-send-jobs/stats", response_model=InviteSendJobStats)
async def invite_send_job_stats(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await job_stats(db)


@router.post("/invite-send-jobs/retry-failed", response_model=RetryAllResponse)
async def retry_failed_invite_send_jobs(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return {"requeued": await retry_all_failed(db, current_user.id)}


@router.get("/invite-send-jobs/{job_id}", response_model=InviteSendJobResponse)
async def get_invite_send_job(
    job_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_job_or_404(db, job_id)


@router.post("/invite-send-jobs/{job_id}/retry", response_model=InviteSendJobResponse)
async def retry_invite_send_job(
    job_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    job = await get_job_or_404(db, job_id)
    await record_audit(db, current_user.id, "invite_send_job.retry", "invite_send_job", job.id)
    return await retry_job(db, job)
