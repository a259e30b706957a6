"""Admin endpoints for the scheduled job queue."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.admin_service.services import record_audit
from services.communications_service.models import ScheduledJob, ScheduledJobStatus
from services.communications_service.schemas import (
    ScheduledJobCreate,
    ScheduledJobResponse,
)
from services.communications_service.tasks.scheduler import (
    cancel_job,
    retry_job,
    schedule_job,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/scheduled-jobs", tags=["admin-scheduled-jobs"])


async def _get_job_or_404(db: AsyncSession, job_id: uuid.UUID) -> ScheduledJob:
    job = await db.get(ScheduledJob, job_id)
    if job is None:
        raise NotFoundError("Scheduled job not found")
    return job


@router.get("/", response_model=Page[ScheduledJobResponse])
async def list_jobs(
    status_filter: Optional[ScheduledJobStatus] = None,
    job_type: Optional[str] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(ScheduledJob)
    if status_filter:
        query = query.where(ScheduledJob.status == status_filter)
    if job_type:
        query = query.where(ScheduledJob.type == job_type)
    rows, total = await paginate(db, query.order_by(ScheduledJob.run_at.desc()), params)
    return build_page([ScheduledJobResponse.model_validate(j) for j in rows], total, params)


@router.post("/", response_model=ScheduledJobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    data: ScheduledJobCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await schedule_job(
        db,
        name=data.name,
        type=data.type.value,
        run_at=data.run_at,
        payload=data.payload,
        max_attempts=data.max_attempts,
    )


@router.get("/{job_id}", response_model=ScheduledJobResponse)
async def get_job(
    job_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await _get_job_or_404(db, job_id)


@router.post("/{job_id}/cancel", response_model=ScheduledJobResponse)
async def cancel(
    job_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    job = await _get_job_or_404(db, job_id)
    await record_audit(db, current_user.id, "scheduled_job.cancel", "scheduled_job", job.id)
    return await cancel_job(db, job)


@router.post("/{job_id}/retry", response_model=ScheduledJobResponse)
async def retry(
    job_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    job = await _get_job_or_404(db, job_id)
    await record_audit(db, current_user.id, "scheduled_job.retry", "scheduled_job", job.id)
    return await retry_job(db, job)
