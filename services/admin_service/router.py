"""Admin audit log, monitoring and dashboard endpoints."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.admin_service.models import AuditLog
from services.admin_service.schemas import (
    AuditLogResponse,
    DashboardSummary,
    DeliveryMetricsResponse,
    HealthResponse,
    JobStatsResponse,
)
from services.admin_service.services.monitoring import (
    dashboard_summary,
    database_health,
    delivery_metrics,
    job_stats,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/audit-logs", response_model=Page[AuditLogResponse])
async def list_audit_logs(
    action: Optional[str] = None,
    user_id: Optional[uuid.UUID] = None,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(AuditLog)
    if action:
        query = query.where(AuditLog.action == action)
    if user_id:
        query = query.where(AuditLog.user_id == user_id)
    if target_type:
        query = query.where(AuditLog.target_type == target_type)
    if target_id:
        query = query.where(AuditLog.target_id == target_id)
    if start_date:
        query = query.where(AuditLog.created_at >= start_date)
    if end_date:
        query = query.where(AuditLog.created_at <= end_date)
    rows, total = await paginate(db, query.order_by(AuditLog.created_at.desc()), params)
    return build_page([AuditLogResponse.model_validate(r) for r in rows], total, params)


@router.get("/monitoring/health", response_model=HealthResponse)
async def monitoring_health(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await database_health(db)


@router.get("/monitoring/jobs", response_model=JobStatsResponse)
async def monitoring_jobs(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await job_stats(db)


@router.get("/monitoring/notifications", response_model=DeliveryMetricsResponse)
async def monitoring_notifications(
    days: int = Query(7, ge=1, le=365),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await delivery_metrics(db, days)


@router.get("/dashboard", response_model=DashboardSummary)
async def dashboard(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await dashboard_summary(db)
