"""Organization dashboard, report aggregates and CSV exports."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.organizations_service.permissions import org_manager_user, org_team_user
from services.organizations_service.services.exports import compliance_csv, hours_csv
from services.organizations_service.services.reports import (
    dashboard,
    hours_trend,
    opportunity_performance,
    overview_stats,
    resolve_date_range,
    top_volunteers,
    volunteer_participation,
)
from services.volunteer_service.models import HoursStatus
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/organizations/{organization_id}", tags=["reports"])


class DateRange:
    """Query parameters shared by every report endpoint."""

    def __init__(
        self,
        preset: Optional[str] = Query(None, alias="range"),
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ):
        self.start, self.end = resolve_date_range(preset, start_date, end_date)


def _csv(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/dashboard")
async def get_dashboard(
    organization_id: uuid.UUID,
    period: DateRange = Depends(),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await dashboard(db, organization_id, period.start, period.end)


@router.get("/reports/overview")
async def get_overview(
    organization_id: uuid.UUID,
    period: DateRange = Depends(),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await overview_stats(db, organization_id, period.start, period.end)


@router.get("/reports/hours-trend")
async def get_hours_trend(
    organization_id: uuid.UUID,
    group_by: str = "month",
    period: DateRange = Depends(),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await hours_trend(db, organization_id, period.start, period.end, group_by)


@router.get("/reports/participation")
async def get_participation(
    organization_id: uuid.UUID,
    period: DateRange = Depends(),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await volunteer_participation(db, organization_id, period.start, period.end)


@router.get("/reports/top-volunteers")
async def get_top_volunteers(
    organization_id: uuid.UUID,
    limit: int = Query(10, ge=1, le=100),
    period: DateRange = Depends(),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await top_volunteers(db, organization_id, period.start, period.end, limit)


@router.get("/reports/opportunities")
async def get_opportunity_performance(
    organization_id: uuid.UUID,
    limit: int = Query(20, ge=1, le=100),
    period: DateRange = Depends(),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await opportunity_performance(db, organization_id, period.start, period.end, limit)


# ── Exports ─────────────────────────────────────────────────────────


@router.get("/exports/hours.csv")
async def export_hours(
    organization_id: uuid.UUID,
    status_filter: Optional[HoursStatus] = Query(None, alias="status"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    volunteer_id: Optional[uuid.UUID] = None,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Volunteer hours as CSV (managers only)."""
    content = await hours_csv(
        db, organization_id, status_filter, start_date, end_date, volunteer_id
    )
    return _csv(content, f"volunteer-hours-{date.today().isoformat()}.csv")


@router.get("/exports/compliance.csv")
async def export_compliance(
    organization_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Volunteer compliance documents as CSV (managers only)."""
    content = await compliance_csv(db, organization_id)
    return _csv(content, f"compliance-{date.today().isoformat()}.csv")
