"""Volunteer-facing endpoints: my shifts, check-in/out and logged hours."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.organizations_service.permissions import require_team_member
from services.volunteer_service.models import (
    AssignmentStatus,
    HoursStatus,
    Shift,
    ShiftAssignment,
    VolunteerHour,
)
from services.volunteer_service.schemas import (
    AssignmentResponse,
    HoursCreate,
    HoursResponse,
    HoursSummaryResponse,
    ShiftResponse,
)
from services.volunteer_service.services import (
    cancel_assignment,
    check_in,
    check_out,
    get_assignment_or_404,
    hours_summary,
    log_hours,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["volunteers"])


# ── Helpers ─────────────────────────────────────────────────────────


async def _assignment_for(
    db: AsyncSession, assignment_id: uuid.UUID, user: AuthUser
) -> ShiftAssignment:
    """The volunteer themselves or the shift's organization team may act."""
    assignment = await get_assignment_or_404(db, assignment_id)
    if assignment.user_id != user.id:
        shift = await db.get(Shift, assignment.shift_id)
        await require_team_member(db, shift.organization_id, user)
    return assignment


# ── Shifts ──────────────────────────────────────────────────────────


@router.get("/shifts/upcoming", response_model=Page[ShiftResponse])
async def upcoming_shifts(
    organization_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Shift).where(
        Shift.organization_id == organization_id, Shift.start_at >= utc_now()
    )
    rows, total = await paginate(db, query.order_by(Shift.start_at), params)
    return build_page([ShiftResponse.model_validate(s) for s in rows], total, params)


@router.get("/assignments/me", response_model=Page[AssignmentResponse])
async def my_assignments(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    status_filter: Optional[AssignmentStatus] = None,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(ShiftAssignment).where(ShiftAssignment.user_id == current_user.id)
    if status_filter:
        query = query.where(ShiftAssignment.status == status_filter)
    rows, total = await paginate(db, query.order_by(ShiftAssignment.created_at.desc()), params)
    return build_page([AssignmentResponse.model_validate(a) for a in rows], total, params)


@router.post("/assignments/{assignment_id}/check-in", response_model=AssignmentResponse)
async def check_in_assignment(
    assignment_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    assignment = await _assignment_for(db, assignment_id, current_user)
    return await check_in(db, assignment)


@router.post("/assignments/{assignment_id}/check-out", response_model=AssignmentResponse)
async def check_out_assignment(
    assignment_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Complete the shift; the worked hours are logged as pending."""
    assignment = await _assignment_for(db, assignment_id, current_user)
    return await check_out(db, assignment)


@router.post("/assignments/{assignment_id}/cancel", response_model=AssignmentResponse)
async def cancel_my_assignment(
    assignment_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    assignment = await _assignment_for(db, assignment_id, current_user)
    return await cancel_assignment(db, assignment)


# ── Hours ───────────────────────────────────────────────────────────


@router.post("/hours", response_model=HoursResponse, status_code=status.HTTP_201_CREATED)
async def submit_hours(
    data: HoursCreate,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return await log_hours(db, current_user.id, **data.model_dump())


@router.get("/hours/me", response_model=Page[HoursResponse])
async def my_hours(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    status_filter: Optional[HoursStatus] = None,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(VolunteerHour).where(VolunteerHour.user_id == current_user.id)
    if status_filter:
        query = query.where(VolunteerHour.status == status_filter)
    rows, total = await paginate(db, query.order_by(VolunteerHour.date.desc()), params)
    return build_page([HoursResponse.model_validate(h) for h in rows], total, params)


@router.get("/hours/me/summary", response_model=HoursSummaryResponse)
async def my_hours_summary(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return await hours_summary(db, current_user.id)
