"""Organization shift management: shifts, tasks and rostering."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.organizations_service.permissions import org_manager_user, org_team_user
from services.volunteer_service.models import Shift, ShiftAssignment, ShiftTask
from services.volunteer_service.schemas import (
    AssignmentCreate,
    AssignmentResponse,
    AssignmentStatusUpdate,
    BulkAssignmentCreate,
    BulkAssignmentResult,
    ConflictCheckRequest,
    ConflictCheckResponse,
    RecurringShiftCreate,
    ShiftCreate,
    ShiftResponse,
    ShiftTaskCreate,
    ShiftTaskResponse,
    ShiftUpdate,
)
from services.volunteer_service.services import (
    add_task,
    assign_volunteer,
    bulk_assign,
    create_recurring_shifts,
    create_shift,
    describe_conflicts,
    find_conflicts,
    get_assignment_or_404,
    get_shift_or_404,
    set_assignment_status,
    update_shift,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/organizations/{organization_id}", tags=["shifts"])


# ── Shifts ──────────────────────────────────────────────────────────


@router.get("/shifts", response_model=Page[ShiftResponse])
async def list_shifts(
    organization_id: uuid.UUID,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Shift).where(Shift.organization_id == organization_id)
    if start:
        query = query.where(Shift.end_at >= start)
    if end:
        query = query.where(Shift.start_at <= end)
    rows, total = await paginate(db, query.order_by(Shift.start_at), params)
    return build_page([ShiftResponse.model_validate(s) for s in rows], total, params)


@router.post("/shifts", response_model=ShiftResponse, status_code=status.HTTP_201_CREATED)
async def create_org_shift(
    organization_id: uuid.UUID,
    data: ShiftCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_shift(db, organization_id, current_user.id, **data.model_dump())


@router.post(
    "/shifts/recurring",
    response_model=list[ShiftResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_org_recurring_shifts(
    organization_id: uuid.UUID,
    data: RecurringShiftCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Expand ``recurrence_rule`` day by day from ``start_at`` until ``until``."""
    return await create_recurring_shifts(
        db, organization_id, current_user.id, **data.model_dump()
    )


@router.post("/shifts/conflict-check", response_model=ConflictCheckResponse)
async def conflict_check(
    organization_id: uuid.UUID,
    data: ConflictCheckRequest,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    conflicts = await find_conflicts(db, data.user_id, data.start_at, data.end_at)
    return {
        "has_conflict": bool(conflicts),
        "conflicts": conflicts,
        "message": describe_conflicts(conflicts),
    }


@router.get("/shifts/{shift_id}", response_model=ShiftResponse)
async def get_org_shift(
    organization_id: uuid.UUID,
    shift_id: uuid.UUID,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_shift_or_404(db, shift_id, organization_id)


@router.patch("/shifts/{shift_id}", response_model=ShiftResponse)
async def update_org_shift(
    organization_id: uuid.UUID,
    shift_id: uuid.UUID,
    data: ShiftUpdate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    shift = await get_shift_or_404(db, shift_id, organization_id)
    return await update_shift(db, shift, **data.model_dump(exclude_unset=True))


@router.delete("/shifts/{shift_id}", status_code=204)
async def delete_org_shift(
    organization_id: uuid.UUID,
    shift_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    shift = await get_shift_or_404(db, shift_id, organization_id)
    await db.delete(shift)
    await db.commit()


# ── Tasks ───────────────────────────────────────────────────────────


@router.get("/shifts/{shift_id}/tasks", response_model=list[ShiftTaskResponse])
async def list_tasks(
    organization_id: uuid.UUID,
    shift_id: uuid.UUID,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    await get_shift_or_404(db, shift_id, organization_id)
    result = await db.execute(select(ShiftTask).where(ShiftTask.shift_id == shift_id))
    return result.scalars().all()


@router.post(
    "/shifts/{shift_id}/tasks",
    response_model=ShiftTaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    organization_id: uuid.UUID,
    shift_id: uuid.UUID,
    data: ShiftTaskCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    shift = await get_shift_or_404(db, shift_id, organization_id)
    return await add_task(db, shift, **data.model_dump())


# ── Assignments ─────────────────────────────────────────────────────


@router.get("/shifts/{shift_id}/assignments", response_model=list[AssignmentResponse])
async def list_assignments(
    organization_id: uuid.UUID,
    shift_id: uuid.UUID,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    await get_shift_or_404(db, shift_id, organization_id)
    result = await db.execute(
        select(ShiftAssignment)
        .where(ShiftAssignment.shift_id == shift_id)
        .order_by(ShiftAssignment.created_at)
    )
    return result.scalars().all()


@router.post(
    "/shifts/{shift_id}/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign(
    organization_id: uuid.UUID,
    shift_id: uuid.UUID,
    data: AssignmentCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Roster a volunteer. Overlaps, the daily hours limit and capacity are checked."""
    shift = await get_shift_or_404(db, shift_id, organization_id)
    return await assign_volunteer(
        db, shift, data.user_id, data.task_id, assigned_by=current_user.id, notes=data.notes
    )


@router.post("/shifts/{shift_id}/assignments/bulk", response_model=BulkAssignmentResult)
async def assign_bulk(
    organization_id: uuid.UUID,
    shift_id: uuid.UUID,
    data: BulkAssignmentCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    shift = await get_shift_or_404(db, shift_id, organization_id)
    return await bulk_assign(
        db, shift, data.user_ids, data.task_id, assigned_by=current_user.id
    )


@router.patch("/assignments/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment_status(
    organization_id: uuid.UUID,
    assignment_id: uuid.UUID,
    data: AssignmentStatusUpdate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    assignment = await get_assignment_or_404(db, assignment_id)
    shift = await db.get(Shift, assignment.shift_id)
    if shift is None or shift.organization_id != organization_id:
        raise NotFoundError("Assignment not found")
    return await set_assignment_status(db, assignment, data.status)
