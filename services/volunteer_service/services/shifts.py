"""Shift rostering: shifts, tasks, assignments, check-in and check-out."""

import uuid
from datetime import datetime
from typing import Any, Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import end_of_day, ensure_utc, start_of_day, utc_now
from libs.common.errors import (
    CapacityError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ServiceError,
)
from libs.common.logging import get_logger
from services.communications_service.services.notifications import create_notification
from services.compliance_service.services import ensure_compliant
from services.events_service.services.catalog import get_event_or_404
from services.volunteer_service.models import (
    AssignmentStatus,
    HoursStatus,
    Shift,
    ShiftAssignment,
    ShiftTask,
    VolunteerHour,
)
from services.volunteer_service.services.recurrence import (
    generate_occurrences,
    parse_recurrence_rule,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

ACTIVE_ASSIGNMENT = ShiftAssignment.status != AssignmentStatus.CANCELLED


# ── Shifts ──────────────────────────────────────────────────────────


async def get_shift_or_404(
    db: AsyncSession, shift_id: uuid.UUID, organization_id: Optional[uuid.UUID] = None
) -> Shift:
    shift = await db.get(Shift, shift_id)
    if shift is None or (organization_id is not None and shift.organization_id != organization_id):
        raise NotFoundError("Shift not found")
    return shift


def _validated_window(start_at: datetime, end_at: datetime) -> tuple[datetime, datetime]:
    start_at, end_at = ensure_utc(start_at), ensure_utc(end_at)
    if end_at <= start_at:
        raise InvalidStateError("end_at must be after start_at")
    return start_at, end_at


async def create_shift(
    db: AsyncSession, organization_id: uuid.UUID, created_by: Optional[uuid.UUID], **fields: Any
) -> Shift:
    fields["start_at"], fields["end_at"] = _validated_window(fields["start_at"], fields["end_at"])
    if fields.get("event_id"):
        await get_event_or_404(db, fields["event_id"], organization_id)
    shift = Shift(organization_id=organization_id, created_by=created_by, **fields)
    db.add(shift)
    await db.commit()
    await db.refresh(shift)
    return shift


async def create_recurring_shifts(
    db: AsyncSession,
    organization_id: uuid.UUID,
    created_by: Optional[uuid.UUID],
    recurrence_rule: str,
    until: datetime,
    template_name: Optional[str] = None,
    **fields: Any,
) -> list[Shift]:
    """Create one shift per occurrence of ``recurrence_rule`` up to ``until``."""
    if parse_recurrence_rule(recurrence_rule) is None:
        raise InvalidStateError(f"Invalid recurrence rule: {recurrence_rule}")
    start_at, end_at = _validated_window(fields.pop("start_at"), fields.pop("end_at"))
    if fields.get("event_id"):
        await get_event_or_404(db, fields["event_id"], organization_id)

    try:
        occurrences = generate_occurrences(start_at, end_at, recurrence_rule, ensure_utc(until))
    except ValueError as e:
        raise InvalidStateError(str(e)) from e

    shifts = [
        Shift(
            organization_id=organization_id,
            created_by=created_by,
            start_at=occurrence_start,
            end_at=occurrence_end,
            is_recurring=True,
            recurrence_rule=recurrence_rule.upper(),
            template_name=template_name or fields.get("title") or "Recurring Shift",
            **fields,
        )
        for occurrence_start, occurrence_end in occurrences
    ]
    db.add_all(shifts)
    await db.commit()
    for shift in shifts:
        await db.refresh(shift)
    logger.info(f"Created {len(shifts)} recurring shift(s) for organization {organization_id}")
    return shifts


async def update_shift(db: AsyncSession, shift: Shift, **fields: Any) -> Shift:
    for key, value in fields.items():
        setattr(shift, key, value)
    shift.start_at, shift.end_at = _validated_window(shift.start_at, shift.end_at)
    await db.commit()
    await db.refresh(shift)
    return shift


async def add_task(db: AsyncSession, shift: Shift, **fields: Any) -> ShiftTask:
    task = ShiftTask(shift_id=shift.id, **fields)
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task


# ── Conflict detection ──────────────────────────────────────────────


async def find_conflicts(
    db: AsyncSession,
    user_id: uuid.UUID,
    start_at: datetime,
    end_at: datetime,
    exclude_shift_id: Optional[uuid.UUID] = None,
) -> list[Shift]:
    """
    Shifts the user is already rostered on that overlap ``[start_at, end_at)``.

    Touching shifts (one ends exactly when the other starts) do not overlap.
    """
    query = (
        select(Shift)
        .join(ShiftAssignment, ShiftAssignment.shift_id == Shift.id)
        .where(
            ShiftAssignment.user_id == user_id,
            ACTIVE_ASSIGNMENT,
            Shift.start_at < ensure_utc(end_at),
            Shift.end_at > ensure_utc(start_at),
        )
        .order_by(Shift.start_at)
    )
    if exclude_shift_id is not None:
        query = query.where(Shift.id != exclude_shift_id)
    return list((await db.execute(query)).scalars().unique().all())


async def daily_hours(db: AsyncSession, user_id: uuid.UUID, day: datetime) -> float:
    """Rostered hours on shifts lying wholly inside the UTC day of ``day``."""
    day_start, day_end = start_of_day(day), end_of_day(day)
    result = await db.execute(
        select(Shift.start_at, Shift.end_at)
        .join(ShiftAssignment, ShiftAssignment.shift_id == Shift.id)
        .where(
            ShiftAssignment.user_id == user_id,
            ACTIVE_ASSIGNMENT,
            Shift.start_at >= day_start,
            Shift.end_at <= day_end,
        )
    )
    return sum(
        (ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600
        for start, end in result.all()
    )


def describe_conflicts(conflicts: list[Shift]) -> str:
    if not conflicts:
        return "No conflicts detected"
    parts = [
        f"{s.title} ({ensure_utc(s.start_at):%d %b %Y %H:%M} - {ensure_utc(s.end_at):%H:%M})"
        for s in conflicts
    ]
    prefix = "Conflict with" if len(parts) == 1 else "Conflicts with"
    return f"{prefix}: {', '.join(parts)}"


# ── Assignments ─────────────────────────────────────────────────────


async def get_assignment_or_404(db: AsyncSession, assignment_id: uuid.UUID) -> ShiftAssignment:
    assignment = await db.get(ShiftAssignment, assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment not found")
    return assignment


async def _assign(
    db: AsyncSession,
    shift: Shift,
    user_id: uuid.UUID,
    task_id: Optional[uuid.UUID] = None,
    assigned_by: Optional[uuid.UUID] = None,
    notes: Optional[str] = None,
) -> ShiftAssignment:
    """Validate and add one assignment; flushed, not committed."""
    if task_id is not None:
        task = await db.get(ShiftTask, task_id)
        if task is None or task.shift_id != shift.id:
            raise NotFoundError("Task not found")

    start_at, end_at = ensure_utc(shift.start_at), ensure_utc(shift.end_at)
    if await find_conflicts(db, user_id, start_at, end_at):
        raise ConflictError("Volunteer has overlapping assignment", code="SHIFT_CONFLICT")

    limit = get_settings().DAILY_HOURS_LIMIT
    booked = await daily_hours(db, user_id, start_at)
    if booked + shift.duration_hours > limit:
        raise InvalidStateError(
            "Assigning exceeds daily hours limit for volunteer",
            code="DAILY_LIMIT_EXCEEDED",
        )

    if shift.capacity > 0:
        taken = (
            await db.execute(
                select(func.count(ShiftAssignment.id)).where(
                    ShiftAssignment.shift_id == shift.id, ACTIVE_ASSIGNMENT
                )
            )
        ).scalar() or 0
        if taken >= shift.capacity:
            raise CapacityError("Shift is at full capacity")

    assignment = ShiftAssignment(
        shift_id=shift.id,
        task_id=task_id,
        user_id=user_id,
        assigned_by=assigned_by,
        status=AssignmentStatus.ASSIGNED,
        notes=notes,
    )
    db.add(assignment)
    await db.flush()

    await create_notification(
        db,
        user_id,
        type="shift_assigned",
        title="New shift assignment",
        message=f"You have been assigned to {shift.title} on {start_at:%d %b %Y %H:%M} UTC.",
        payload={"shift_id": str(shift.id), "task_id": str(task_id) if task_id else None},
        category="shifts",
        send_email=True,
    )
    return assignment


async def assign_volunteer(
    db: AsyncSession,
    shift: Shift,
    user_id: uuid.UUID,
    task_id: Optional[uuid.UUID] = None,
    assigned_by: Optional[uuid.UUID] = None,
    notes: Optional[str] = None,
) -> ShiftAssignment:
    assignment = await _assign(db, shift, user_id, task_id, assigned_by, notes)
    await db.commit()
    await db.refresh(assignment)
    return assignment


async def bulk_assign(
    db: AsyncSession,
    shift: Shift,
    user_ids: list[uuid.UUID],
    task_id: Optional[uuid.UUID] = None,
    assigned_by: Optional[uuid.UUID] = None,
) -> dict:
    """Assign several volunteers; each failure is reported, not raised."""
    created: list[ShiftAssignment] = []
    errors: list[dict] = []
    for user_id in dict.fromkeys(user_ids):
        try:
            assignment = await _assign(db, shift, user_id, task_id, assigned_by)
        except ServiceError as e:
            errors.append({"user_id": str(user_id), "error": e.detail})
            continue
        await db.commit()
        await db.refresh(assignment)
        created.append(assignment)
    return {"created": created, "errors": errors}


async def set_assignment_status(
    db: AsyncSession, assignment: ShiftAssignment, status: AssignmentStatus
) -> ShiftAssignment:
    """Coordinator transitions: confirm or mark a no-show."""
    allowed = {
        AssignmentStatus.CONFIRMED: (AssignmentStatus.ASSIGNED,),
        AssignmentStatus.NO_SHOW: (AssignmentStatus.ASSIGNED, AssignmentStatus.CONFIRMED),
    }
    if status not in allowed:
        raise InvalidStateError("Status must be confirmed or no_show")
    if assignment.status not in allowed[status]:
        raise InvalidStateError(f"Cannot move a {assignment.status.value} assignment to {status.value}")
    assignment.status = status
    await db.commit()
    await db.refresh(assignment)
    return assignment


async def check_in(db: AsyncSession, assignment: ShiftAssignment) -> ShiftAssignment:
    """Start the shift; the volunteer must meet the organization's mandatory requirements."""
    if assignment.status not in (AssignmentStatus.ASSIGNED, AssignmentStatus.CONFIRMED):
        raise InvalidStateError("Assignment cannot be checked in")
    shift = await db.get(Shift, assignment.shift_id)
    await ensure_compliant(db, assignment.user_id, shift.organization_id, "check in")
    assignment.status = AssignmentStatus.CHECKED_IN
    assignment.checked_in_at = utc_now()
    await db.commit()
    await db.refresh(assignment)
    return assignment


async def check_out(db: AsyncSession, assignment: ShiftAssignment) -> ShiftAssignment:
    """Complete the assignment and log its hours for approval."""
    if assignment.status != AssignmentStatus.CHECKED_IN:
        raise InvalidStateError("Assignment is not checked in")
    now = utc_now()
    checked_in_at = ensure_utc(assignment.checked_in_at)
    hours = round((now - checked_in_at).total_seconds() / 3600, 2)

    assignment.status = AssignmentStatus.COMPLETED
    assignment.checked_out_at = now
    assignment.hours = hours

    shift = await db.get(Shift, assignment.shift_id)
    db.add(
        VolunteerHour(
            user_id=assignment.user_id,
            organization_id=shift.organization_id,
            event_id=shift.event_id,
            shift_assignment_id=assignment.id,
            date=checked_in_at.date(),
            hours=hours,
            status=HoursStatus.PENDING,
            notes=f"Shift: {shift.title}",
        )
    )
    await db.commit()
    await db.refresh(assignment)
    return assignment


async def cancel_assignment(db: AsyncSession, assignment: ShiftAssignment) -> ShiftAssignment:
    if assignment.status in (AssignmentStatus.COMPLETED, AssignmentStatus.CANCELLED):
        raise InvalidStateError(f"Cannot cancel a {assignment.status.value} assignment")
    assignment.status = AssignmentStatus.CANCELLED
    await db.commit()
    await db.refresh(assignment)
    return assignment
