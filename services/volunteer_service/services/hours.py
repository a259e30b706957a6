"""Logged volunteer hours: submission, approval and summaries."""

import uuid
from datetime import date
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.errors import InvalidStateError, NotFoundError
from libs.common.logging import get_logger
from services.communications_service.services.notifications import create_notification
from services.engagement_service.services.evaluation import evaluate_for_user
from services.organizations_service.models import MembershipStatus, OrganizationVolunteer
from services.volunteer_service.models import HoursStatus, VolunteerHour
from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

DEFAULT_REJECTION_REASON = "Rejected by organization"


async def log_hours(
    db: AsyncSession,
    user_id: uuid.UUID,
    organization_id: uuid.UUID,
    date: date,
    hours: float,
    event_id: Optional[uuid.UUID] = None,
    notes: Optional[str] = None,
) -> VolunteerHour:
    """Volunteers may only log hours with organizations they volunteer for."""
    membership = (
        await db.execute(
            select(OrganizationVolunteer.id).where(
                OrganizationVolunteer.organization_id == organization_id,
                OrganizationVolunteer.user_id == user_id,
                OrganizationVolunteer.status == MembershipStatus.ACTIVE,
            )
        )
    ).scalar_one_or_none()
    if membership is None:
        raise InvalidStateError("You are not an active volunteer of this organization")
    if date > utc_now().date():
        raise InvalidStateError("Cannot log hours for a future date")

    entry = VolunteerHour(
        user_id=user_id,
        organization_id=organization_id,
        event_id=event_id,
        date=date,
        hours=hours,
        status=HoursStatus.PENDING,
        notes=notes,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


def pending_query(
    organization_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Select:
    query = select(VolunteerHour).where(
        VolunteerHour.organization_id == organization_id,
        VolunteerHour.status == HoursStatus.PENDING,
    )
    if user_id:
        query = query.where(VolunteerHour.user_id == user_id)
    if start_date:
        query = query.where(VolunteerHour.date >= start_date)
    if end_date:
        query = query.where(VolunteerHour.date <= end_date)
    return query.order_by(VolunteerHour.date.desc())


async def get_hours_or_404(
    db: AsyncSession, hours_id: uuid.UUID, organization_id: Optional[uuid.UUID] = None
) -> VolunteerHour:
    entry = await db.get(VolunteerHour, hours_id)
    if entry is None or (organization_id is not None and entry.organization_id != organization_id):
        raise NotFoundError("Hour log not found")
    return entry


async def _evaluate_achievements(db: AsyncSession, user_ids: set[uuid.UUID]) -> None:
    for user_id in user_ids:
        try:
            await evaluate_for_user(db, user_id)
        except Exception as e:
            await db.rollback()
            logger.error(f"Achievement evaluation failed for user {user_id}: {e}")


async def approve_hours(
    db: AsyncSession,
    entry: VolunteerHour,
    approver_id: uuid.UUID,
    notes: Optional[str] = None,
) -> VolunteerHour:
    entry.status = HoursStatus.APPROVED
    entry.approved_by = approver_id
    entry.approved_at = utc_now()
    entry.rejection_reason = None
    if notes:
        entry.notes = notes
    await create_notification(
        db,
        entry.user_id,
        type="hours_approved",
        title="Hours approved",
        message=f"{entry.hours:g} hour(s) on {entry.date:%d %b %Y} were approved.",
        payload={"volunteer_hour_id": str(entry.id)},
        category="hours",
    )
    await db.commit()
    entry_id, user_id = entry.id, entry.user_id

    await _evaluate_achievements(db, {user_id})
    return await db.get(VolunteerHour, entry_id, populate_existing=True)


async def reject_hours(
    db: AsyncSession,
    entry: VolunteerHour,
    approver_id: uuid.UUID,
    reason: Optional[str] = None,
) -> VolunteerHour:
    entry.status = HoursStatus.REJECTED
    entry.rejection_reason = reason or DEFAULT_REJECTION_REASON
    entry.approved_by = approver_id
    entry.approved_at = utc_now()
    await create_notification(
        db,
        entry.user_id,
        type="hours_rejected",
        title="Hours not approved",
        message=entry.rejection_reason,
        payload={"volunteer_hour_id": str(entry.id)},
        category="hours",
    )
    await db.commit()
    await db.refresh(entry)
    return entry


async def bulk_approve(
    db: AsyncSession,
    organization_id: uuid.UUID,
    hours_ids: list[uuid.UUID],
    approver_id: uuid.UUID,
) -> int:
    """All-or-nothing: every id must belong to the organization."""
    requested = set(hours_ids)
    rows = (
        await db.execute(
            select(VolunteerHour.id, VolunteerHour.user_id).where(
                VolunteerHour.id.in_(requested),
                VolunteerHour.organization_id == organization_id,
            )
        )
    ).all()
    if len(rows) != len(requested):
        raise InvalidStateError(
            f"Some hour logs do not belong to this organization "
            f"({len(rows)} of {len(requested)} valid)"
        )

    await db.execute(
        update(VolunteerHour)
        .where(VolunteerHour.id.in_(requested))
        .values(
            status=HoursStatus.APPROVED,
            approved_by=approver_id,
            approved_at=utc_now(),
            rejection_reason=None,
        )
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    await _evaluate_achievements(db, {user_id for _, user_id in rows})
    return len(rows)


async def hours_summary(db: AsyncSession, user_id: uuid.UUID) -> dict:
    """Approved and pending totals plus approved hours per organization."""
    totals = dict(
        (
            await db.execute(
                select(VolunteerHour.status, func.coalesce(func.sum(VolunteerHour.hours), 0))
                .where(VolunteerHour.user_id == user_id)
                .group_by(VolunteerHour.status)
            )
        ).all()
    )
    per_org = (
        await db.execute(
            select(VolunteerHour.organization_id, func.sum(VolunteerHour.hours))
            .where(
                VolunteerHour.user_id == user_id,
                VolunteerHour.status == HoursStatus.APPROVED,
            )
            .group_by(VolunteerHour.organization_id)
        )
    ).all()
    return {
        "user_id": user_id,
        "approved_hours": float(totals.get(HoursStatus.APPROVED, 0) or 0),
        "pending_hours": float(totals.get(HoursStatus.PENDING, 0) or 0),
        "rejected_hours": float(totals.get(HoursStatus.REJECTED, 0) or 0),
        "by_organization": [
            {"organization_id": org_id, "hours": float(total or 0)} for org_id, total in per_org
        ],
    }
