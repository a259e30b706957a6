"""
Overdue loan and maintenance-due notifications.

Runs every five minutes. Overdue loans are claimed with a conditional UPDATE
(assigned -> overdue), so each loan notifies once. Maintenance reminders are
marked with ``maintenance_notified_at`` and repeat only for a new window.
"""

from datetime import timedelta

from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.logging import get_logger
from services.communications_service.services import create_bulk, create_notification
from services.events_service.models import Event
from services.organizations_service.permissions import team_user_ids
from services.resources_service.models import (
    Resource,
    ResourceAssignment,
    ResourceAssignmentStatus,
    ResourceAssignmentType,
    ResourceStatus,
)
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

MAINTENANCE_LEAD = timedelta(days=1)


async def _notify_overdue(db: AsyncSession, assignment: ResourceAssignment) -> None:
    resource = await db.get(Resource, assignment.resource_id)
    payload = {
        "assignment_id": str(assignment.id),
        "resource_id": str(assignment.resource_id),
    }
    if assignment.assignment_type == ResourceAssignmentType.VOLUNTEER:
        await create_notification(
            db,
            assignment.related_id,
            type="resource.assignment.overdue",
            title="Assignment Overdue",
            message=f"Please return {resource.name}; it was due back "
            f"{ensure_utc(assignment.expected_return_at):%d %b %Y %H:%M} UTC.",
            payload=payload,
            category="resources",
            priority="high",
        )
        return

    event = await db.get(Event, assignment.related_id)
    organization_id = event.organization_id if event else resource.organization_id
    await create_bulk(
        db,
        await team_user_ids(db, organization_id),
        type="resource.assignment.event.overdue",
        title="Event Assignment Overdue",
        message=f"{resource.name} lent to "
        f"{event.title if event else 'an event'} has not been returned.",
        payload={**payload, "event_id": str(assignment.related_id)},
        category="resources",
        priority="high",
    )


async def check_overdue_assignments(db: AsyncSession) -> int:
    """Flag loans past their expected return; returns the number flagged."""
    now = utc_now()
    result = await db.execute(
        select(ResourceAssignment.id).where(
            ResourceAssignment.status == ResourceAssignmentStatus.ASSIGNED,
            ResourceAssignment.expected_return_at.is_not(None),
            ResourceAssignment.expected_return_at < now,
        )
    )

    flagged = 0
    for assignment_id in list(result.scalars().all()):
        claimed = await db.execute(
            update(ResourceAssignment)
            .where(
                ResourceAssignment.id == assignment_id,
                ResourceAssignment.status == ResourceAssignmentStatus.ASSIGNED,
            )
            .values(status=ResourceAssignmentStatus.OVERDUE)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            await db.rollback()
            continue
        assignment = await db.get(ResourceAssignment, assignment_id, populate_existing=True)
        try:
            await _notify_overdue(db, assignment)
        except Exception as e:
            await db.rollback()
            logger.warning(f"Failed to notify overdue resource assignment {assignment_id}: {e}")
            continue
        await db.commit()
        flagged += 1

    if flagged:
        logger.info(f"Flagged {flagged} overdue resource assignment(s)")
    return flagged


async def _notify_maintenance(db: AsyncSession, resource: Resource) -> None:
    due = f"{ensure_utc(resource.next_maintenance_at):%d %b %Y}"
    payload = {"resource_id": str(resource.id)}
    if resource.assigned_technician:
        await create_notification(
            db,
            resource.assigned_technician,
            type="resource.maintenance.due",
            title="Maintenance Due",
            message=f"{resource.name} is due for maintenance on {due}.",
            payload=payload,
            category="resources",
        )
    await create_bulk(
        db,
        await team_user_ids(db, resource.organization_id),
        type="resource.maintenance.due.org",
        title="Organization Maintenance Due",
        message=f"{resource.name} is due for maintenance on {due}.",
        payload=payload,
        category="resources",
    )


async def check_maintenance_due(db: AsyncSession) -> int:
    """Remind technicians and org teams of maintenance due within a day."""
    now = utc_now()
    result = await db.execute(
        select(Resource.id, Resource.next_maintenance_at, Resource.maintenance_notified_at).where(
            Resource.status != ResourceStatus.RETIRED,
            Resource.next_maintenance_at.is_not(None),
            Resource.next_maintenance_at <= now + MAINTENANCE_LEAD,
        )
    )

    notified = 0
    for resource_id, next_maintenance_at, notified_at in list(result.all()):
        window_start = ensure_utc(next_maintenance_at) - MAINTENANCE_LEAD
        last = ensure_utc(notified_at)
        if last is not None and last >= window_start:
            continue

        claimed = await db.execute(
            update(Resource)
            .where(
                Resource.id == resource_id,
                or_(
                    Resource.maintenance_notified_at.is_(None),
                    Resource.maintenance_notified_at < window_start,
                ),
            )
            .values(maintenance_notified_at=now)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            await db.rollback()
            continue
        resource = await db.get(Resource, resource_id, populate_existing=True)
        try:
            await _notify_maintenance(db, resource)
        except Exception as e:
            await db.rollback()
            logger.warning(f"Failed to send maintenance reminder for resource {resource_id}: {e}")
            continue
        await db.commit()
        notified += 1

    if notified:
        logger.info(f"Sent maintenance reminders for {notified} resource(s)")
    return notified
