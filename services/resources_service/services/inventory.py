"""
Resource inventory: CRUD, lending and maintenance.

Availability is decremented with a conditional UPDATE so that two concurrent
assignments cannot lend the same last unit.
"""

import uuid
from datetime import datetime, timedelta
from typing import Any, Optional

from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.errors import CapacityError, InvalidStateError, NotFoundError
from libs.common.logging import get_logger
from services.communications_service.services import create_notification
from services.events_service.services.catalog import get_event_or_404
from services.resources_service.models import (
    Resource,
    ResourceAssignment,
    ResourceAssignmentStatus,
    ResourceAssignmentType,
    ResourceStatus,
    ReturnCondition,
)
from services.users_service.models import User
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

ON_LOAN = (ResourceAssignmentStatus.ASSIGNED, ResourceAssignmentStatus.OVERDUE)
UNAVAILABLE = (ResourceStatus.MAINTENANCE, ResourceStatus.RETIRED)


async def get_resource_or_404(
    db: AsyncSession, resource_id: uuid.UUID, organization_id: Optional[uuid.UUID] = None
) -> Resource:
    resource = await db.get(Resource, resource_id)
    if resource is None or (
        organization_id is not None and resource.organization_id != organization_id
    ):
        raise NotFoundError("Resource not found")
    return resource


async def get_resource_assignment_or_404(
    db: AsyncSession, assignment_id: uuid.UUID
) -> ResourceAssignment:
    assignment = await db.get(ResourceAssignment, assignment_id)
    if assignment is None:
        raise NotFoundError("Resource assignment not found")
    return assignment


async def units_on_loan(db: AsyncSession, resource_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(ResourceAssignment.quantity), 0)).where(
            ResourceAssignment.resource_id == resource_id,
            ResourceAssignment.status.in_(ON_LOAN),
        )
    )
    return int(result.scalar() or 0)


async def create_resource(
    db: AsyncSession,
    organization_id: uuid.UUID,
    name: str,
    quantity_total: int = 1,
    next_maintenance_at: Optional[datetime] = None,
    **fields: Any,
) -> Resource:
    resource = Resource(
        organization_id=organization_id,
        name=name,
        quantity_total=quantity_total,
        quantity_available=quantity_total,
        status=ResourceStatus.AVAILABLE,
        next_maintenance_at=ensure_utc(next_maintenance_at),
        **fields,
    )
    db.add(resource)
    await db.commit()
    await db.refresh(resource)
    return resource


async def update_resource(db: AsyncSession, resource: Resource, **fields: Any) -> Resource:
    """Changing ``quantity_total`` shifts availability by the same delta."""
    new_total = fields.pop("quantity_total", None)
    if new_total is not None and new_total != resource.quantity_total:
        on_loan = await units_on_loan(db, resource.id)
        if new_total < on_loan:
            raise InvalidStateError(f"{on_loan} unit(s) are on loan; total cannot go below that")
        resource.quantity_available = max(
            0, resource.quantity_available + new_total - resource.quantity_total
        )
        resource.quantity_total = new_total

    if "next_maintenance_at" in fields:
        fields["next_maintenance_at"] = ensure_utc(fields["next_maintenance_at"])
        resource.maintenance_notified_at = None
    for name, value in fields.items():
        setattr(resource, name, value)

    if resource.status in (ResourceStatus.AVAILABLE, ResourceStatus.IN_USE):
        resource.status = (
            ResourceStatus.IN_USE if resource.quantity_available == 0 else ResourceStatus.AVAILABLE
        )
    await db.commit()
    await db.refresh(resource)
    return resource


async def delete_resource(db: AsyncSession, resource: Resource) -> None:
    if await units_on_loan(db, resource.id):
        raise InvalidStateError("Resource has units on loan; return them first")
    await db.delete(resource)
    await db.commit()


async def assign_resource(
    db: AsyncSession,
    resource: Resource,
    assignment_type: ResourceAssignmentType,
    related_id: uuid.UUID,
    quantity: int = 1,
    expected_return_at: Optional[datetime] = None,
    assigned_by: Optional[uuid.UUID] = None,
    notes: Optional[str] = None,
) -> ResourceAssignment:
    """Lend ``quantity`` units to a volunteer or an event of the resource's organization."""
    if quantity < 1:
        raise InvalidStateError("Quantity must be at least 1")
    if resource.status in UNAVAILABLE:
        raise InvalidStateError(f"Resource is {resource.status.value}")
    if assignment_type == ResourceAssignmentType.EVENT:
        await get_event_or_404(db, related_id, resource.organization_id)
    elif await db.get(User, related_id) is None:
        raise NotFoundError("Volunteer not found")

    resource_id = resource.id
    claimed = await db.execute(
        update(Resource)
        .where(
            Resource.id == resource_id,
            Resource.quantity_available >= quantity,
            Resource.status.not_in(UNAVAILABLE),
        )
        .values(
            quantity_available=Resource.quantity_available - quantity,
            updated_at=utc_now(),
        )
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        await db.rollback()
        raise CapacityError("Not enough units available")
    await db.execute(
        update(Resource)
        .where(Resource.id == resource_id, Resource.quantity_available == 0)
        .values(status=ResourceStatus.IN_USE)
        .execution_options(synchronize_session=False)
    )

    assignment = ResourceAssignment(
        resource_id=resource_id,
        assignment_type=assignment_type,
        related_id=related_id,
        quantity=quantity,
        status=ResourceAssignmentStatus.ASSIGNED,
        assigned_by=assigned_by,
        assigned_at=utc_now(),
        expected_return_at=ensure_utc(expected_return_at),
        notes=notes,
    )
    db.add(assignment)
    await db.flush()

    if assignment_type == ResourceAssignmentType.VOLUNTEER:
        await create_notification(
            db,
            related_id,
            type="resource.assigned",
            title="Equipment assigned",
            message=f"{quantity} x {resource.name} has been assigned to you.",
            payload={"assignment_id": str(assignment.id), "resource_id": str(resource_id)},
            category="resources",
        )
    await db.commit()
    await db.refresh(assignment)
    await db.refresh(resource)
    logger.info(f"Resource {resource_id} lent x{quantity} to {assignment_type.value} {related_id}")
    return assignment


async def return_resource(
    db: AsyncSession,
    assignment: ResourceAssignment,
    condition: ReturnCondition = ReturnCondition.GOOD,
    notes: Optional[str] = None,
) -> ResourceAssignment:
    """Close the loan. Damaged units are held back and the resource goes to maintenance."""
    if assignment.status not in ON_LOAN:
        raise InvalidStateError(f"Cannot return a {assignment.status.value} assignment")

    resource = await db.get(Resource, assignment.resource_id)
    assignment.status = ResourceAssignmentStatus.RETURNED
    assignment.returned_at = utc_now()
    assignment.condition = condition
    if notes:
        assignment.notes = notes

    if condition == ReturnCondition.DAMAGED:
        resource.status = ResourceStatus.MAINTENANCE
    else:
        resource.quantity_available = min(
            resource.quantity_total, resource.quantity_available + assignment.quantity
        )
        if resource.status == ResourceStatus.IN_USE and resource.quantity_available > 0:
            resource.status = ResourceStatus.AVAILABLE

    await db.commit()
    await db.refresh(assignment)
    return assignment


async def cancel_resource_assignment(
    db: AsyncSession, assignment: ResourceAssignment
) -> ResourceAssignment:
    if assignment.status != ResourceAssignmentStatus.ASSIGNED:
        raise InvalidStateError(f"Cannot cancel a {assignment.status.value} assignment")
    resource = await db.get(Resource, assignment.resource_id)
    assignment.status = ResourceAssignmentStatus.CANCELLED
    resource.quantity_available = min(
        resource.quantity_total, resource.quantity_available + assignment.quantity
    )
    if resource.status == ResourceStatus.IN_USE:
        resource.status = ResourceStatus.AVAILABLE
    await db.commit()
    await db.refresh(assignment)
    return assignment


async def record_maintenance(
    db: AsyncSession,
    resource: Resource,
    interval_days: Optional[int] = None,
    technician_id: Optional[uuid.UUID] = None,
) -> Resource:
    """Log completed maintenance and schedule the next one ``interval_days`` out.

    Availability is recomputed from the loans still open, which puts units
    held back for repair into circulation again.
    """
    if resource.status == ResourceStatus.RETIRED:
        raise InvalidStateError("Resource is retired")
    now = utc_now()
    resource.last_maintenance_at = now
    resource.next_maintenance_at = now + timedelta(days=interval_days) if interval_days else None
    resource.maintenance_notified_at = None
    if technician_id is not None:
        resource.assigned_technician = technician_id

    on_loan = await units_on_loan(db, resource.id)
    resource.quantity_available = max(0, resource.quantity_total - on_loan)
    resource.status = (
        ResourceStatus.IN_USE if resource.quantity_available == 0 else ResourceStatus.AVAILABLE
    )
    await db.commit()
    await db.refresh(resource)
    return resource
