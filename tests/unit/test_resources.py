"""Unit tests for resource lending, returns, maintenance and the notifier jobs."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from libs.common.errors import CapacityError, InvalidStateError, NotFoundError
from services.communications_service.models import Notification
from services.resources_service.models import (
    Resource,
    ResourceAssignmentStatus,
    ResourceAssignmentType,
    ResourceStatus,
    ReturnCondition,
)
from services.resources_service.services import (
    assign_resource,
    cancel_resource_assignment,
    check_maintenance_due,
    check_overdue_assignments,
    delete_resource,
    record_maintenance,
    return_resource,
    update_resource,
)
from services.resources_service.services import notifier
from sqlalchemy import select
from tests.factories import (
    EventFactory,
    OrganizationFactory,
    ResourceAssignmentFactory,
    ResourceFactory,
    TeamMemberFactory,
    UserFactory,
    persist,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _setup(db, **resource_fields):
    org = OrganizationFactory.create()
    volunteer = UserFactory.create()
    resource = ResourceFactory.create(org.id, **resource_fields)
    await persist(db, org, volunteer, resource)
    return org, volunteer, resource


async def _notification_types(db, user_id) -> list[str]:
    result = await db.execute(select(Notification.type).where(Notification.user_id == user_id))
    return list(result.scalars())


# ---------------------------------------------------------------------------
# Lending
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_decrements_availability_and_notifies(db_session):
    _, volunteer, resource = await _setup(db_session)

    assignment = await assign_resource(
        db_session, resource, ResourceAssignmentType.VOLUNTEER, volunteer.id, quantity=2
    )

    assert assignment.status == ResourceAssignmentStatus.ASSIGNED
    assert resource.quantity_available == 3
    assert resource.status == ResourceStatus.AVAILABLE
    assert await _notification_types(db_session, volunteer.id) == ["resource.assigned"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_last_units_mark_resource_in_use(db_session):
    _, volunteer, resource = await _setup(db_session, quantity_total=2, quantity_available=2)

    await assign_resource(
        db_session, resource, ResourceAssignmentType.VOLUNTEER, volunteer.id, quantity=2
    )

    assert resource.quantity_available == 0
    assert resource.status == ResourceStatus.IN_USE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_more_than_available_fails(db_session):
    _, volunteer, resource = await _setup(db_session, quantity_total=1, quantity_available=1)

    with pytest.raises(CapacityError):
        await assign_resource(
            db_session, resource, ResourceAssignmentType.VOLUNTEER, volunteer.id, quantity=2
        )

    await db_session.refresh(resource)
    assert resource.quantity_available == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_to_event_of_other_org_fails(db_session):
    _, _, resource = await _setup(db_session)
    foreign_event = EventFactory.create(OrganizationFactory.create().id)
    await persist(db_session, foreign_event)

    with pytest.raises(NotFoundError):
        await assign_resource(
            db_session, resource, ResourceAssignmentType.EVENT, foreign_event.id
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_resource_in_maintenance_cannot_be_lent(db_session):
    _, volunteer, resource = await _setup(db_session, status=ResourceStatus.MAINTENANCE)

    with pytest.raises(InvalidStateError):
        await assign_resource(
            db_session, resource, ResourceAssignmentType.VOLUNTEER, volunteer.id
        )


# ---------------------------------------------------------------------------
# Returns and cancellation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_return_in_good_condition_restores_units(db_session):
    _, volunteer, resource = await _setup(db_session, quantity_total=1, quantity_available=1)
    assignment = await assign_resource(
        db_session, resource, ResourceAssignmentType.VOLUNTEER, volunteer.id
    )

    await return_resource(db_session, assignment, ReturnCondition.GOOD)

    assert assignment.status == ResourceAssignmentStatus.RETURNED
    await db_session.refresh(resource)
    assert resource.quantity_available == 1
    assert resource.status == ResourceStatus.AVAILABLE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_damaged_return_sends_resource_to_maintenance(db_session):
    _, volunteer, resource = await _setup(db_session)
    assignment = await assign_resource(
        db_session, resource, ResourceAssignmentType.VOLUNTEER, volunteer.id
    )

    await return_resource(db_session, assignment, ReturnCondition.DAMAGED)
    await db_session.refresh(resource)

    assert resource.status == ResourceStatus.MAINTENANCE
    assert resource.quantity_available == 4

    # Maintenance puts the held-back unit back into circulation
    await record_maintenance(db_session, resource, interval_days=90)
    assert resource.status == ResourceStatus.AVAILABLE
    assert resource.quantity_available == 5
    assert resource.next_maintenance_at is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_returned_assignment_cannot_be_returned_again(db_session):
    _, volunteer, resource = await _setup(db_session)
    assignment = await assign_resource(
        db_session, resource, ResourceAssignmentType.VOLUNTEER, volunteer.id
    )
    await return_resource(db_session, assignment)

    with pytest.raises(InvalidStateError):
        await return_resource(db_session, assignment)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_restores_units(db_session):
    _, volunteer, resource = await _setup(db_session, quantity_total=1, quantity_available=1)
    assignment = await assign_resource(
        db_session, resource, ResourceAssignmentType.VOLUNTEER, volunteer.id
    )

    await cancel_resource_assignment(db_session, assignment)
    await db_session.refresh(resource)

    assert assignment.status == ResourceAssignmentStatus.CANCELLED
    assert resource.quantity_available == 1
    assert resource.status == ResourceStatus.AVAILABLE


# ---------------------------------------------------------------------------
# Updates and deletion
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_total_cannot_drop_below_units_on_loan(db_session):
    _, volunteer, resource = await _setup(db_session)
    await assign_resource(
        db_session, resource, ResourceAssignmentType.VOLUNTEER, volunteer.id, quantity=3
    )

    with pytest.raises(InvalidStateError):
        await update_resource(db_session, resource, quantity_total=2)

    await update_resource(db_session, resource, quantity_total=8)
    assert resource.quantity_available == 5


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_blocked_while_on_loan(db_session):
    _, volunteer, resource = await _setup(db_session)
    assignment = await assign_resource(
        db_session, resource, ResourceAssignmentType.VOLUNTEER, volunteer.id
    )

    with pytest.raises(InvalidStateError):
        await delete_resource(db_session, resource)

    await return_resource(db_session, assignment)
    await delete_resource(db_session, resource)


# ---------------------------------------------------------------------------
# Notifier jobs
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_overdue_volunteer_loan_flagged_once(db_session):
    _, volunteer, resource = await _setup(db_session)
    overdue = ResourceAssignmentFactory.create(
        resource.id, volunteer.id, expected_return_at=_now() - timedelta(hours=2)
    )
    not_due = ResourceAssignmentFactory.create(
        resource.id, volunteer.id, expected_return_at=_now() + timedelta(days=2)
    )
    await persist(db_session, overdue, not_due)

    assert await check_overdue_assignments(db_session) == 1
    assert await check_overdue_assignments(db_session) == 0

    await db_session.refresh(overdue)
    assert overdue.status == ResourceAssignmentStatus.OVERDUE
    assert await _notification_types(db_session, volunteer.id) == [
        "resource.assignment.overdue"
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_overdue_event_loan_notifies_team(db_session):
    org, coordinator, resource = await _setup(db_session)
    event = EventFactory.create(org.id)
    await persist(
        db_session,
        event,
        TeamMemberFactory.create(org.id, coordinator.id),
        ResourceAssignmentFactory.create(
            resource.id,
            event.id,
            assignment_type=ResourceAssignmentType.EVENT,
            expected_return_at=_now() - timedelta(minutes=5),
        ),
    )

    assert await check_overdue_assignments(db_session) == 1
    assert await _notification_types(db_session, coordinator.id) == [
        "resource.assignment.event.overdue"
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_maintenance_due_reminds_technician_and_team_once(db_session):
    org = OrganizationFactory.create()
    technician, coordinator = UserFactory.create(), UserFactory.create()
    resource = ResourceFactory.create(
        org.id,
        assigned_technician=technician.id,
        next_maintenance_at=_now() + timedelta(hours=12),
    )
    far_off = ResourceFactory.create(org.id, next_maintenance_at=_now() + timedelta(days=30))
    await persist(
        db_session,
        org,
        technician,
        coordinator,
        resource,
        far_off,
        TeamMemberFactory.create(org.id, coordinator.id),
    )

    assert await check_maintenance_due(db_session) == 1
    assert await check_maintenance_due(db_session) == 0

    assert await _notification_types(db_session, technician.id) == ["resource.maintenance.due"]
    assert await _notification_types(db_session, coordinator.id) == [
        "resource.maintenance.due.org"
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_maintenance_reminder_failure_does_not_stop_the_sweep(db_session):
    org = OrganizationFactory.create()
    broken_inbox, technician = UserFactory.create(), UserFactory.create()
    first = ResourceFactory.create(
        org.id,
        assigned_technician=broken_inbox.id,
        next_maintenance_at=_now() + timedelta(hours=6),
    )
    second = ResourceFactory.create(
        org.id,
        assigned_technician=technician.id,
        next_maintenance_at=_now() + timedelta(hours=12),
    )
    await persist(db_session, org, broken_inbox, technician, first, second)
    broken_id, technician_id, first_id = broken_inbox.id, technician.id, first.id

    create_notification = notifier.create_notification

    async def flaky_create(db, user_id, **kwargs):
        if user_id == broken_id:
            raise RuntimeError("inbox unavailable")
        return await create_notification(db, user_id, **kwargs)

    with patch(
        "services.resources_service.services.notifier.create_notification",
        new=flaky_create,
    ):
        assert await check_maintenance_due(db_session) == 1

    assert await _notification_types(db_session, technician_id) == ["resource.maintenance.due"]
    assert await _notification_types(db_session, broken_id) == []
    skipped = await db_session.get(Resource, first_id, populate_existing=True)
    assert skipped.maintenance_notified_at is None
