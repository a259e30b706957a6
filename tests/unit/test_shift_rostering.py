"""Unit tests for shift rostering: conflicts, daily limit, capacity, check-in/out.

Tests call the shift service functions directly with the db_session fixture.
"""

from datetime import datetime, timedelta, timezone

import pytest
from libs.common.errors import CapacityError, ConflictError, InvalidStateError
from services.communications_service.models import Notification
from services.volunteer_service.models import AssignmentStatus, HoursStatus, VolunteerHour
from services.volunteer_service.services.shifts import (
    assign_volunteer,
    bulk_assign,
    cancel_assignment,
    check_in,
    check_out,
    create_recurring_shifts,
    daily_hours,
    describe_conflicts,
    find_conflicts,
    set_assignment_status,
)
from sqlalchemy import select
from tests.factories import OrganizationFactory, ShiftFactory, UserFactory, persist

DAY = datetime(2030, 6, 3, tzinfo=timezone.utc)


def _at(hour: int) -> datetime:
    return DAY.replace(hour=hour)


async def _setup(db):
    org = OrganizationFactory.create()
    volunteer = UserFactory.create()
    await persist(db, org, volunteer)
    return org, volunteer


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_overlapping_assignment_is_rejected(db_session):
    """A volunteer cannot hold two shifts that overlap."""
    org, volunteer = await _setup(db_session)
    morning = ShiftFactory.create(org.id, start_at=_at(9), end_at=_at(12))
    overlap = ShiftFactory.create(org.id, start_at=_at(11), end_at=_at(14))
    await persist(db_session, morning, overlap)

    await assign_volunteer(db_session, morning, volunteer.id)

    with pytest.raises(ConflictError) as exc:
        await assign_volunteer(db_session, overlap, volunteer.id)
    assert exc.value.code == "SHIFT_CONFLICT"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_touching_shifts_do_not_conflict(db_session):
    """A shift ending at 12:00 and one starting at 12:00 can both be held."""
    org, volunteer = await _setup(db_session)
    morning = ShiftFactory.create(org.id, start_at=_at(9), end_at=_at(12))
    afternoon = ShiftFactory.create(org.id, start_at=_at(12), end_at=_at(15))
    await persist(db_session, morning, afternoon)

    await assign_volunteer(db_session, morning, volunteer.id)
    assignment = await assign_volunteer(db_session, afternoon, volunteer.id)

    assert assignment.status == AssignmentStatus.ASSIGNED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancelled_assignments_do_not_conflict(db_session):
    org, volunteer = await _setup(db_session)
    first = ShiftFactory.create(org.id, start_at=_at(9), end_at=_at(12))
    second = ShiftFactory.create(org.id, start_at=_at(10), end_at=_at(13))
    await persist(db_session, first, second)

    assignment = await assign_volunteer(db_session, first, volunteer.id)
    await cancel_assignment(db_session, assignment)

    assert await find_conflicts(db_session, volunteer.id, _at(10), _at(13)) == []
    await assign_volunteer(db_session, second, volunteer.id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_describe_conflicts_message(db_session):
    org, volunteer = await _setup(db_session)
    shift = ShiftFactory.create(org.id, title="Gate", start_at=_at(9), end_at=_at(12))
    await persist(db_session, shift)
    await assign_volunteer(db_session, shift, volunteer.id)

    conflicts = await find_conflicts(db_session, volunteer.id, _at(8), _at(10))

    assert describe_conflicts(conflicts) == "Conflict with: Gate (03 Jun 2030 09:00 - 12:00)"
    assert describe_conflicts([]) == "No conflicts detected"


# ---------------------------------------------------------------------------
# Daily limit and capacity
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_daily_hours_limit_blocks_thirteenth_hour(db_session):
    """Default limit is 12 rostered hours per UTC day."""
    org, volunteer = await _setup(db_session)
    long_shift = ShiftFactory.create(org.id, start_at=_at(6), end_at=_at(16))
    evening = ShiftFactory.create(org.id, start_at=_at(17), end_at=_at(20))
    await persist(db_session, long_shift, evening)

    await assign_volunteer(db_session, long_shift, volunteer.id)
    assert await daily_hours(db_session, volunteer.id, _at(0)) == 10

    with pytest.raises(InvalidStateError) as exc:
        await assign_volunteer(db_session, evening, volunteer.id)
    assert exc.value.code == "DAILY_LIMIT_EXCEEDED"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_daily_hours_limit_allows_exactly_twelve(db_session):
    org, volunteer = await _setup(db_session)
    first = ShiftFactory.create(org.id, start_at=_at(6), end_at=_at(14))
    second = ShiftFactory.create(org.id, start_at=_at(15), end_at=_at(19))
    await persist(db_session, first, second)

    await assign_volunteer(db_session, first, volunteer.id)
    await assign_volunteer(db_session, second, volunteer.id)

    assert await daily_hours(db_session, volunteer.id, _at(0)) == 12


@pytest.mark.asyncio
@pytest.mark.unit
async def test_full_shift_rejects_assignment(db_session):
    org = OrganizationFactory.create()
    first, second = UserFactory.create(), UserFactory.create()
    shift = ShiftFactory.create(org.id, capacity=1, start_at=_at(9), end_at=_at(12))
    await persist(db_session, org, first, second, shift)

    await assign_volunteer(db_session, shift, first.id)

    with pytest.raises(CapacityError):
        await assign_volunteer(db_session, shift, second.id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_bulk_assign_reports_failures_per_volunteer(db_session):
    org = OrganizationFactory.create()
    users = [UserFactory.create() for _ in range(3)]
    shift = ShiftFactory.create(org.id, capacity=2, start_at=_at(9), end_at=_at(12))
    await persist(db_session, org, *users, shift)

    result = await bulk_assign(db_session, shift, [u.id for u in users])

    assert len(result["created"]) == 2
    assert result["errors"] == [
        {"user_id": str(users[2].id), "error": "Shift is at full capacity"}
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assignment_notifies_volunteer(db_session):
    org, volunteer = await _setup(db_session)
    shift = ShiftFactory.create(org.id, start_at=_at(9), end_at=_at(12))
    await persist(db_session, shift)

    await assign_volunteer(db_session, shift, volunteer.id)

    notification = (
        await db_session.execute(
            select(Notification).where(Notification.user_id == volunteer.id)
        )
    ).scalar_one()
    assert notification.type == "shift_assigned"
    assert notification.payload["shift_id"] == str(shift.id)


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_in_then_out_logs_pending_hours(db_session):
    org, volunteer = await _setup(db_session)
    shift = ShiftFactory.create(org.id, start_at=_at(9), end_at=_at(12))
    await persist(db_session, shift)
    assignment = await assign_volunteer(db_session, shift, volunteer.id)

    await check_in(db_session, assignment)
    assignment.checked_in_at = datetime.now(timezone.utc) - timedelta(hours=2)
    await db_session.commit()
    await check_out(db_session, assignment)

    assert assignment.status == AssignmentStatus.COMPLETED
    assert assignment.hours == pytest.approx(2.0, abs=0.01)
    logged = (
        await db_session.execute(
            select(VolunteerHour).where(VolunteerHour.shift_assignment_id == assignment.id)
        )
    ).scalar_one()
    assert logged.status == HoursStatus.PENDING
    assert logged.organization_id == org.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_out_requires_check_in(db_session):
    org, volunteer = await _setup(db_session)
    shift = ShiftFactory.create(org.id, start_at=_at(9), end_at=_at(12))
    await persist(db_session, shift)
    assignment = await assign_volunteer(db_session, shift, volunteer.id)

    with pytest.raises(InvalidStateError):
        await check_out(db_session, assignment)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_no_show_only_from_open_assignment(db_session):
    org, volunteer = await _setup(db_session)
    shift = ShiftFactory.create(org.id, start_at=_at(9), end_at=_at(12))
    await persist(db_session, shift)
    assignment = await assign_volunteer(db_session, shift, volunteer.id)

    await set_assignment_status(db_session, assignment, AssignmentStatus.CONFIRMED)
    await set_assignment_status(db_session, assignment, AssignmentStatus.NO_SHOW)

    with pytest.raises(InvalidStateError):
        await set_assignment_status(db_session, assignment, AssignmentStatus.CONFIRMED)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_recurring_shifts(db_session):
    org = OrganizationFactory.create()
    await persist(db_session, org)

    shifts = await create_recurring_shifts(
        db_session,
        org.id,
        None,
        "weekly:mon",
        until=_at(9) + timedelta(days=21),
        title="Food bank",
        start_at=_at(9),
        end_at=_at(12),
    )

    assert len(shifts) == 4
    assert all(s.is_recurring and s.recurrence_rule == "WEEKLY:MON" for s in shifts)
    assert shifts[0].template_name == "Food bank"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_recurring_shifts_rejects_bad_rule(db_session):
    org = OrganizationFactory.create()
    await persist(db_session, org)

    with pytest.raises(InvalidStateError):
        await create_recurring_shifts(
            db_session,
            org.id,
            None,
            "FORTNIGHTLY",
            until=_at(9) + timedelta(days=21),
            title="Food bank",
            start_at=_at(9),
            end_at=_at(12),
        )
