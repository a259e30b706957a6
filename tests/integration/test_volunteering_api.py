"""Integration tests for opportunities, applications, shifts and hours."""

from datetime import datetime, timedelta, timezone

import pytest
from services.gateway_service.app.main import app
from tests.conftest import make_user, override_auth
from tests.factories import (
    ApplicationFactory,
    OpportunityFactory,
    OrganizationFactory,
    OrganizationVolunteerFactory,
    ShiftFactory,
    TeamMemberFactory,
    UserFactory,
    VolunteerHourFactory,
    persist,
)


def _today():
    return datetime.now(timezone.utc).date()


async def _org_with_manager_and_volunteer(db):
    org = OrganizationFactory.create()
    manager, volunteer = UserFactory.create(), UserFactory.create()
    await persist(
        db,
        org,
        manager,
        volunteer,
        TeamMemberFactory.create(org.id, manager.id),
        OrganizationVolunteerFactory.create(org.id, volunteer.id),
    )
    return org, manager, volunteer


# ---------------------------------------------------------------------------
# Opportunities and applications
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_opportunity_lifecycle_and_application(client, db_session):
    """Draft -> published -> applied -> accepted."""
    org, manager, volunteer = await _org_with_manager_and_volunteer(db_session)
    start = datetime.now(timezone.utc) + timedelta(days=3)

    with override_auth(app, make_user(manager)):
        created = await client.post(
            f"/api/v1/organizations/{org.id}/opportunities",
            json={
                "title": "Pantry Packing",
                "start_at": start.isoformat(),
                "end_at": (start + timedelta(hours=3)).isoformat(),
                "capacity": 2,
            },
        )
        assert created.status_code == 201
        opportunity_id = created.json()["id"]
        assert created.json()["status"] == "draft"

    with override_auth(app, make_user(volunteer)):
        too_early = await client.post(f"/api/v1/opportunities/{opportunity_id}/apply")
    assert too_early.status_code == 400

    with override_auth(app, make_user(manager)):
        published = await client.post(
            f"/api/v1/organizations/{org.id}/opportunities/{opportunity_id}/publish"
        )
    assert published.json()["status"] == "published"

    with override_auth(app, make_user(volunteer)):
        applied = await client.post(
            f"/api/v1/opportunities/{opportunity_id}/apply", json={"notes": "Free all day"}
        )
        assert applied.status_code == 201
        duplicate = await client.post(f"/api/v1/opportunities/{opportunity_id}/apply")
        assert duplicate.status_code == 409

    with override_auth(app, make_user(manager)):
        decided = await client.patch(
            f"/api/v1/applications/{applied.json()['id']}", json={"status": "accepted"}
        )
    assert decided.status_code == 200
    assert decided.json()["status"] == "accepted"

    with override_auth(app, make_user(volunteer)):
        mine = await client.get("/api/v1/applications/me")
    assert mine.json()["items"][0]["status"] == "accepted"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_opportunity_end_before_start_is_rejected(client, db_session):
    org, manager, _ = await _org_with_manager_and_volunteer(db_session)
    start = datetime.now(timezone.utc) + timedelta(days=3)

    with override_auth(app, make_user(manager)):
        response = await client.post(
            f"/api/v1/organizations/{org.id}/opportunities",
            json={
                "title": "Backwards",
                "start_at": start.isoformat(),
                "end_at": (start - timedelta(hours=1)).isoformat(),
            },
        )

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_volunteer_cannot_decide_applications(client, db_session):
    org, _, volunteer = await _org_with_manager_and_volunteer(db_session)
    opportunity = OpportunityFactory.create(org.id)
    application = ApplicationFactory.create(opportunity.id, volunteer.id)
    await persist(db_session, opportunity, application)

    with override_auth(app, make_user(volunteer)):
        response = await client.patch(
            f"/api/v1/applications/{application.id}", json={"status": "accepted"}
        )

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_bulk_application_decision(client, db_session):
    org, manager, volunteer = await _org_with_manager_and_volunteer(db_session)
    other = UserFactory.create()
    opportunity = OpportunityFactory.create(org.id, capacity=1)
    first = ApplicationFactory.create(opportunity.id, volunteer.id)
    second = ApplicationFactory.create(opportunity.id, other.id)
    await persist(db_session, other, opportunity, first, second)

    with override_auth(app, make_user(manager)):
        response = await client.post(
            f"/api/v1/organizations/{org.id}/applications/bulk",
            json={"ids": [str(first.id), str(second.id)], "status": "accepted"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["updated"] == [str(first.id)]
    assert body["errors"] == [
        {"id": str(second.id), "error": "Opportunity is at full capacity"}
    ]


# ---------------------------------------------------------------------------
# Shifts and assignments
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_shift_roster_check_in_and_out(client, db_session):
    org, manager, volunteer = await _org_with_manager_and_volunteer(db_session)
    start = (datetime.now(timezone.utc) + timedelta(days=2)).replace(
        hour=9, minute=0, second=0, microsecond=0
    )

    with override_auth(app, make_user(manager)):
        shift = await client.post(
            f"/api/v1/organizations/{org.id}/shifts",
            json={
                "title": "Warehouse sort",
                "start_at": start.isoformat(),
                "end_at": (start + timedelta(hours=4)).isoformat(),
                "capacity": 3,
            },
        )
        assert shift.status_code == 201
        shift_id = shift.json()["id"]

        assigned = await client.post(
            f"/api/v1/organizations/{org.id}/shifts/{shift_id}/assignments",
            json={"user_id": str(volunteer.id)},
        )
        assert assigned.status_code == 201
        assignment_id = assigned.json()["id"]

        check = await client.post(
            f"/api/v1/organizations/{org.id}/shifts/conflict-check",
            json={
                "user_id": str(volunteer.id),
                "start_at": (start + timedelta(hours=1)).isoformat(),
                "end_at": (start + timedelta(hours=2)).isoformat(),
            },
        )
        assert check.json()["has_conflict"] is True
        assert check.json()["conflicts"][0]["id"] == shift_id

    with override_auth(app, make_user(volunteer)):
        checked_in = await client.post(f"/api/v1/assignments/{assignment_id}/check-in")
        assert checked_in.json()["status"] == "checked_in"
        checked_out = await client.post(f"/api/v1/assignments/{assignment_id}/check-out")
        assert checked_out.json()["status"] == "completed"

        hours = await client.get("/api/v1/hours/me")
    assert hours.json()["total"] == 1
    assert hours.json()["items"][0]["status"] == "pending"
    assert hours.json()["items"][0]["shift_assignment_id"] == assignment_id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_overlapping_assignment_conflicts(client, db_session):
    org, manager, volunteer = await _org_with_manager_and_volunteer(db_session)
    first = ShiftFactory.create(org.id)
    overlapping = ShiftFactory.create(
        org.id, start_at=first.start_at + timedelta(hours=1), end_at=first.end_at + timedelta(hours=1)
    )
    await persist(db_session, first, overlapping)

    with override_auth(app, make_user(manager)):
        ok = await client.post(
            f"/api/v1/organizations/{org.id}/shifts/{first.id}/assignments",
            json={"user_id": str(volunteer.id)},
        )
        clash = await client.post(
            f"/api/v1/organizations/{org.id}/shifts/{overlapping.id}/assignments",
            json={"user_id": str(volunteer.id)},
        )

    assert ok.status_code == 201
    assert clash.status_code == 409
    assert clash.json()["code"] == "SHIFT_CONFLICT"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_other_volunteer_cannot_check_in_for_someone_else(client, db_session):
    org, manager, volunteer = await _org_with_manager_and_volunteer(db_session)
    shift = ShiftFactory.create(org.id)
    stranger = UserFactory.create()
    await persist(db_session, shift, stranger)

    with override_auth(app, make_user(manager)):
        assigned = await client.post(
            f"/api/v1/organizations/{org.id}/shifts/{shift.id}/assignments",
            json={"user_id": str(volunteer.id)},
        )

    with override_auth(app, make_user(stranger)):
        response = await client.post(
            f"/api/v1/assignments/{assigned.json()['id']}/check-in"
        )

    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Hours
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_log_and_approve_hours(client, db_session):
    org, manager, volunteer = await _org_with_manager_and_volunteer(db_session)

    with override_auth(app, make_user(volunteer)):
        logged = await client.post(
            "/api/v1/hours",
            json={"organization_id": str(org.id), "date": _today().isoformat(), "hours": 2.5},
        )
        future = await client.post(
            "/api/v1/hours",
            json={
                "organization_id": str(org.id),
                "date": (_today() + timedelta(days=2)).isoformat(),
                "hours": 1,
            },
        )
    assert logged.status_code == 201
    assert future.status_code == 400

    with override_auth(app, make_user(manager)):
        pending = await client.get(f"/api/v1/organizations/{org.id}/hours/pending")
        assert pending.json()["total"] == 1
        approved = await client.post(
            f"/api/v1/organizations/{org.id}/hours/{logged.json()['id']}/approve"
        )
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert approved.json()["approved_by"] == str(manager.id)

    with override_auth(app, make_user(volunteer)):
        summary = await client.get("/api/v1/hours/me/summary")
    assert summary.json()["approved_hours"] == 2.5


@pytest.mark.asyncio
@pytest.mark.integration
async def test_hours_rejected_for_non_member(client, db_session):
    org = await persist(db_session, OrganizationFactory.create())
    outsider = await persist(db_session, UserFactory.create())

    with override_auth(app, make_user(outsider)):
        response = await client.post(
            "/api/v1/hours",
            json={"organization_id": str(org.id), "date": _today().isoformat(), "hours": 1},
        )

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_bulk_approve_is_all_or_nothing(client, db_session):
    org, manager, volunteer = await _org_with_manager_and_volunteer(db_session)
    other_org = OrganizationFactory.create()
    ours = VolunteerHourFactory.create(org.id, volunteer.id)
    theirs = VolunteerHourFactory.create(other_org.id, volunteer.id)
    await persist(db_session, other_org, ours, theirs)

    with override_auth(app, make_user(manager)):
        mixed = await client.post(
            f"/api/v1/organizations/{org.id}/hours/bulk-approve",
            json={"ids": [str(ours.id), str(theirs.id)]},
        )
        only_ours = await client.post(
            f"/api/v1/organizations/{org.id}/hours/bulk-approve",
            json={"ids": [str(ours.id)]},
        )

    assert mixed.status_code == 400
    assert only_ours.json() == {"approved_count": 1}
