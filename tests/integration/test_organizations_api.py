"""Integration tests for organizations, team, volunteers and invites."""

import uuid

import pytest
from services.gateway_service.app.main import app
from services.organizations_service.models import OrganizationInvite, TeamRole
from sqlalchemy import select
from tests.conftest import make_user, override_auth
from tests.factories import (
    OrganizationFactory,
    OrganizationVolunteerFactory,
    TeamMemberFactory,
    UserFactory,
    persist,
)


async def _org_with_manager(db, **org_fields):
    org, manager = OrganizationFactory.create(**org_fields), UserFactory.create()
    await persist(db, org, manager, TeamMemberFactory.create(org.id, manager.id))
    return org, manager


# ---------------------------------------------------------------------------
# Organizations and approval
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_created_organization_waits_for_admin_approval(client, db_session):
    """The creator becomes owner; the org is hidden until approved."""
    owner, admin = UserFactory.create(), UserFactory.create(is_admin=True)
    await persist(db_session, owner, admin)

    with override_auth(app, make_user(owner)):
        created = await client.post(
            "/api/v1/organizations/", json={"name": "Riverside Food Bank"}
        )
        assert created.status_code == 201
        org = created.json()
        assert org["status"] == "pending"
        assert org["slug"] == "riverside-food-bank"

        mine = await client.get("/api/v1/organizations/mine")
        assert [o["id"] for o in mine.json()] == [org["id"]]

    public = await client.get("/api/v1/organizations/")
    assert public.json()["total"] == 0

    with override_auth(app, make_user(admin)):
        approved = await client.post(f"/api/v1/admin/organizations/{org['id']}/approve")
    assert approved.status_code == 200
    assert approved.json()["status"] == "active"

    public = await client.get("/api/v1/organizations/")
    assert public.json()["total"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_non_admin_cannot_approve(client, db_session):
    org, manager = await _org_with_manager(db_session)

    with override_auth(app, make_user(manager)):
        response = await client.post(f"/api/v1/admin/organizations/{org.id}/approve")

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_organization_is_404(client):
    response = await client.get(f"/api/v1/organizations/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


# ---------------------------------------------------------------------------
# Team
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_team_is_visible_to_members_only(client, db_session):
    org, manager = await _org_with_manager(db_session)
    outsider = await persist(db_session, UserFactory.create())

    with override_auth(app, make_user(outsider)):
        denied = await client.get(f"/api/v1/organizations/{org.id}/team")
    assert denied.status_code == 403
    assert denied.json()["code"] == "FORBIDDEN"

    with override_auth(app, make_user(manager)):
        added = await client.post(
            f"/api/v1/organizations/{org.id}/team",
            json={"user_id": str(outsider.id), "role": "member"},
        )
        assert added.status_code == 201

        team = await client.get(f"/api/v1/organizations/{org.id}/team")
    assert {m["user_id"] for m in team.json()} == {str(manager.id), str(outsider.id)}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_plain_team_member_cannot_manage_team(client, db_session):
    org, _ = await _org_with_manager(db_session)
    member, newcomer = UserFactory.create(), UserFactory.create()
    await persist(
        db_session,
        member,
        newcomer,
        TeamMemberFactory.create(org.id, member.id, role=TeamRole.MEMBER),
    )

    with override_auth(app, make_user(member)):
        response = await client.post(
            f"/api/v1/organizations/{org.id}/team", json={"user_id": str(newcomer.id)}
        )

    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Volunteers
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_join_request_is_approved_by_manager(client, db_session):
    org, manager = await _org_with_manager(db_session)
    volunteer = await persist(db_session, UserFactory.create())

    with override_auth(app, make_user(volunteer)):
        joined = await client.post(f"/api/v1/organizations/{org.id}/join")
        assert joined.status_code == 201
        assert joined.json()["status"] == "pending"

        again = await client.post(f"/api/v1/organizations/{org.id}/join")
        assert again.status_code == 409

    with override_auth(app, make_user(manager)):
        approved = await client.patch(
            f"/api/v1/organizations/{org.id}/volunteers/{joined.json()['id']}",
            json={"status": "active"},
        )
        listed = await client.get(
            f"/api/v1/organizations/{org.id}/volunteers", params={"status_filter": "active"}
        )

    assert approved.status_code == 200
    assert approved.json()["joined_at"] is not None
    assert listed.json()["total"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_auto_approving_organization_activates_immediately(client, db_session):
    org = await persist(db_session, OrganizationFactory.create(auto_approve_volunteers=True))
    volunteer = await persist(db_session, UserFactory.create())

    with override_auth(app, make_user(volunteer)):
        response = await client.post(f"/api/v1/organizations/{org.id}/join")

    assert response.json()["status"] == "active"


# ---------------------------------------------------------------------------
# Invites
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invite_lookup_and_accept(client, db_session):
    org, manager = await _org_with_manager(db_session)
    invitee = await persist(db_session, UserFactory.create())

    with override_auth(app, make_user(manager)):
        created = await client.post(
            f"/api/v1/organizations/{org.id}/invites", json={"email": invitee.email}
        )
    assert created.status_code == 201
    invite = (
        await db_session.execute(
            select(OrganizationInvite).where(
                OrganizationInvite.id == uuid.UUID(created.json()["id"])
            )
        )
    ).scalar_one()

    lookup = await client.get(f"/api/v1/invites/{invite.token}")
    assert lookup.status_code == 200
    assert lookup.json()["organization_name"] == org.name
    assert lookup.json()["is_valid"] is True

    with override_auth(app, make_user(invitee)):
        accepted = await client.post(f"/api/v1/invites/{invite.token}/accept")
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "active"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_duplicate_invite_conflicts(client, db_session):
    org, manager = await _org_with_manager(db_session)
    volunteer = UserFactory.create()
    await persist(
        db_session, volunteer, OrganizationVolunteerFactory.create(org.id, volunteer.id)
    )

    with override_auth(app, make_user(manager)):
        response = await client.post(
            f"/api/v1/organizations/{org.id}/invites", json={"email": volunteer.email}
        )

    assert response.status_code == 409


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_invite_token_is_404(client):
    response = await client.get("/api/v1/invites/does-not-exist")

    assert response.status_code == 404
