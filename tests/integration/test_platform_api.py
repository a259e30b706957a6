"""Integration tests for notifications, communications, compliance, certificates,
resources and the admin console."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from services.gateway_service.app.main import app
from tests.conftest import make_user, override_auth
from tests.factories import (
    CertificateFactory,
    ComplianceDocumentFactory,
    NotificationFactory,
    OrganizationFactory,
    OrganizationVolunteerFactory,
    TeamMemberFactory,
    UserFactory,
    persist,
)


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
# Notifications
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_notification_inbox(client, db_session):
    user, other = UserFactory.create(), UserFactory.create()
    mine = NotificationFactory.create(user.id)
    theirs = NotificationFactory.create(other.id)
    await persist(db_session, user, other, mine, NotificationFactory.create(user.id), theirs)

    with override_auth(app, make_user(user)):
        listed = await client.get("/api/v1/notifications/")
        assert listed.json()["total"] == 2
        assert (await client.get("/api/v1/notifications/unread-count")).json() == {"unread": 2}

        read = await client.post(f"/api/v1/notifications/{mine.id}/read")
        assert read.json()["read"] is True

        foreign = await client.post(f"/api/v1/notifications/{theirs.id}/read")
        assert foreign.status_code == 404

        assert (await client.post("/api/v1/notifications/read-all")).json() == {"updated": 1}
        assert (await client.get("/api/v1/notifications/unread-count")).json() == {"unread": 0}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_notification_preference(client, db_session):
    user = await persist(db_session, UserFactory.create())

    with override_auth(app, make_user(user)):
        updated = await client.put(
            "/api/v1/notifications/preferences/shift_assigned",
            json={"email_enabled": False},
        )
        listed = await client.get("/api/v1/notifications/preferences")

    assert updated.status_code == 200
    assert updated.json()["email_enabled"] is False
    assert updated.json()["in_app_enabled"] is True
    assert [p["notification_type"] for p in listed.json()] == ["shift_assigned"]


# ---------------------------------------------------------------------------
# Communications
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_in_app_communication_reaches_org_volunteers(client, db_session):
    org, manager, volunteer = await _org_with_manager_and_volunteer(db_session)

    with override_auth(app, make_user(manager)):
        created = await client.post(
            f"/api/v1/organizations/{org.id}/communications/",
            json={"subject": "Saturday roster", "body": "Gloves provided.", "type": "in_app"},
        )
        assert created.status_code == 201
        assert created.json()["status"] == "draft"

        sent = await client.post(
            f"/api/v1/organizations/{org.id}/communications/{created.json()['id']}/send"
        )
    assert sent.json()["status"] == "sent"
    assert sent.json()["recipient_count"] == 1

    with override_auth(app, make_user(volunteer)):
        inbox = await client.get("/api/v1/notifications/")
    assert inbox.json()["items"][0]["title"] == "Saturday roster"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_org_cannot_message_all_users(client, db_session):
    org, manager, _ = await _org_with_manager_and_volunteer(db_session)

    with override_auth(app, make_user(manager)):
        response = await client.post(
            f"/api/v1/organizations/{org.id}/communications/",
            json={"subject": "Hi", "body": "Everyone", "target_audience": "all"},
        )

    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_validation_endpoints(client):
    wwcc = await client.post(
        "/api/v1/compliance/validate/wwcc", json={"number": "wwc1234567e", "state": "NSW"}
    )
    abn = await client.post("/api/v1/compliance/validate/abn", json={"abn": "51 824 753 557"})
    mobile = await client.post("/api/v1/compliance/validate/mobile", json={"phone": "0412 345 678"})

    assert wwcc.json()["valid"] is True
    assert wwcc.json()["formatted"] == "WWC 1234567 E"
    assert abn.json() == {"valid": False, "message": "Invalid ABN checksum", "formatted": None}
    assert mobile.json()["valid"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_upload_and_admin_verify_document(client, db_session):
    volunteer, admin = UserFactory.create(), UserFactory.create(is_admin=True)
    await persist(db_session, volunteer, admin)
    expires = datetime.now(timezone.utc) + timedelta(days=400)

    with override_auth(app, make_user(volunteer)):
        uploaded = await client.post(
            "/api/v1/compliance/documents",
            json={
                "doc_type": "wwcc",
                "state": "VIC",
                "document_number": "1234 5678 a",
                "expires_at": expires.isoformat(),
            },
        )
    assert uploaded.status_code == 201
    assert uploaded.json()["status"] == "pending"

    with override_auth(app, make_user(volunteer)):
        forbidden = await client.post(
            f"/api/v1/admin/compliance/documents/{uploaded.json()['id']}/verify"
        )
    assert forbidden.status_code == 403

    with override_auth(app, make_user(admin)):
        verified = await client.post(
            f"/api/v1/admin/compliance/documents/{uploaded.json()['id']}/verify"
        )
    assert verified.json()["status"] == "verified"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_runs_expiry_check(client, db_session):
    volunteer, admin = UserFactory.create(), UserFactory.create(is_admin=True)
    await persist(
        db_session,
        volunteer,
        admin,
        ComplianceDocumentFactory.create(
            volunteer.id, expires_at=datetime.now(timezone.utc) - timedelta(days=1)
        ),
    )

    with override_auth(app, make_user(admin)):
        response = await client.post("/api/v1/admin/compliance/expiry-check")

    assert response.json() == {"expiring": 0, "expired": 1, "overdue_checks": 0}


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_certificate_issue_verify_and_revoke(client, db_session):
    org, manager, volunteer = await _org_with_manager_and_volunteer(db_session)

    with override_auth(app, make_user(manager)):
        issued = await client.post(
            f"/api/v1/organizations/{org.id}/certificates",
            json={"user_id": str(volunteer.id), "title": "Winter Appeal", "hours": 20},
        )
    assert issued.status_code == 201
    verification_id = issued.json()["verification_id"]

    # Verification is public
    check = await client.get(f"/api/v1/certificates/verify/{verification_id}")
    assert check.json()["valid"] is True
    assert check.json()["certificate"]["hours"] == 20

    with override_auth(app, make_user(manager)):
        await client.post(
            f"/api/v1/organizations/{org.id}/certificates/{issued.json()['id']}/revoke",
            json={"reason": "Issued in error"},
        )

    check = await client.get(f"/api/v1/certificates/verify/{verification_id}")
    assert check.json()["valid"] is False
    assert check.json()["revocation_reason"] == "Issued in error"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verify_unknown_certificate_is_404(client, db_session):
    await persist(db_session, CertificateFactory.create())

    response = await client.get(f"/api/v1/certificates/verify/{uuid.uuid4()}")

    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_resource_lending_round_trip(client, db_session):
    org, manager, volunteer = await _org_with_manager_and_volunteer(db_session)
    # Read ORM attributes up front: the over-capacity request rolls back the
    # shared test session, which expires these instances.
    org_id, volunteer_id = org.id, volunteer.id
    manager_user, volunteer_user = make_user(manager), make_user(volunteer)

    with override_auth(app, manager_user):
        created = await client.post(
            f"/api/v1/organizations/{org_id}/resources",
            json={"name": "Folding table", "quantity_total": 2},
        )
        resource_id = created.json()["id"]
        assert created.json()["quantity_available"] == 2

        lent = await client.post(
            f"/api/v1/organizations/{org_id}/resources/{resource_id}/assign",
            json={"assignment_type": "volunteer", "related_id": str(volunteer_id), "quantity": 2},
        )
        assert lent.status_code == 201

        too_many = await client.post(
            f"/api/v1/organizations/{org_id}/resources/{resource_id}/assign",
            json={"assignment_type": "volunteer", "related_id": str(volunteer_id)},
        )
        assert too_many.status_code == 400

    with override_auth(app, volunteer_user):
        loans = await client.get("/api/v1/resource-assignments/me")
    assert [loan["id"] for loan in loans.json()] == [lent.json()["id"]]

    with override_auth(app, manager_user):
        returned = await client.post(
            f"/api/v1/organizations/{org_id}/resource-assignments/{lent.json()['id']}/return",
            json={"condition": "good"},
        )
        resource = await client.get(f"/api/v1/organizations/{org_id}/resources/{resource_id}")

    assert returned.json()["status"] == "returned"
    assert resource.json()["quantity_available"] == 2
    assert resource.json()["status"] == "available"


# ---------------------------------------------------------------------------
# Admin console
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_monitoring_requires_admin(client, db_session):
    volunteer = await persist(db_session, UserFactory.create())

    with override_auth(app, make_user(volunteer)):
        for path in ("dashboard", "monitoring/health", "monitoring/jobs", "audit-logs"):
            response = await client.get(f"/api/v1/admin/{path}")
            assert response.status_code == 403, path


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_dashboard_and_audit_trail(client, db_session):
    volunteer, admin = UserFactory.create(), UserFactory.create(is_admin=True)
    await persist(db_session, volunteer, admin)

    with override_auth(app, make_user(admin)):
        await client.post(f"/api/v1/admin/users/{volunteer.id}/disable")

        dashboard = await client.get("/api/v1/admin/dashboard")
        health = await client.get("/api/v1/admin/monitoring/health")
        metrics = await client.get("/api/v1/admin/monitoring/notifications", params={"days": 30})
        audit = await client.get("/api/v1/admin/audit-logs", params={"action": "user_disabled"})

    assert dashboard.json()["users"] == 2
    assert health.json()["status"] == "healthy"
    assert metrics.json()["days"] == 30
    entries = audit.json()["items"]
    assert len(entries) == 1
    assert entries[0]["target_id"] == str(volunteer.id)
    assert entries[0]["user_id"] == str(admin.id)
