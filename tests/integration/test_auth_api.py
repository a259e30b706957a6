"""Integration tests for health, registration, login and account endpoints."""

import pytest
from libs.auth.tokens import hash_password
from services.gateway_service.app.main import app
from tests.conftest import make_user, override_auth
from tests.factories import UserFactory, persist


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# POST /api/v1/auth/register, /api/v1/auth/login
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_then_fetch_profile_with_token(client):
    """The issued token authenticates follow-up requests."""
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": "Sam.Rivera@example.org",
            "password": "long-enough-pw",
            "first_name": "Sam",
            "last_name": "Rivera",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "sam.rivera@example.org"

    me = await client.get(
        "/api/v1/users/me",
        headers={"Authorization": f"Bearer {body['access_token']}"},
    )
    assert me.status_code == 200
    assert me.json()["first_name"] == "Sam"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_duplicate_email_conflicts(client, db_session):
    user = await persist(db_session, UserFactory.create())

    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": user.email,
            "password": "long-enough-pw",
            "first_name": "Dup",
            "last_name": "User",
        },
    )

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_short_password_is_validation_error(client):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "a@example.org", "password": "short", "first_name": "A", "last_name": "B"},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_login_success_and_failure(client, db_session):
    user = await persist(
        db_session, UserFactory.create(password_hash=hash_password("correct-horse"))
    )

    ok = await client.post(
        "/api/v1/auth/login", json={"email": user.email, "password": "correct-horse"}
    )
    bad = await client.post(
        "/api/v1/auth/login", json={"email": user.email, "password": "nope"}
    )

    assert ok.status_code == 200
    assert ok.json()["user"]["id"] == str(user.id)
    assert bad.status_code == 401
    assert bad.json()["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_disabled_account_cannot_log_in(client, db_session):
    user = await persist(
        db_session,
        UserFactory.create(password_hash=hash_password("correct-horse"), is_disabled=True),
    )

    response = await client.post(
        "/api/v1/auth/login", json={"email": user.email, "password": "correct-horse"}
    )

    assert response.status_code == 403
    assert response.json()["code"] == "ACCOUNT_DISABLED"


# ---------------------------------------------------------------------------
# /api/v1/users/me
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_me_requires_authentication(client):
    response = await client.get("/api/v1/users/me")

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invalid_token_is_rejected(client):
    response = await client.get(
        "/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_my_profile(client, db_session):
    user = await persist(db_session, UserFactory.create())

    with override_auth(app, make_user(user)):
        response = await client.patch(
            "/api/v1/users/me", json={"first_name": "Alex", "phone": "0412 345 678"}
        )

    assert response.status_code == 200
    assert response.json()["first_name"] == "Alex"
    assert response.json()["last_name"] == "Volunteer"


# ---------------------------------------------------------------------------
# /api/v1/admin/users
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_user_controls_require_admin(client, db_session):
    volunteer, admin = UserFactory.create(), UserFactory.create(is_admin=True)
    await persist(db_session, volunteer, admin)

    with override_auth(app, make_user(volunteer)):
        forbidden = await client.post(f"/api/v1/admin/users/{volunteer.id}/grant-admin")
    assert forbidden.status_code == 403

    with override_auth(app, make_user(admin)):
        disabled = await client.post(f"/api/v1/admin/users/{volunteer.id}/disable")
    assert disabled.status_code == 200
    assert disabled.json()["is_disabled"] is True
