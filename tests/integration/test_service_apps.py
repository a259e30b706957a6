"""Each service can also be deployed on its own; check the standalone apps boot."""

import importlib

import pytest
from httpx import ASGITransport, AsyncClient

SERVICES = [
    ("admin_service", "admin"),
    ("communications_service", "communications"),
    ("compliance_service", "compliance"),
    ("engagement_service", "engagement"),
    ("events_service", "events"),
    ("organizations_service", "organizations"),
    ("resources_service", "resources"),
    ("users_service", "users"),
    ("volunteer_service", "volunteer"),
]


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("package,name", SERVICES)
async def test_standalone_service_health(package, name):
    module = importlib.import_module(f"services.{package}.app.main")

    async with AsyncClient(
        transport=ASGITransport(app=module.app), base_url="http://test"
    ) as ac:
        response = await ac.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": name}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_standalone_app_uses_error_envelope():
    from services.users_service.app.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        response = await ac.get("/users/me")

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"
