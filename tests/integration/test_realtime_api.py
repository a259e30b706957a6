"""WebSocket notification channel, driven through Starlette's TestClient."""

import uuid

import pytest
from libs.auth.tokens import create_access_token
from libs.db.base import Base
from services.communications_service.services.notifications import create_notification
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect


async def _notify_and_commit(user_id: uuid.UUID) -> None:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)()
    try:
        await create_notification(
            session,
            user_id,
            type="shift_reminder",
            title="Shift reminder",
            message="Your shift starts in an hour.",
        )
        await session.commit()
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.integration
def test_socket_with_invalid_token_is_closed_with_policy_violation():
    from services.gateway_service.app.main import app

    client = TestClient(app)
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/ws/notifications?token=not-a-jwt"):
            pass

    assert excinfo.value.code == 1008


@pytest.mark.integration
def test_committed_notification_is_pushed_to_open_socket():
    from services.gateway_service.app.main import app

    user_id = uuid.uuid4()
    token = create_access_token(str(user_id), email="push@example.com")

    with TestClient(app) as client:
        with client.websocket_connect(f"/ws/notifications?token={token}") as ws:
            ws.send_text("ping")
            assert ws.receive_json() == {"event": "pong", "data": {}}

            client.portal.call(_notify_and_commit, user_id)
            message = ws.receive_json()

    assert message["event"] == "notification"
    assert message["data"]["title"] == "Shift reminder"
    assert message["data"]["read"] is False
