"""Unit tests for the realtime hub and the after-commit notification push."""

import asyncio
import uuid

import pytest
from services.communications_service.realtime import NotificationHub, hub
from services.communications_service.services.notifications import create_notification
from tests.factories import UserFactory, persist


class FakeSocket:
    def __init__(self, broken: bool = False):
        self.broken = broken
        self.accepted = False
        self.sent: list[dict] = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.broken:
            raise RuntimeError("socket already closed")
        self.sent.append(data)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_publish_reaches_every_socket_of_the_user():
    local = NotificationHub()
    user_id, other_id = uuid.uuid4(), uuid.uuid4()
    phone, laptop, elsewhere = FakeSocket(), FakeSocket(), FakeSocket()
    await local.connect(user_id, phone)
    await local.connect(user_id, laptop)
    await local.connect(other_id, elsewhere)

    delivered = await local.publish(user_id, "notification", {"title": "Shift reminder"})

    assert delivered == 2
    assert phone.accepted and laptop.accepted
    assert phone.sent == [{"event": "notification", "data": {"title": "Shift reminder"}}]
    assert laptop.sent == phone.sent
    assert elsewhere.sent == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_publish_drops_stale_sockets():
    local = NotificationHub()
    user_id = uuid.uuid4()
    live, stale = FakeSocket(), FakeSocket(broken=True)
    await local.connect(user_id, live)
    await local.connect(user_id, stale)

    assert await local.publish(user_id, "notification", {}) == 1
    assert local.connection_count(user_id) == 1

    await local.disconnect(user_id, live)
    assert local.connection_count() == 0
    assert await local.publish(user_id, "notification", {}) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_notification_is_pushed_only_after_commit(db_session):
    user_id = (await persist(db_session, UserFactory.create())).id
    socket = FakeSocket()
    await hub.connect(user_id, socket)
    try:
        notification = await create_notification(
            db_session, user_id, type="shift_reminder", title="Shift reminder", message="m"
        )
        await asyncio.sleep(0)
        assert socket.sent == []

        await db_session.commit()
        await asyncio.sleep(0)

        assert len(socket.sent) == 1
        assert socket.sent[0]["event"] == "notification"
        assert socket.sent[0]["data"]["id"] == str(notification.id)
        assert socket.sent[0]["data"]["title"] == "Shift reminder"
    finally:
        await hub.disconnect(user_id, socket)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rolled_back_notification_is_never_pushed(db_session):
    user_id = (await persist(db_session, UserFactory.create())).id
    socket = FakeSocket()
    await hub.connect(user_id, socket)
    try:
        await create_notification(
            db_session, user_id, type="shift_reminder", title="Discarded", message="m"
        )
        await db_session.rollback()

        await db_session.commit()
        await asyncio.sleep(0)

        assert socket.sent == []
    finally:
        await hub.disconnect(user_id, socket)
