"""Notification creation, preferences and inbox queries.

``create_notification`` is the single entry point every other service uses to
notify a user. It honours the user's per-type preferences, persists the row,
queues a realtime push for when the caller commits and optionally sends an
email copy.
"""

import uuid
from datetime import datetime
from typing import Any, Iterable, Optional

from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from services.communications_service.models import (
    EmailDeliveryStatus,
    Notification,
    NotificationPreference,
    NotificationPriority,
)
from services.communications_service.realtime import hub
from services.communications_service.templates.volunteer import send_notification_email
from services.users_service.models import User
from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    return {
        "id": str(notification.id),
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "payload": notification.payload,
        "category": notification.category,
        "priority": notification.priority.value
        if isinstance(notification.priority, NotificationPriority)
        else notification.priority,
        "action_url": notification.action_url,
        "read": notification.read,
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
    }


async def get_preference(
    db: AsyncSession, user_id: uuid.UUID, notification_type: str
) -> Optional[NotificationPreference]:
    result = await db.execute(
        select(NotificationPreference).where(
            NotificationPreference.user_id == user_id,
            NotificationPreference.notification_type == notification_type,
        )
    )
    return result.scalar_one_or_none()


async def create_notification(
    db: AsyncSession,
    user_id: uuid.UUID,
    type: str,
    title: str,
    message: str,
    payload: Optional[dict] = None,
    category: Optional[str] = None,
    priority: NotificationPriority | str = NotificationPriority.MEDIUM,
    action_url: Optional[str] = None,
    send_email: bool = False,
    expires_at: Optional[datetime] = None,
) -> Optional[Notification]:
    """
    Create a notification for ``user_id``.

    Returns None when the user switched off in-app delivery for ``type``.
    The row is flushed, not committed; callers commit with their own changes.
    """
    preference = await get_preference(db, user_id, type)
    in_app_enabled = preference.in_app_enabled if preference else True
    email_enabled = preference.email_enabled if preference else True

    if not in_app_enabled:
        logger.debug(f"In-app notifications of type {type} disabled for {user_id}")
        return None

    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        payload=payload,
        category=category,
        priority=NotificationPriority(priority),
        action_url=action_url,
        expires_at=expires_at,
        read=False,
        created_at=utc_now(),
    )
    db.add(notification)
    await db.flush()

    if send_email and email_enabled:
        user = await db.get(User, user_id)
        if user and not user.is_disabled:
            sent = await send_notification_email(
                to_email=user.email,
                recipient_name=user.first_name,
                title=title,
                message=message,
                action_url=action_url,
                priority=notification.priority.value,
            )
            notification.email_status = (
                EmailDeliveryStatus.SENT if sent else EmailDeliveryStatus.FAILED
            )
            if not sent:
                logger.warning(f"Notification email to user {user_id} failed")

    hub.publish_after_commit(db, user_id, "notification", serialize_notification(notification))
    return notification


async def create_bulk(
    db: AsyncSession, user_ids: Iterable[uuid.UUID], **kwargs: Any
) -> list[Notification]:
    """Create the same notification for several users (deduplicated)."""
    created = []
    for user_id in dict.fromkeys(user_ids):
        notification = await create_notification(db, user_id, **kwargs)
        if notification is not None:
            created.append(notification)
    return created


def _not_expired(now: datetime):
    return or_(Notification.expires_at.is_(None), Notification.expires_at > now)


async def get_unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
            _not_expired(utc_now()),
        )
    )
    return result.scalar() or 0


def list_for_user_query(
    user_id: uuid.UUID,
    category: Optional[str] = None,
    priority: Optional[str] = None,
    read: Optional[bool] = None,
) -> Select:
    query = select(Notification).where(
        Notification.user_id == user_id, _not_expired(utc_now())
    )
    if category:
        query = query.where(Notification.category == category)
    if priority:
        query = query.where(Notification.priority == priority)
    if read is not None:
        query = query.where(Notification.read.is_(read))
    return query.order_by(Notification.created_at.desc())


async def mark_as_read(
    db: AsyncSession, user_id: uuid.UUID, notification_id: uuid.UUID
) -> Notification:
    notification = await db.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        raise NotFoundError("Notification not found")
    if not notification.read:
        notification.read = True
        notification.read_at = utc_now()
    await db.commit()
    return notification


async def mark_all_as_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True, read_at=utc_now())
    )
    await db.commit()
    return result.rowcount or 0


async def delete_expired(db: AsyncSession) -> int:
    result = await db.execute(
        delete(Notification).where(
            Notification.expires_at.is_not(None), Notification.expires_at <= utc_now()
        )
    )
    await db.commit()
    deleted = result.rowcount or 0
    if deleted:
        logger.info(f"Deleted {deleted} expired notifications")
    return deleted


async def upsert_preference(
    db: AsyncSession,
    user_id: uuid.UUID,
    notification_type: str,
    **fields: Any,
) -> NotificationPreference:
    preference = await get_preference(db, user_id, notification_type)
    if preference is None:
        preference = NotificationPreference(
            user_id=user_id, notification_type=notification_type
        )
        db.add(preference)
    for key, value in fields.items():
        if value is not None:
            setattr(preference, key, value)
    await db.commit()
    await db.refresh(preference)
    return preference
