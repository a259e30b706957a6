"""Communications service business logic."""

from services.communications_service.services.notifications import (
    create_bulk,
    create_notification,
    get_unread_count,
    mark_all_as_read,
    mark_as_read,
)

__all__ = [
    "create_bulk",
    "create_notification",
    "get_unread_count",
    "mark_all_as_read",
    "mark_as_read",
]
