"""Organizations service background tasks."""

from libs.db.session import get_async_db
from services.organizations_service.services.invite_sender import process_queue


async def process_invite_queue() -> int:
    """Worker entrypoint: send due invite emails."""
    async for db in get_async_db():
        return await process_queue(db)
    return 0


__all__ = ["process_invite_queue"]
