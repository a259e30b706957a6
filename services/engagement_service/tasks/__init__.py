"""Engagement service background tasks."""

from libs.db.session import get_async_db
from services.engagement_service.services.evaluation import evaluate_all_users


async def evaluate_achievements() -> dict[str, int]:
    """Worker entrypoint: nightly achievement evaluation."""
    async for db in get_async_db():
        return await evaluate_all_users(db)
    return {}


__all__ = ["evaluate_achievements"]
