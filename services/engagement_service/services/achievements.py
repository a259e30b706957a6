"""Achievement definitions."""

import re
import uuid
from typing import Any, Optional

from libs.common.errors import ConflictError
from services.engagement_service.models import Achievement
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


def achievement_key(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", title.lower()).strip("_")


async def create_achievement(
    db: AsyncSession,
    title: str,
    key: Optional[str] = None,
    organization_id: Optional[uuid.UUID] = None,
    **fields: Any,
) -> Achievement:
    key = key or achievement_key(title)
    existing = await db.execute(select(Achievement.id).where(Achievement.key == key))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Achievement key '{key}' already exists")

    achievement = Achievement(title=title, key=key, organization_id=organization_id, **fields)
    db.add(achievement)
    await db.commit()
    await db.refresh(achievement)
    return achievement


async def update_achievement(db: AsyncSession, achievement: Achievement, **fields: Any) -> Achievement:
    for name, value in fields.items():
        setattr(achievement, name, value)
    await db.commit()
    await db.refresh(achievement)
    return achievement
