"""System health, background job and notification delivery metrics."""

import time
from datetime import timedelta
from typing import Any

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.communications_service.models import (
    EmailDeliveryStatus,
    Notification,
    ScheduledJob,
)
from services.events_service.models import Opportunity, OpportunityStatus
from services.organizations_service.models import (
    InviteSendJob,
    Organization,
    OrganizationStatus,
)
from services.users_service.models import User
from services.volunteer_service.models import HoursStatus, VolunteerHour
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def database_health(db: AsyncSession) -> dict[str, Any]:
    started = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": {"connected": False, "error": str(e)},
            "checked_at": utc_now(),
        }
    return {
        "status": "healthy",
        "database": {
            "connected": True,
            "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
        },
        "checked_at": utc_now(),
    }


async def _counts_by_status(db: AsyncSession, model) -> dict[str, int]:
    rows = (
        await db.execute(select(model.status, func.count(model.id)).group_by(model.status))
    ).all()
    return {status.value: count for status, count in rows}


async def job_stats(db: AsyncSession) -> dict[str, Any]:
    scheduled = await _counts_by_status(db, ScheduledJob)
    invites = await _counts_by_status(db, InviteSendJob)
    return {
        "scheduled_jobs": {"total": sum(scheduled.values()), "by_status": scheduled},
        "invite_send_jobs": {"total": sum(invites.values()), "by_status": invites},
    }


async def delivery_metrics(db: AsyncSession, days: int = 7) -> dict[str, Any]:
    since = utc_now() - timedelta(days=days)
    window = Notification.created_at >= since

    async def count(*conditions) -> int:
        query = select(func.count(Notification.id)).where(window, *conditions)
        return (await db.execute(query)).scalar() or 0

    total = await count()
    read = await count(Notification.read.is_(True))
    return {
        "days": days,
        "total": total,
        "read": read,
        "unread": total - read,
        "email_sent": await count(Notification.email_status == EmailDeliveryStatus.SENT),
        "email_failed": await count(Notification.email_status == EmailDeliveryStatus.FAILED),
        "read_rate": round(read / total * 100, 2) if total else 0.0,
    }


async def dashboard_summary(db: AsyncSession) -> dict[str, int]:
    async def scalar(query) -> int:
        return (await db.execute(query)).scalar() or 0

    return {
        "users": await scalar(select(func.count(User.id))),
        "organizations": await scalar(select(func.count(Organization.id))),
        "pending_approvals": await scalar(
            select(func.count(Organization.id)).where(
                Organization.status == OrganizationStatus.PENDING
            )
        ),
        "pending_hours": await scalar(
            select(func.count(VolunteerHour.id)).where(
                VolunteerHour.status == HoursStatus.PENDING
            )
        ),
        "open_opportunities": await scalar(
            select(func.count(Opportunity.id)).where(
                Opportunity.status == OpportunityStatus.PUBLISHED
            )
        ),
    }
