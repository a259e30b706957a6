"""Admin operations on the invite email queue."""

import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from services.admin_service.services import record_audit
from services.organizations_service.models import (
    InviteSendJob,
    InviteSendStatus,
    OrganizationInvite,
)
from services.organizations_service.services.invite_sender import process_queue
from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def list_jobs_query(
    status: Optional[InviteSendStatus] = None,
    invite_id: Optional[uuid.UUID] = None,
    q: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Select:
    query = select(InviteSendJob)
    if status:
        query = query.where(InviteSendJob.status == status)
    if invite_id:
        query = query.where(InviteSendJob.invite_id == invite_id)
    if q:
        query = query.join(
            OrganizationInvite, OrganizationInvite.id == InviteSendJob.invite_id
        ).where(OrganizationInvite.email.ilike(f"%{q.lower()}%"))
    if start_date:
        query = query.where(
            InviteSendJob.created_at
            >= datetime.combine(start_date, time.min, tzinfo=timezone.utc)
        )
    if end_date:
        query = query.where(
            InviteSendJob.created_at
            < datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
        )
    return query.order_by(InviteSendJob.created_at.desc())


async def get_job_or_404(db: AsyncSession, job_id: uuid.UUID) -> InviteSendJob:
    job = await db.get(InviteSendJob, job_id)
    if job is None:
        raise NotFoundError("Invite send job not found")
    return job


async def retry_job(db: AsyncSession, job: InviteSendJob) -> InviteSendJob:
    """Reset a job and immediately give the queue one pass."""
    job.status = InviteSendStatus.PENDING
    job.attempts = 0
    job.next_attempt_at = None
    job.last_error = None
    await db.commit()

    await process_queue(db, batch=1)
    return await db.get(InviteSendJob, job.id, populate_existing=True)


async def retry_all_failed(db: AsyncSession, admin_id: Optional[uuid.UUID]) -> int:
    await record_audit(db, admin_id, "invite_send_jobs.retry_all_failed.started", "invite_send_job")
    result = await db.execute(
        update(InviteSendJob)
        .where(InviteSendJob.status == InviteSendStatus.FAILED)
        .values(
            status=InviteSendStatus.PENDING,
            attempts=0,
            next_attempt_at=None,
            last_error=None,
            updated_at=utc_now(),
        )
        .execution_options(synchronize_session=False)
    )
    count = result.rowcount or 0
    await record_audit(
        db,
        admin_id,
        "invite_send_jobs.retry_all_failed.completed",
        "invite_send_job",
        details={"count": count},
    )
    await db.commit()
    logger.info(f"Requeued {count} failed invite send job(s)")
    return count


async def job_stats(db: AsyncSession) -> dict:
    rows = (
        await db.execute(
            select(InviteSendJob.status, func.count(InviteSendJob.id)).group_by(
                InviteSendJob.status
            )
        )
    ).all()
    by_status = {status.value: 0 for status in InviteSendStatus}
    for status, count in rows:
        key = status.value if isinstance(status, InviteSendStatus) else str(status)
        by_status[key] = count

    total = sum(by_status.values())
    avg_attempts = (
        await db.execute(select(func.avg(InviteSendJob.attempts)))
    ).scalar()

    return {
        "total": total,
        "by_status": by_status,
        "success_rate": round(by_status["sent"] / total * 100, 2) if total else 0.0,
        "avg_attempts": round(float(avg_attempts or 0), 2),
    }
