"""
Scheduled job runner.

Every minute the worker picks up ``scheduled_jobs`` rows that are due, claims
each one with a conditional UPDATE and runs its handler. Failures are retried
with capped exponential backoff until ``max_attempts`` is reached.
"""

import uuid
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import InvalidStateError
from libs.common.logging import get_logger
from libs.common.retry import next_attempt_at
from libs.db.session import get_async_db
from services.communications_service.models import (
    Communication,
    CommunicationStatus,
    CommunicationType,
    ScheduledJob,
    ScheduledJobStatus,
    ScheduledJobType,
)
from services.communications_service.services.notifications import (
    create_notification,
)
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class UnknownJobType(Exception):
    """A job whose type has no handler; retrying cannot help."""


# ── Handlers ────────────────────────────────────────────────────────


async def _handle_reminder(db: AsyncSession, job: ScheduledJob) -> None:
    payload = job.payload or {}
    user_id = payload.get("user_id")
    if not user_id:
        raise ValueError("Reminder payload requires user_id")
    await create_notification(
        db,
        uuid.UUID(str(user_id)),
        type="reminder",
        title=payload.get("title") or "Reminder",
        message=payload.get("message") or job.name,
        payload={"scheduled_job_id": str(job.id)},
        category="reminder",
        action_url=payload.get("action_url"),
    )


async def _handle_communication(db: AsyncSession, job: ScheduledJob) -> None:
    payload = job.payload or {}
    if not payload.get("subject") or not payload.get("body"):
        raise ValueError("Communication payload requires subject and body")

    send_at = payload.get("send_at")
    organization_id = payload.get("organization_id")
    created_by = payload.get("created_by")
    db.add(
        Communication(
            organization_id=uuid.UUID(str(organization_id)) if organization_id else None,
            created_by=uuid.UUID(str(created_by)) if created_by else None,
            subject=payload["subject"],
            body=payload["body"],
            type=CommunicationType(payload.get("type", CommunicationType.EMAIL.value)),
            target_audience=payload.get("target_audience"),
            status=CommunicationStatus.SCHEDULED,
            send_at=datetime.fromisoformat(send_at) if send_at else job.run_at,
        )
    )


JOB_HANDLERS: dict[str, Callable[[AsyncSession, ScheduledJob], Awaitable[None]]] = {
    ScheduledJobType.REMINDER.value: _handle_reminder,
    ScheduledJobType.COMMUNICATION.value: _handle_communication,
}


# ── Public API ──────────────────────────────────────────────────────


async def schedule_job(
    db: AsyncSession,
    name: str,
    type: str,
    run_at: datetime,
    payload: Optional[dict[str, Any]] = None,
    max_attempts: Optional[int] = None,
) -> ScheduledJob:
    job = ScheduledJob(
        name=name,
        type=type,
        payload=payload,
        run_at=run_at,
        status=ScheduledJobStatus.SCHEDULED,
        attempts=0,
        max_attempts=max_attempts or get_settings().JOB_MAX_ATTEMPTS,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)
    return job


async def cancel_job(db: AsyncSession, job: ScheduledJob) -> ScheduledJob:
    if job.status != ScheduledJobStatus.SCHEDULED:
        raise InvalidStateError("Only scheduled jobs can be cancelled")
    job.status = ScheduledJobStatus.CANCELLED
    await db.commit()
    return job


async def retry_job(db: AsyncSession, job: ScheduledJob) -> ScheduledJob:
    if job.status != ScheduledJobStatus.FAILED:
        raise InvalidStateError("Only failed jobs can be retried")
    job.status = ScheduledJobStatus.SCHEDULED
    job.attempts = 0
    job.last_error = None
    job.run_at = utc_now()
    await db.commit()
    return job


async def _claim(db: AsyncSession, job_id: uuid.UUID) -> bool:
    result = await db.execute(
        update(ScheduledJob)
        .where(
            ScheduledJob.id == job_id,
            ScheduledJob.status == ScheduledJobStatus.SCHEDULED,
        )
        .values(status=ScheduledJobStatus.RUNNING)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount == 1


async def run_job(db: AsyncSession, job: ScheduledJob) -> bool:
    """Run one claimed job and record the outcome. Returns success."""
    now = utc_now()
    job_id, job_type = job.id, job.type
    job.attempts = (job.attempts or 0) + 1
    job.last_run_at = now

    handler = JOB_HANDLERS.get(job_type)
    try:
        if handler is None:
            raise UnknownJobType(f"Unknown job type: {job_type}")
        await handler(db, job)
    except UnknownJobType as e:
        await db.rollback()
        logger.warning(f"Scheduled job {job_id} failed permanently: {e}")
        await _record_failure(db, job_id, str(e), permanent=True)
        return False
    except Exception as e:
        await db.rollback()
        logger.error(f"Scheduled job {job_id} ({job_type}) failed: {e}")
        await _record_failure(db, job_id, str(e))
        return False

    job.status = ScheduledJobStatus.COMPLETED
    job.completed_at = now
    job.last_error = None
    await db.commit()
    logger.info(f"Scheduled job {job_id} ({job_type}) completed")
    return True


async def _record_failure(
    db: AsyncSession, job_id: uuid.UUID, error: str, permanent: bool = False
) -> None:
    job = await db.get(ScheduledJob, job_id)
    if job is None:
        return
    job.attempts = (job.attempts or 0) + 1
    job.last_run_at = utc_now()
    job.last_error = error
    if permanent or job.attempts >= job.max_attempts:
        job.status = ScheduledJobStatus.FAILED
    else:
        job.status = ScheduledJobStatus.SCHEDULED
        job.run_at = next_attempt_at(job.attempts)
    await db.commit()


async def run_due_jobs(db: AsyncSession, batch: int = 50) -> int:
    """Process due scheduled jobs. Returns how many were claimed and run."""
    now = utc_now()
    result = await db.execute(
        select(ScheduledJob.id)
        .where(
            ScheduledJob.status == ScheduledJobStatus.SCHEDULED,
            ScheduledJob.run_at <= now,
        )
        .order_by(ScheduledJob.run_at)
        .limit(batch)
    )
    job_ids = list(result.scalars().all())

    processed = 0
    for job_id in job_ids:
        if not await _claim(db, job_id):
            continue
        job = await db.get(ScheduledJob, job_id, populate_existing=True)
        await run_job(db, job)
        processed += 1

    if processed:
        logger.info(f"Scheduler processed {processed} job(s)")
    return processed


async def process_scheduled_jobs() -> None:
    """Worker entrypoint: open a session and run the due jobs."""
    async for db in get_async_db():
        await run_due_jobs(db)
        break
