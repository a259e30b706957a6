"""
Invite email delivery queue.

Each invite has at most one ``invite_send_jobs`` row. The worker polls for
pending rows that are due, claims each with a conditional UPDATE
(pending -> processing), sends the email and records the outcome. Failed
sends back off exponentially (1, 2, 4 ... 60 minutes) and stop after
INVITE_MAX_ATTEMPTS.
"""

import uuid
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.common.retry import next_attempt_at
from services.communications_service.templates.volunteer import send_invite_email
from services.organizations_service.models import (
    InviteSendJob,
    InviteSendStatus,
    Organization,
    OrganizationInvite,
)
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def accept_url(token: str) -> str:
    return f"{get_settings().FRONTEND_URL.rstrip('/')}/invites/{token}"


async def enqueue_invite_send(db: AsyncSession, invite_id: uuid.UUID) -> InviteSendJob:
    """Queue (or re-queue) the invite email. Already-sent jobs are left alone."""
    result = await db.execute(
        select(InviteSendJob).where(InviteSendJob.invite_id == invite_id)
    )
    job = result.scalar_one_or_none()

    if job is None:
        job = InviteSendJob(
            invite_id=invite_id, status=InviteSendStatus.PENDING, attempts=0
        )
        db.add(job)
    elif job.status == InviteSendStatus.SENT:
        return job
    else:
        job.status = InviteSendStatus.PENDING
        job.next_attempt_at = None

    await db.commit()
    return job


async def send_invite_now(db: AsyncSession, invite_id: uuid.UUID) -> bool:
    """Render and send the invite email. False when the invite is gone."""
    invite = await db.get(OrganizationInvite, invite_id)
    if invite is None:
        logger.warning(f"Invite {invite_id} no longer exists; nothing to send")
        return False

    organization = await db.get(Organization, invite.organization_id)
    organization_name = organization.name if organization else "An organization"
    return await send_invite_email(
        to_email=invite.email,
        organization_name=organization_name,
        role=invite.role,
        accept_url=accept_url(invite.token),
        expires_on=invite.expires_at.strftime("%d %b %Y") if invite.expires_at else None,
    )


async def _claim(db: AsyncSession, job_id: uuid.UUID) -> bool:
    result = await db.execute(
        update(InviteSendJob)
        .where(
            InviteSendJob.id == job_id,
            InviteSendJob.status == InviteSendStatus.PENDING,
        )
        .values(status=InviteSendStatus.PROCESSING, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount == 1


async def _process_job(db: AsyncSession, job_id: uuid.UUID) -> bool:
    job = await db.get(InviteSendJob, job_id, populate_existing=True)
    error: Optional[str] = None
    try:
        sent = await send_invite_now(db, job.invite_id)
        if not sent:
            error = "Send failed"
    except Exception as e:
        await db.rollback()
        logger.error(f"Invite send job {job_id} raised: {e}")
        job = await db.get(InviteSendJob, job_id)
        error = str(e) or type(e).__name__

    if error is None:
        job.status = InviteSendStatus.SENT
        job.sent_at = utc_now()
        job.next_attempt_at = None
        job.last_error = None
        await db.commit()
        logger.info(f"Invite {job.invite_id} sent")
        return True

    job.attempts = (job.attempts or 0) + 1
    job.last_error = error
    job.next_attempt_at = next_attempt_at(job.attempts)
    if job.attempts >= get_settings().INVITE_MAX_ATTEMPTS:
        job.status = InviteSendStatus.FAILED
        logger.warning(f"Invite send job {job_id} failed permanently: {error}")
    else:
        job.status = InviteSendStatus.PENDING
    await db.commit()
    return False


async def process_queue(db: AsyncSession, batch: int = 10) -> int:
    """Send due invite emails; returns the number of jobs claimed."""
    now = utc_now()
    result = await db.execute(
        select(InviteSendJob.id)
        .where(
            InviteSendJob.status == InviteSendStatus.PENDING,
            or_(
                InviteSendJob.next_attempt_at.is_(None),
                InviteSendJob.next_attempt_at <= now,
            ),
        )
        .order_by(InviteSendJob.created_at)
        .limit(batch)
    )

    processed = 0
    for job_id in list(result.scalars().all()):
        if not await _claim(db, job_id):
            continue
        await _process_job(db, job_id)
        processed += 1
    return processed
