"""
Daily compliance sweep.

Verified documents that enter the warning window become ``expiring``;
documents past their expiry become ``expired``; background checks stuck in
pending/in_progress past the overdue threshold are flagged once. Each row is
claimed with a conditional UPDATE so that the owner is notified on the
transition only.
"""

import uuid
from datetime import timedelta

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.communications_service.services import create_notification
from services.compliance_service.models import (
    BackgroundCheck,
    BackgroundCheckStatus,
    ComplianceDocument,
    DocumentStatus,
)
from services.compliance_service.services.documents import document_label
from services.compliance_service.validators import days_until_expiry
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def _claim_document(
    db: AsyncSession, document_id: uuid.UUID, from_statuses: tuple, to_status: DocumentStatus
) -> bool:
    result = await db.execute(
        update(ComplianceDocument)
        .where(
            ComplianceDocument.id == document_id,
            ComplianceDocument.status.in_(from_statuses),
        )
        .values(status=to_status, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _mark_expiring(db: AsyncSession, now, warning_days: int) -> int:
    rows = (
        await db.execute(
            select(
                ComplianceDocument.id,
                ComplianceDocument.user_id,
                ComplianceDocument.doc_type,
                ComplianceDocument.expires_at,
            )
            .where(
                ComplianceDocument.status == DocumentStatus.VERIFIED,
                ComplianceDocument.expires_at > now,
                ComplianceDocument.expires_at <= now + timedelta(days=warning_days),
            )
        )
    ).all()

    count = 0
    for document_id, user_id, doc_type, expires_at in rows:
        if not await _claim_document(
            db, document_id, (DocumentStatus.VERIFIED,), DocumentStatus.EXPIRING
        ):
            continue
        days = days_until_expiry(expires_at, now)
        try:
            await create_notification(
                db,
                user_id,
                type="compliance.expiring",
                title="Document expiring soon",
                message=(
                    f"Your {document_label(doc_type)} will expire in {days} days. "
                    "Please renew it as soon as possible."
                ),
                payload={
                    "document_id": str(document_id),
                    "doc_type": doc_type.value,
                    "days_until_expiry": days,
                },
                category="compliance",
                priority="high" if days <= 7 else "medium",
            )
        except Exception as e:
            await db.rollback()
            logger.warning(f"Failed to send expiring notice for document {document_id}: {e}")
            continue
        await db.commit()
        count += 1
    return count


async def _mark_expired(db: AsyncSession, now) -> int:
    live = (
        DocumentStatus.PENDING,
        DocumentStatus.VERIFIED,
        DocumentStatus.EXPIRING,
    )
    rows = (
        await db.execute(
            select(ComplianceDocument.id, ComplianceDocument.user_id, ComplianceDocument.doc_type)
            .where(
                ComplianceDocument.expires_at.is_not(None),
                ComplianceDocument.expires_at <= now,
                ComplianceDocument.status.in_(live),
            )
        )
    ).all()

    count = 0
    for document_id, user_id, doc_type in rows:
        if not await _claim_document(db, document_id, live, DocumentStatus.EXPIRED):
            continue
        try:
            await create_notification(
                db,
                user_id,
                type="compliance.expired",
                title="Document expired",
                message=(
                    f"Your {document_label(doc_type)} has expired. "
                    "You must renew it immediately to continue volunteering."
                ),
                payload={"document_id": str(document_id), "doc_type": doc_type.value},
                category="compliance",
                priority="urgent",
            )
        except Exception as e:
            await db.rollback()
            logger.warning(f"Failed to send expiry notice for document {document_id}: {e}")
            continue
        await db.commit()
        count += 1
    return count


async def _flag_overdue_checks(db: AsyncSession, now, overdue_days: int) -> int:
    rows = (
        await db.execute(
            select(BackgroundCheck.id, BackgroundCheck.user_id).where(
                BackgroundCheck.status.in_(
                    (BackgroundCheckStatus.PENDING, BackgroundCheckStatus.IN_PROGRESS)
                ),
                BackgroundCheck.requested_at < now - timedelta(days=overdue_days),
                BackgroundCheck.overdue_notified_at.is_(None),
            )
        )
    ).all()

    count = 0
    for check_id, user_id in rows:
        result = await db.execute(
            update(BackgroundCheck)
            .where(BackgroundCheck.id == check_id, BackgroundCheck.overdue_notified_at.is_(None))
            .values(overdue_notified_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            continue
        try:
            await create_notification(
                db,
                user_id,
                type="background_check.overdue",
                title="Background check overdue",
                message=(
                    f"Your background check has been pending for over {overdue_days} days. "
                    "Please follow up with the administrator."
                ),
                payload={"check_id": str(check_id)},
                category="compliance",
            )
        except Exception as e:
            await db.rollback()
            logger.warning(f"Failed to send overdue notice for background check {check_id}: {e}")
            continue
        await db.commit()
        count += 1
    return count


async def check_compliance_expiry(db: AsyncSession) -> dict[str, int]:
    """Run the sweep; returns ``{expiring, expired, overdue_checks}``."""
    settings = get_settings()
    now = utc_now()
    expiring = await _mark_expiring(db, now, settings.COMPLIANCE_EXPIRY_WARNING_DAYS)
    expired = await _mark_expired(db, now)
    overdue = await _flag_overdue_checks(db, now, settings.BACKGROUND_CHECK_OVERDUE_DAYS)
    logger.info(
        f"Compliance check complete: {expiring} expiring, {expired} expired, "
        f"{overdue} overdue background checks"
    )
    return {"expiring": expiring, "expired": expired, "overdue_checks": overdue}
