"""Certificates issued by organizations to their volunteers."""

import uuid
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.errors import InvalidStateError, NotFoundError
from libs.common.logging import get_logger
from services.admin_service.services import record_audit
from services.communications_service.services import create_notification
from services.engagement_service.models import Certificate, CertificateStatus
from services.volunteer_service.models import HoursStatus, VolunteerHour
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_certificate_or_404(
    db: AsyncSession, certificate_id: uuid.UUID, organization_id: Optional[uuid.UUID] = None
) -> Certificate:
    certificate = await db.get(Certificate, certificate_id)
    if certificate is None or (
        organization_id is not None and certificate.organization_id != organization_id
    ):
        raise NotFoundError("Certificate not found")
    return certificate


async def approved_hours_with(
    db: AsyncSession, user_id: uuid.UUID, organization_id: uuid.UUID
) -> float:
    total = (
        await db.execute(
            select(func.coalesce(func.sum(VolunteerHour.hours), 0)).where(
                VolunteerHour.user_id == user_id,
                VolunteerHour.organization_id == organization_id,
                VolunteerHour.status == HoursStatus.APPROVED,
            )
        )
    ).scalar()
    return float(total or 0)


async def issue_certificate(
    db: AsyncSession,
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    title: str,
    issued_by: uuid.UUID,
    description: Optional[str] = None,
    hours: Optional[float] = None,
) -> Certificate:
    """Issue a certificate; ``hours`` defaults to the volunteer's approved hours."""
    if hours is None:
        hours = await approved_hours_with(db, user_id, organization_id)

    certificate = Certificate(
        organization_id=organization_id,
        user_id=user_id,
        title=title,
        description=description,
        hours=hours,
        issued_by=issued_by,
        issued_at=utc_now(),
        status=CertificateStatus.ACTIVE,
    )
    db.add(certificate)
    await db.flush()

    await create_notification(
        db,
        user_id,
        type="certificate_issued",
        title="Certificate issued",
        message=f'You have been issued the certificate "{title}".',
        payload={"certificate_id": str(certificate.id)},
        category="achievements",
        action_url="/volunteer/certificates",
    )
    await record_audit(
        db,
        issued_by,
        "certificate_issued",
        "certificate",
        certificate.id,
        {"user_id": str(user_id), "organization_id": str(organization_id)},
    )
    await db.commit()
    await db.refresh(certificate)
    logger.info(f"Certificate {certificate.id} issued to user {user_id}")
    return certificate


async def revoke_certificate(
    db: AsyncSession, certificate: Certificate, revoked_by: uuid.UUID, reason: str
) -> Certificate:
    if certificate.status == CertificateStatus.REVOKED:
        raise InvalidStateError("Certificate is already revoked")
    certificate.status = CertificateStatus.REVOKED
    certificate.revoked_at = utc_now()
    certificate.revocation_reason = reason
    await record_audit(
        db,
        revoked_by,
        "certificate_revoked",
        "certificate",
        certificate.id,
        {"user_id": str(certificate.user_id), "reason": reason},
    )
    await db.commit()
    await db.refresh(certificate)
    return certificate


async def verify_certificate(db: AsyncSession, verification_id: uuid.UUID) -> dict:
    """Public lookup: ``{valid, certificate, revocation_reason}``."""
    result = await db.execute(
        select(Certificate).where(Certificate.verification_id == verification_id)
    )
    certificate = result.scalar_one_or_none()
    if certificate is None:
        raise NotFoundError("Certificate not found")
    return {
        "valid": certificate.status == CertificateStatus.ACTIVE,
        "certificate": certificate,
        "revocation_reason": certificate.revocation_reason,
    }
