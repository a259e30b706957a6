"""Compliance documents and background checks."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.errors import InvalidStateError, NotFoundError
from libs.common.logging import get_logger
from services.admin_service.services import record_audit
from services.communications_service.services import create_notification
from services.compliance_service.models import (
    BackgroundCheck,
    BackgroundCheckStatus,
    ComplianceDocument,
    DocumentStatus,
    DocumentType,
)
from services.compliance_service.validators import (
    compliance_status,
    normalize_wwcc,
    validate_wwcc,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

DOCUMENT_LABELS = {
    DocumentType.WWCC: "Working with Children Check",
    DocumentType.POLICE_CHECK: "National Police Check",
    DocumentType.FIRST_AID: "First Aid Certificate",
    DocumentType.INSURANCE: "Insurance Certificate",
}


def document_label(doc_type: DocumentType) -> str:
    return DOCUMENT_LABELS.get(doc_type, doc_type.value.replace("_", " ").title())


async def get_document_or_404(db: AsyncSession, document_id: uuid.UUID) -> ComplianceDocument:
    document = await db.get(ComplianceDocument, document_id)
    if document is None:
        raise NotFoundError("Compliance document not found")
    return document


async def upload_document(
    db: AsyncSession,
    user_id: uuid.UUID,
    doc_type: DocumentType,
    state: Optional[str] = None,
    document_number: Optional[str] = None,
    issued_at: Optional[datetime] = None,
    expires_at: Optional[datetime] = None,
    organization_id: Optional[uuid.UUID] = None,
    notes: Optional[str] = None,
) -> ComplianceDocument:
    """Store a document as pending review; WWCC numbers must match their state."""
    if doc_type == DocumentType.WWCC:
        if not state or not document_number:
            raise InvalidStateError("WWCC documents require a state and a document number")
        result = validate_wwcc(document_number, state)
        if not result.valid:
            raise InvalidStateError(result.message, code="INVALID_WWCC")
        document_number = normalize_wwcc(document_number)
        state = state.strip().upper()

    document = ComplianceDocument(
        user_id=user_id,
        organization_id=organization_id,
        doc_type=doc_type,
        state=state,
        document_number=document_number,
        issued_at=ensure_utc(issued_at),
        expires_at=ensure_utc(expires_at),
        status=DocumentStatus.PENDING,
        notes=notes,
    )
    db.add(document)
    await db.commit()
    await db.refresh(document)
    logger.info(f"User {user_id} uploaded {doc_type.value} document {document.id}")
    return document


async def verify_document(
    db: AsyncSession, document: ComplianceDocument, verifier_id: uuid.UUID
) -> ComplianceDocument:
    """Mark verified; a document already past or near expiry takes that status instead."""
    if document.status == DocumentStatus.REJECTED:
        raise InvalidStateError("Rejected documents must be re-uploaded")

    status = DocumentStatus.VERIFIED
    if document.expires_at is not None:
        status = DocumentStatus(compliance_status(document.expires_at, verified=True).status)
    document.status = status
    document.verified_by = verifier_id
    document.verified_at = utc_now()

    await create_notification(
        db,
        document.user_id,
        type="compliance.verified",
        title="Document verified",
        message=f"Your {document_label(document.doc_type)} has been verified.",
        payload={"document_id": str(document.id)},
        category="compliance",
    )
    await record_audit(
        db,
        verifier_id,
        "compliance_document.verified",
        "compliance_document",
        document.id,
        {"user_id": str(document.user_id), "status": document.status.value},
    )
    await db.commit()
    await db.refresh(document)
    return document


async def reject_document(
    db: AsyncSession,
    document: ComplianceDocument,
    verifier_id: uuid.UUID,
    reason: str,
) -> ComplianceDocument:
    document.status = DocumentStatus.REJECTED
    document.verified_by = verifier_id
    document.verified_at = utc_now()
    document.notes = reason

    await create_notification(
        db,
        document.user_id,
        type="compliance.rejected",
        title="Document rejected",
        message=f"Your {document_label(document.doc_type)} was rejected: {reason}",
        payload={"document_id": str(document.id)},
        category="compliance",
        priority="high",
    )
    await record_audit(
        db,
        verifier_id,
        "compliance_document.rejected",
        "compliance_document",
        document.id,
        {"user_id": str(document.user_id), "reason": reason},
    )
    await db.commit()
    await db.refresh(document)
    return document


async def get_check_or_404(db: AsyncSession, check_id: uuid.UUID) -> BackgroundCheck:
    check = await db.get(BackgroundCheck, check_id)
    if check is None:
        raise NotFoundError("Background check not found")
    return check


async def request_background_check(
    db: AsyncSession,
    user_id: uuid.UUID,
    check_type: str = "police_check",
    provider: Optional[str] = None,
    organization_id: Optional[uuid.UUID] = None,
) -> BackgroundCheck:
    check = BackgroundCheck(
        user_id=user_id,
        organization_id=organization_id,
        check_type=check_type,
        provider=provider,
        status=BackgroundCheckStatus.PENDING,
        requested_at=utc_now(),
    )
    db.add(check)
    await db.commit()
    await db.refresh(check)
    return check


async def update_background_check(
    db: AsyncSession,
    check: BackgroundCheck,
    status: BackgroundCheckStatus,
    result: Optional[str] = None,
) -> BackgroundCheck:
    if check.status in (BackgroundCheckStatus.CLEARED, BackgroundCheckStatus.FAILED):
        raise InvalidStateError(f"Background check is already {check.status.value}")
    check.status = status
    if result is not None:
        check.result = result
    if status in (BackgroundCheckStatus.CLEARED, BackgroundCheckStatus.FAILED):
        check.completed_at = utc_now()
        await create_notification(
            db,
            check.user_id,
            type=f"background_check.{status.value}",
            title="Background check complete",
            message=f"Your background check has been marked {status.value}.",
            payload={"check_id": str(check.id)},
            category="compliance",
        )
    await db.commit()
    await db.refresh(check)
    return check
