"""Unit tests for compliance documents, background checks and the expiry sweep."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from libs.common.errors import InvalidStateError
from services.admin_service.models import AuditLog
from services.communications_service.models import Notification, NotificationPriority
from services.compliance_service.models import (
    BackgroundCheckStatus,
    DocumentStatus,
    DocumentType,
)
from services.compliance_service.services import (
    reject_document,
    request_background_check,
    update_background_check,
    upload_document,
    verify_document,
)
from services.compliance_service.tasks import expiry
from services.compliance_service.tasks.expiry import check_compliance_expiry
from sqlalchemy import select
from tests.factories import (
    BackgroundCheckFactory,
    ComplianceDocumentFactory,
    UserFactory,
    persist,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _notifications(db, user_id) -> list[Notification]:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at)
    )
    return list(result.scalars())


# ---------------------------------------------------------------------------
# Upload and review
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_upload_wwcc_normalizes_number(db_session):
    volunteer = await persist(db_session, UserFactory.create())

    document = await upload_document(
        db_session,
        volunteer.id,
        DocumentType.WWCC,
        state="nsw",
        document_number="wwc 1234567 e",
        expires_at=_now() + timedelta(days=365),
    )

    assert document.status == DocumentStatus.PENDING
    assert document.state == "NSW"
    assert document.document_number == "WWC1234567E"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_upload_wwcc_rejects_invalid_number(db_session):
    volunteer = await persist(db_session, UserFactory.create())

    with pytest.raises(InvalidStateError) as exc:
        await upload_document(
            db_session, volunteer.id, DocumentType.WWCC, state="VIC", document_number="123"
        )
    assert exc.value.code == "INVALID_WWCC"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_upload_wwcc_requires_state(db_session):
    volunteer = await persist(db_session, UserFactory.create())

    with pytest.raises(InvalidStateError):
        await upload_document(
            db_session, volunteer.id, DocumentType.WWCC, document_number="12345678A"
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_verify_document_near_expiry_becomes_expiring(db_session):
    volunteer, admin = UserFactory.create(), UserFactory.create(is_admin=True)
    document = ComplianceDocumentFactory.create(
        volunteer.id, status=DocumentStatus.PENDING, expires_at=_now() + timedelta(days=10)
    )
    await persist(db_session, volunteer, admin, document)

    verified = await verify_document(db_session, document, admin.id)

    assert verified.status == DocumentStatus.EXPIRING
    assert verified.verified_by == admin.id
    audit = (await db_session.execute(select(AuditLog))).scalar_one()
    assert audit.action == "compliance_document.verified"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rejected_document_cannot_be_verified(db_session):
    volunteer, admin = UserFactory.create(), UserFactory.create(is_admin=True)
    document = ComplianceDocumentFactory.create(volunteer.id, status=DocumentStatus.PENDING)
    await persist(db_session, volunteer, admin, document)

    await reject_document(db_session, document, admin.id, "Blurry scan")

    notification = (await _notifications(db_session, volunteer.id))[0]
    assert notification.priority == NotificationPriority.HIGH
    assert "Blurry scan" in notification.message
    with pytest.raises(InvalidStateError):
        await verify_document(db_session, document, admin.id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_background_check_completion_is_final(db_session):
    volunteer = await persist(db_session, UserFactory.create())
    check = await request_background_check(db_session, volunteer.id, provider="CrimCheck")

    await update_background_check(db_session, check, BackgroundCheckStatus.IN_PROGRESS)
    await update_background_check(db_session, check, BackgroundCheckStatus.CLEARED, "No record")

    assert check.completed_at is not None
    assert [n.type for n in await _notifications(db_session, volunteer.id)] == [
        "background_check.cleared"
    ]
    with pytest.raises(InvalidStateError):
        await update_background_check(db_session, check, BackgroundCheckStatus.FAILED)


# ---------------------------------------------------------------------------
# Expiry sweep
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_expiry_sweep_transitions_and_notifies_once(db_session):
    volunteer = await persist(db_session, UserFactory.create())
    soon = ComplianceDocumentFactory.create(
        volunteer.id, expires_at=_now() + timedelta(days=5, hours=1)
    )
    later = ComplianceDocumentFactory.create(
        volunteer.id,
        doc_type=DocumentType.FIRST_AID,
        expires_at=_now() + timedelta(days=20),
    )
    past = ComplianceDocumentFactory.create(
        volunteer.id,
        doc_type=DocumentType.POLICE_CHECK,
        status=DocumentStatus.EXPIRING,
        expires_at=_now() - timedelta(days=1),
    )
    fine = ComplianceDocumentFactory.create(
        volunteer.id,
        doc_type=DocumentType.INSURANCE,
        expires_at=_now() + timedelta(days=200),
    )
    await persist(db_session, soon, later, past, fine)

    result = await check_compliance_expiry(db_session)
    assert result == {"expiring": 2, "expired": 1, "overdue_checks": 0}

    for document in (soon, later, past, fine):
        await db_session.refresh(document)
    assert soon.status == DocumentStatus.EXPIRING
    assert later.status == DocumentStatus.EXPIRING
    assert past.status == DocumentStatus.EXPIRED
    assert fine.status == DocumentStatus.VERIFIED

    priorities = {
        n.payload["document_id"]: n.priority for n in await _notifications(db_session, volunteer.id)
    }
    assert priorities[str(soon.id)] == NotificationPriority.HIGH
    assert priorities[str(later.id)] == NotificationPriority.MEDIUM
    assert priorities[str(past.id)] == NotificationPriority.URGENT

    # Second run finds nothing new
    assert await check_compliance_expiry(db_session) == {
        "expiring": 0,
        "expired": 0,
        "overdue_checks": 0,
    }
    assert len(await _notifications(db_session, volunteer.id)) == 3


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rejected_documents_are_not_expired(db_session):
    volunteer = await persist(db_session, UserFactory.create())
    rejected = ComplianceDocumentFactory.create(
        volunteer.id, status=DocumentStatus.REJECTED, expires_at=_now() - timedelta(days=3)
    )
    await persist(db_session, rejected)

    assert (await check_compliance_expiry(db_session))["expired"] == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_overdue_background_check_flagged_once(db_session):
    volunteer = await persist(db_session, UserFactory.create())
    stale = BackgroundCheckFactory.create(
        volunteer.id, requested_at=_now() - timedelta(days=20)
    )
    recent = BackgroundCheckFactory.create(
        volunteer.id, requested_at=_now() - timedelta(days=2)
    )
    await persist(db_session, stale, recent)

    assert (await check_compliance_expiry(db_session))["overdue_checks"] == 1
    assert (await check_compliance_expiry(db_session))["overdue_checks"] == 0

    await db_session.refresh(stale)
    assert stale.overdue_notified_at is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_expiry_sweep_continues_past_a_failed_notice(db_session):
    unlucky, volunteer = UserFactory.create(), UserFactory.create()
    stuck = ComplianceDocumentFactory.create(unlucky.id, expires_at=_now() - timedelta(days=1))
    lapsed = ComplianceDocumentFactory.create(volunteer.id, expires_at=_now() - timedelta(days=2))
    await persist(db_session, unlucky, volunteer, stuck, lapsed)
    unlucky_id, volunteer_id = unlucky.id, volunteer.id

    create_notification = expiry.create_notification

    async def flaky_create(db, user_id, **kwargs):
        if user_id == unlucky_id:
            raise RuntimeError("notification store unavailable")
        return await create_notification(db, user_id, **kwargs)

    with patch(
        "services.compliance_service.tasks.expiry.create_notification", new=flaky_create
    ):
        assert (await check_compliance_expiry(db_session))["expired"] == 1

    await db_session.refresh(stuck)
    await db_session.refresh(lapsed)
    assert stuck.status == DocumentStatus.VERIFIED
    assert lapsed.status == DocumentStatus.EXPIRED
    assert [n.type for n in await _notifications(db_session, volunteer_id)] == [
        "compliance.expired"
    ]

    # The rolled-back document is picked up by the next sweep
    assert (await check_compliance_expiry(db_session))["expired"] == 1
    await db_session.refresh(stuck)
    assert stuck.status == DocumentStatus.EXPIRED
