"""Unit tests for invites and their send queue, applications, accounts and monitoring."""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from libs.auth.tokens import hash_password
from libs.common.errors import (
    AuthenticationError,
    CapacityError,
    ConflictError,
    InvalidStateError,
    PermissionDeniedError,
)
from services.admin_service.models import AuditLog
from services.admin_service.services.monitoring import (
    dashboard_summary,
    database_health,
    delivery_metrics,
    job_stats,
)
from services.communications_service.models import EmailDeliveryStatus
from services.events_service.models import ApplicationStatus
from services.events_service.services.applications import (
    bulk_update_status,
    update_status,
    withdraw,
)
from services.organizations_service.models import (
    InviteSendJob,
    InviteSendStatus,
    InviteStatus,
    MembershipStatus,
    OrganizationStatus,
)
from services.organizations_service.services.invite_sender import process_queue
from services.organizations_service.services.invites import (
    accept_invite,
    cancel_invite,
    create_invite,
    resend_invite,
)
from services.organizations_service.services.send_jobs import (
    job_stats as invite_job_stats,
)
from services.organizations_service.services.send_jobs import (
    list_jobs_query,
    retry_all_failed,
)
from services.organizations_service.services.send_jobs import retry_job as retry_send_job
from services.users_service.services.accounts import authenticate, register_user
from sqlalchemy import select
from tests.conftest import make_user
from tests.factories import (
    ApplicationFactory,
    InviteFactory,
    InviteSendJobFactory,
    NotificationFactory,
    OpportunityFactory,
    OrganizationFactory,
    OrganizationVolunteerFactory,
    ScheduledJobFactory,
    UserFactory,
    VolunteerHourFactory,
    persist,
)

SENDER = "services.organizations_service.services.invite_sender.send_invite_email"


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _send_job(db, invite_id) -> InviteSendJob:
    result = await db.execute(select(InviteSendJob).where(InviteSendJob.invite_id == invite_id))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Invites
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_invite_queues_and_sends_email(db_session):
    org = await persist(db_session, OrganizationFactory.create())

    invite = await create_invite(db_session, org.id, " New.Person@Example.org ", None)
    assert invite.email == "new.person@example.org"
    assert (await _send_job(db_session, invite.id)).status == InviteSendStatus.PENDING

    with patch(SENDER, new=AsyncMock(return_value=True)) as send:
        assert await process_queue(db_session) == 1

    send.assert_awaited_once()
    assert send.await_args.kwargs["accept_url"].endswith(f"/invites/{invite.token}")
    job = await _send_job(db_session, invite.id)
    await db_session.refresh(job)
    assert job.status == InviteSendStatus.SENT
    assert job.sent_at is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_invite_for_existing_volunteer_conflicts(db_session):
    org, volunteer = OrganizationFactory.create(), UserFactory.create()
    await persist(
        db_session, org, volunteer, OrganizationVolunteerFactory.create(org.id, volunteer.id)
    )

    with pytest.raises(ConflictError):
        await create_invite(db_session, org.id, volunteer.email.upper(), None)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_second_active_invite_conflicts(db_session):
    org = await persist(db_session, OrganizationFactory.create())
    await create_invite(db_session, org.id, "friend@example.org", None)

    with pytest.raises(ConflictError):
        await create_invite(db_session, org.id, "Friend@example.org", None)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_failed_send_backs_off_then_fails(db_session):
    org = OrganizationFactory.create()
    invite = InviteFactory.create(org.id)
    job = InviteSendJobFactory.create(invite.id)
    await persist(db_session, org, invite, job)

    with patch(SENDER, new=AsyncMock(return_value=False)):
        await process_queue(db_session)
        await db_session.refresh(job)
        assert job.status == InviteSendStatus.PENDING
        assert job.attempts == 1
        assert job.next_attempt_at.replace(tzinfo=timezone.utc) > _now()

        # Not due yet, so the queue leaves it alone
        assert await process_queue(db_session) == 0

        job.attempts = 4
        job.next_attempt_at = _now() - timedelta(seconds=1)
        await db_session.commit()
        await process_queue(db_session)

    await db_session.refresh(job)
    assert job.status == InviteSendStatus.FAILED
    assert job.attempts == 5
    assert job.last_error == "Send failed"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_sender_exception_is_recorded(db_session):
    org = OrganizationFactory.create()
    invite = InviteFactory.create(org.id)
    job = InviteSendJobFactory.create(invite.id)
    await persist(db_session, org, invite, job)

    with patch(SENDER, new=AsyncMock(side_effect=RuntimeError("smtp down"))):
        await process_queue(db_session)

    await db_session.refresh(job)
    assert job.status == InviteSendStatus.PENDING
    assert job.last_error == "smtp down"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_retry_all_failed_requeues_and_audits(db_session):
    org = OrganizationFactory.create()
    first, second = InviteFactory.create(org.id), InviteFactory.create(org.id)
    await persist(
        db_session,
        org,
        first,
        second,
        InviteSendJobFactory.create(first.id, status=InviteSendStatus.FAILED, attempts=5),
        InviteSendJobFactory.create(second.id, status=InviteSendStatus.SENT),
    )

    assert await retry_all_failed(db_session, None) == 1

    stats = await invite_job_stats(db_session)
    assert stats["total"] == 2
    assert stats["by_status"]["pending"] == 1
    assert stats["by_status"]["sent"] == 1
    assert stats["success_rate"] == 50.0
    actions = (await db_session.execute(select(AuditLog.action))).scalars().all()
    assert set(actions) == {
        "invite_send_jobs.retry_all_failed.started",
        "invite_send_jobs.retry_all_failed.completed",
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_retry_send_job_resets_and_sends_immediately(db_session):
    org = OrganizationFactory.create()
    invite = InviteFactory.create(org.id)
    job = InviteSendJobFactory.create(
        invite.id, status=InviteSendStatus.FAILED, attempts=5, last_error="smtp down"
    )
    await persist(db_session, org, invite, job)

    with patch(SENDER, new=AsyncMock(return_value=True)) as send:
        retried = await retry_send_job(db_session, job)

    send.assert_awaited_once()
    assert retried.status == InviteSendStatus.SENT
    assert retried.attempts == 0
    assert retried.last_error is None
    assert retried.sent_at is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_retry_send_job_that_fails_again_backs_off(db_session):
    org = OrganizationFactory.create()
    invite = InviteFactory.create(org.id)
    job = InviteSendJobFactory.create(invite.id, status=InviteSendStatus.FAILED, attempts=5)
    await persist(db_session, org, invite, job)

    with patch(SENDER, new=AsyncMock(return_value=False)):
        retried = await retry_send_job(db_session, job)

    assert retried.status == InviteSendStatus.PENDING
    assert retried.attempts == 1
    assert retried.last_error == "Send failed"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_jobs_query_filters_by_email_and_created_date(db_session):
    org = OrganizationFactory.create()
    river = InviteFactory.create(org.id, email="river.crew@example.org")
    river_old = InviteFactory.create(org.id, email="river.old@example.org")
    other = InviteFactory.create(org.id, email="someone@example.org")
    now = _now()
    recent = InviteSendJobFactory.create(river.id, created_at=now)
    older = InviteSendJobFactory.create(river_old.id, created_at=now - timedelta(days=10))
    unrelated = InviteSendJobFactory.create(other.id, created_at=now)
    await persist(db_session, org, river, river_old, other, recent, older, unrelated)
    recent_id, older_id = recent.id, older.id

    async def ids(**filters) -> list:
        result = await db_session.execute(list_jobs_query(**filters))
        return [job.id for job in result.scalars()]

    assert await ids(q="RIVER") == [recent_id, older_id]
    assert await ids(q="river", start_date=(now - timedelta(days=2)).date()) == [recent_id]
    assert await ids(end_date=(now - timedelta(days=5)).date()) == [older_id]
    assert len(await ids()) == 3


@pytest.mark.asyncio
@pytest.mark.unit
async def test_accept_invite_creates_membership(db_session):
    org, volunteer = OrganizationFactory.create(), UserFactory.create()
    invite = InviteFactory.create(org.id, email=volunteer.email)
    await persist(db_session, org, volunteer, invite)

    membership = await accept_invite(db_session, invite.token, make_user(volunteer))

    assert membership.status == MembershipStatus.ACTIVE
    assert invite.status == InviteStatus.ACCEPTED
    with pytest.raises(InvalidStateError):
        await accept_invite(db_session, invite.token, make_user(volunteer))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_accept_invite_for_other_email_is_denied(db_session):
    org, stranger = OrganizationFactory.create(), UserFactory.create()
    invite = InviteFactory.create(org.id, email="someone.else@example.org")
    await persist(db_session, org, stranger, invite)

    with pytest.raises(PermissionDeniedError):
        await accept_invite(db_session, invite.token, make_user(stranger))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_expired_invite_cannot_be_accepted(db_session):
    org, volunteer = OrganizationFactory.create(), UserFactory.create()
    invite = InviteFactory.create(
        org.id, email=volunteer.email, expires_at=_now() - timedelta(hours=1)
    )
    await persist(db_session, org, volunteer, invite)

    with pytest.raises(InvalidStateError) as exc:
        await accept_invite(db_session, invite.token, make_user(volunteer))
    assert exc.value.code == "INVITE_EXPIRED"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_resend_rotates_token_and_cancel_is_final(db_session):
    org = OrganizationFactory.create()
    invite = InviteFactory.create(org.id)
    await persist(db_session, org, invite)
    old_token = invite.token

    await resend_invite(db_session, invite)
    assert invite.token != old_token
    assert (await _send_job(db_session, invite.id)).status == InviteSendStatus.PENDING

    await cancel_invite(db_session, invite)
    assert invite.status == InviteStatus.CANCELLED
    with pytest.raises(InvalidStateError):
        await resend_invite(db_session, invite)


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_accepting_beyond_capacity_fails(db_session):
    org = OrganizationFactory.create()
    opportunity = OpportunityFactory.create(org.id, capacity=1)
    first, second = UserFactory.create(), UserFactory.create()
    a1 = ApplicationFactory.create(opportunity.id, first.id)
    a2 = ApplicationFactory.create(opportunity.id, second.id)
    await persist(db_session, org, opportunity, first, second, a1, a2)

    await update_status(db_session, a1, ApplicationStatus.ACCEPTED)
    assert a1.status == ApplicationStatus.ACCEPTED

    with pytest.raises(CapacityError):
        await update_status(db_session, a2, ApplicationStatus.ACCEPTED)

    # Rejecting is always possible
    await update_status(db_session, a2, ApplicationStatus.REJECTED)
    assert a2.status == ApplicationStatus.REJECTED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_bulk_decisions_report_failures_per_item(db_session):
    org = OrganizationFactory.create()
    opportunity = OpportunityFactory.create(org.id, capacity=1)
    first, second = UserFactory.create(), UserFactory.create()
    a1 = ApplicationFactory.create(opportunity.id, first.id)
    a2 = ApplicationFactory.create(opportunity.id, second.id)
    await persist(db_session, org, opportunity, first, second, a1, a2)
    missing = uuid.uuid4()

    result = await bulk_update_status(
        db_session, org.id, [a1.id, a2.id, missing], ApplicationStatus.ACCEPTED
    )

    assert result["updated"] == [str(a1.id)]
    assert {e["id"]: e["error"] for e in result["errors"]} == {
        str(a2.id): "Opportunity is at full capacity",
        str(missing): "Application not found",
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_only_owner_can_withdraw_pending_application(db_session):
    org = OrganizationFactory.create()
    opportunity = OpportunityFactory.create(org.id)
    volunteer = UserFactory.create()
    application = ApplicationFactory.create(opportunity.id, volunteer.id)
    await persist(db_session, org, opportunity, volunteer, application)

    with pytest.raises(PermissionDeniedError):
        await withdraw(db_session, application, uuid.uuid4())

    await withdraw(db_session, application, volunteer.id)
    assert application.status == ApplicationStatus.WITHDRAWN
    with pytest.raises(InvalidStateError):
        await update_status(db_session, application, ApplicationStatus.ACCEPTED)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_register_rejects_duplicate_email(db_session):
    await register_user(db_session, "Dana@Example.org", "s3cret-pass", "Dana", "Lee")

    with pytest.raises(ConflictError):
        await register_user(db_session, "dana@example.org", "another-pass", "Dana", "Lee")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_authenticate_checks_password_and_disabled_flag(db_session):
    user = await persist(
        db_session, UserFactory.create(password_hash=hash_password("correct-horse"))
    )

    with pytest.raises(AuthenticationError):
        await authenticate(db_session, user.email, "wrong")

    logged_in = await authenticate(db_session, user.email.upper(), "correct-horse")
    assert logged_in.last_active_at is not None

    user.is_disabled = True
    await db_session.commit()
    with pytest.raises(PermissionDeniedError) as exc:
        await authenticate(db_session, user.email, "correct-horse")
    assert exc.value.code == "ACCOUNT_DISABLED"


# ---------------------------------------------------------------------------
# Monitoring
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_database_health_reports_connected(db_session):
    health = await database_health(db_session)

    assert health["status"] == "healthy"
    assert health["database"]["connected"] is True


@pytest.mark.asyncio
@pytest.mark.unit
async def test_dashboard_summary_counts(db_session):
    org = OrganizationFactory.create()
    pending_org = OrganizationFactory.create(
        status=OrganizationStatus.PENDING, is_approved=False
    )
    volunteer = UserFactory.create()
    await persist(
        db_session,
        org,
        pending_org,
        volunteer,
        OpportunityFactory.create(org.id),
        VolunteerHourFactory.create(org.id, volunteer.id),
    )

    assert await dashboard_summary(db_session) == {
        "users": 1,
        "organizations": 2,
        "pending_approvals": 1,
        "pending_hours": 1,
        "open_opportunities": 1,
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_job_and_delivery_metrics(db_session):
    user = UserFactory.create()
    await persist(
        db_session,
        user,
        ScheduledJobFactory.create(),
        NotificationFactory.create(user.id, read=True, email_status=EmailDeliveryStatus.SENT),
        NotificationFactory.create(user.id, email_status=EmailDeliveryStatus.FAILED),
    )

    jobs = await job_stats(db_session)
    assert jobs["scheduled_jobs"]["total"] == 1
    assert jobs["invite_send_jobs"]["total"] == 0

    metrics = await delivery_metrics(db_session)
    assert metrics["total"] == 2
    assert metrics["read"] == 1
    assert metrics["email_sent"] == 1
    assert metrics["email_failed"] == 1
    assert metrics["read_rate"] == 50.0
