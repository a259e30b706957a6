"""
Communication sender.

Delivers ``communications`` rows whose ``send_at`` has passed. The audience
string is resolved to concrete recipients at send time, so users who joined
after the message was scheduled are included.
"""

import json
import uuid
from dataclasses import dataclass
from typing import Any, Optional

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
)
from services.communications_service.services.notifications import create_notification
from services.communications_service.templates.volunteer import send_communication_email
from services.organizations_service.models import (
    MembershipStatus,
    Organization,
    OrganizationTeamMember,
    OrganizationVolunteer,
)
from services.users_service.models import User
from services.volunteer_service.models import VolunteerHour
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class Recipient:
    email: str
    user_id: Optional[uuid.UUID] = None
    name: Optional[str] = None


def parse_audience(target_audience: Optional[str]) -> Any:
    """
    Decode the stored audience.

    Returns "all", a dict (roles / organization_id / event_id) or a list of
    email addresses.
    """
    if target_audience is None or target_audience.strip().lower() in ("", "all"):
        return "all"
    text = target_audience.strip()
    if text.startswith("{"):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
    return [part.strip() for part in text.split(",") if part.strip()]


def _active_users():
    return select(User).where(User.is_disabled.is_(False))


async def resolve_recipients(
    db: AsyncSession, target_audience: Optional[str]
) -> list[Recipient]:
    audience = parse_audience(target_audience)

    if audience == "all":
        users = (await db.execute(_active_users())).scalars().all()
    elif isinstance(audience, dict) and audience.get("roles"):
        roles = set(audience["roles"])
        users_by_id: dict[uuid.UUID, User] = {}
        if "admin" in roles:
            for user in (
                await db.execute(_active_users().where(User.is_admin.is_(True)))
            ).scalars():
                users_by_id[user.id] = user
        if "volunteer" in roles:
            query = _active_users().join(
                OrganizationVolunteer, OrganizationVolunteer.user_id == User.id
            ).where(OrganizationVolunteer.status == MembershipStatus.ACTIVE)
            for user in (await db.execute(query)).scalars():
                users_by_id[user.id] = user
        if "organization" in roles:
            query = _active_users().join(
                OrganizationTeamMember, OrganizationTeamMember.user_id == User.id
            ).where(OrganizationTeamMember.is_active.is_(True))
            for user in (await db.execute(query)).scalars():
                users_by_id[user.id] = user
        users = list(users_by_id.values())
    elif isinstance(audience, dict) and audience.get("organization_id"):
        query = (
            _active_users()
            .join(OrganizationVolunteer, OrganizationVolunteer.user_id == User.id)
            .where(
                OrganizationVolunteer.organization_id
                == uuid.UUID(str(audience["organization_id"])),
                OrganizationVolunteer.status == MembershipStatus.ACTIVE,
            )
        )
        users = (await db.execute(query)).scalars().unique().all()
    elif isinstance(audience, dict) and audience.get("event_id"):
        query = (
            _active_users()
            .join(VolunteerHour, VolunteerHour.user_id == User.id)
            .where(VolunteerHour.event_id == uuid.UUID(str(audience["event_id"])))
            .distinct()
        )
        users = (await db.execute(query)).scalars().all()
    elif isinstance(audience, list):
        known = {
            user.email.lower(): user
            for user in (
                await db.execute(
                    select(User).where(User.email.in_([e.lower() for e in audience]))
                )
            ).scalars()
        }
        recipients = []
        for email in dict.fromkeys(e.lower() for e in audience):
            user = known.get(email)
            recipients.append(
                Recipient(
                    email=email,
                    user_id=user.id if user else None,
                    name=user.first_name if user else None,
                )
            )
        return recipients
    else:
        logger.warning(f"Unrecognised audience {target_audience!r}; nobody to send to")
        users = []

    return [Recipient(email=u.email, user_id=u.id, name=u.first_name) for u in users]


async def deliver(db: AsyncSession, communication: Communication) -> int:
    """Send one communication to its audience; returns the recipient count."""
    recipients = await resolve_recipients(db, communication.target_audience)

    organization_name = None
    if communication.organization_id:
        organization = await db.get(Organization, communication.organization_id)
        organization_name = organization.name if organization else None

    if communication.type == CommunicationType.EMAIL:
        failures = 0
        for recipient in recipients:
            sent = await send_communication_email(
                recipient.email,
                communication.subject,
                communication.body,
                organization_name=organization_name,
            )
            if not sent:
                failures += 1
        if recipients and failures == len(recipients):
            raise RuntimeError(f"All {failures} email deliveries failed")
        if failures:
            logger.warning(
                f"Communication {communication.id}: {failures}/{len(recipients)} emails failed"
            )
    else:
        for recipient in recipients:
            if recipient.user_id is None:
                continue
            await create_notification(
                db,
                recipient.user_id,
                type="communication",
                title=communication.subject,
                message=communication.body,
                payload={"communication_id": str(communication.id)},
                category="communication",
            )

    return len(recipients)


async def send_now(db: AsyncSession, communication: Communication) -> Communication:
    """Deliver a draft or scheduled communication immediately."""
    if communication.status not in (
        CommunicationStatus.DRAFT,
        CommunicationStatus.SCHEDULED,
        CommunicationStatus.FAILED,
    ):
        raise InvalidStateError(f"Cannot send a {communication.status.value} communication")
    communication.status = CommunicationStatus.SENDING
    await db.commit()
    await _deliver_and_record(db, communication.id)
    await db.refresh(communication)
    return communication


async def _deliver_and_record(db: AsyncSession, communication_id: uuid.UUID) -> bool:
    communication = await db.get(Communication, communication_id, populate_existing=True)
    try:
        count = await deliver(db, communication)
    except Exception as e:
        await db.rollback()
        logger.error(f"Communication {communication_id} failed: {e}")
        communication = await db.get(Communication, communication_id)
        communication.attempts = (communication.attempts or 0) + 1
        communication.last_error = str(e)
        if communication.attempts >= get_settings().JOB_MAX_ATTEMPTS:
            communication.status = CommunicationStatus.FAILED
        else:
            communication.status = CommunicationStatus.SCHEDULED
            communication.send_at = next_attempt_at(communication.attempts)
        await db.commit()
        return False

    communication.status = CommunicationStatus.SENT
    communication.sent_at = utc_now()
    communication.recipient_count = count
    communication.attempts = (communication.attempts or 0) + 1
    communication.last_error = None
    await db.commit()
    logger.info(f"Communication {communication_id} sent to {count} recipient(s)")
    return True


async def process_due_communications(db: AsyncSession, batch: int = 20) -> int:
    """Send scheduled communications whose send time has passed."""
    result = await db.execute(
        select(Communication.id)
        .where(
            Communication.status == CommunicationStatus.SCHEDULED,
            Communication.send_at <= utc_now(),
        )
        .order_by(Communication.send_at)
        .limit(batch)
    )
    processed = 0
    for communication_id in list(result.scalars().all()):
        claimed = await db.execute(
            update(Communication)
            .where(
                Communication.id == communication_id,
                Communication.status == CommunicationStatus.SCHEDULED,
            )
            .values(status=CommunicationStatus.SENDING)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        if claimed.rowcount != 1:
            continue
        await _deliver_and_record(db, communication_id)
        processed += 1
    return processed


async def send_scheduled_communications() -> None:
    """Worker entrypoint."""
    async for db in get_async_db():
        await process_due_communications(db)
        break
