"""Events and opportunities owned by organizations."""

import secrets
import uuid
from typing import Any, Optional

from libs.common.datetime_utils import ensure_utc
from libs.common.errors import InvalidStateError, NotFoundError
from services.events_service.models import Event, Opportunity, OpportunityStatus
from services.organizations_service.services.organizations import slugify
from sqlalchemy.ext.asyncio import AsyncSession


def generate_slug(title: str) -> str:
    return f"{slugify(title)}-{secrets.token_hex(4)}"


def _normalize(fields: dict) -> dict:
    for key in ("start_at", "end_at"):
        if fields.get(key) is not None:
            fields[key] = ensure_utc(fields[key])
    return fields


def _check_window(start_at, end_at) -> None:
    if end_at is not None and ensure_utc(end_at) <= ensure_utc(start_at):
        raise InvalidStateError("end_at must be after start_at")


# ── Events ──────────────────────────────────────────────────────────


async def get_event_or_404(
    db: AsyncSession, event_id: uuid.UUID, organization_id: Optional[uuid.UUID] = None
) -> Event:
    event = await db.get(Event, event_id)
    if event is None or (organization_id is not None and event.organization_id != organization_id):
        raise NotFoundError("Event not found")
    return event


async def create_event(
    db: AsyncSession, organization_id: uuid.UUID, created_by: uuid.UUID, **fields: Any
) -> Event:
    fields = _normalize(fields)
    _check_window(fields["start_at"], fields.get("end_at"))
    event = Event(organization_id=organization_id, created_by=created_by, **fields)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def update_event(db: AsyncSession, event: Event, **fields: Any) -> Event:
    fields = _normalize(fields)
    for key, value in fields.items():
        setattr(event, key, value)
    _check_window(event.start_at, event.end_at)
    await db.commit()
    await db.refresh(event)
    return event


# ── Opportunities ───────────────────────────────────────────────────


async def get_opportunity_or_404(
    db: AsyncSession,
    opportunity_id: uuid.UUID,
    organization_id: Optional[uuid.UUID] = None,
) -> Opportunity:
    opportunity = await db.get(Opportunity, opportunity_id)
    if opportunity is None or (
        organization_id is not None and opportunity.organization_id != organization_id
    ):
        raise NotFoundError("Opportunity not found")
    return opportunity


async def create_opportunity(
    db: AsyncSession, organization_id: uuid.UUID, created_by: uuid.UUID, **fields: Any
) -> Opportunity:
    fields = _normalize(fields)
    _check_window(fields["start_at"], fields.get("end_at"))
    if fields.get("event_id"):
        await get_event_or_404(db, fields["event_id"], organization_id)
    opportunity = Opportunity(
        organization_id=organization_id,
        created_by=created_by,
        slug=generate_slug(fields["title"]),
        status=OpportunityStatus.DRAFT,
        **fields,
    )
    db.add(opportunity)
    await db.commit()
    await db.refresh(opportunity)
    return opportunity


async def update_opportunity(
    db: AsyncSession, opportunity: Opportunity, **fields: Any
) -> Opportunity:
    fields = _normalize(fields)
    if fields.get("event_id"):
        await get_event_or_404(db, fields["event_id"], opportunity.organization_id)
    for key, value in fields.items():
        setattr(opportunity, key, value)
    _check_window(opportunity.start_at, opportunity.end_at)
    await db.commit()
    await db.refresh(opportunity)
    return opportunity


async def set_opportunity_status(
    db: AsyncSession, opportunity: Opportunity, status: OpportunityStatus
) -> Opportunity:
    """Publish, unpublish (back to draft), close or cancel."""
    if opportunity.status == OpportunityStatus.CANCELLED:
        raise InvalidStateError("Cancelled opportunities cannot change status")
    opportunity.status = status
    await db.commit()
    await db.refresh(opportunity)
    return opportunity
