"""Organization communications: drafting, scheduling and cancelling.

Delivery itself lives in ``tasks.communications``; these functions only move
a communication between draft, scheduled and cancelled.
"""

import json
import uuid
from datetime import datetime
from typing import Any, Optional, Union

from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.errors import InvalidStateError, NotFoundError, PermissionDeniedError
from services.communications_service.models import (
    Communication,
    CommunicationStatus,
    CommunicationType,
)
from sqlalchemy.ext.asyncio import AsyncSession

AudienceInput = Union[str, dict[str, Any], list[str], None]


def normalize_audience(
    audience: AudienceInput, organization_id: uuid.UUID, is_admin: bool = False
) -> str:
    """
    Turn the API audience into the stored text form.

    Organizations may only reach their own volunteers or explicit addresses.
    Without an audience the organization's active volunteers are targeted.
    """
    if audience is None or audience == "":
        return json.dumps({"organization_id": str(organization_id)})
    if isinstance(audience, list):
        return ",".join(email.strip().lower() for email in audience if email.strip())
    if isinstance(audience, dict):
        if "organization_id" in audience:
            if str(audience["organization_id"]) != str(organization_id) and not is_admin:
                raise PermissionDeniedError("Cannot message another organization's volunteers")
            return json.dumps({"organization_id": str(audience["organization_id"])})
        if not is_admin:
            raise PermissionDeniedError("Only admins can target platform-wide audiences")
        return json.dumps(audience)
    if audience.strip().lower() == "all" and not is_admin:
        raise PermissionDeniedError("Only admins can message all users")
    return audience.strip()


async def get_communication_or_404(
    db: AsyncSession, communication_id: uuid.UUID, organization_id: uuid.UUID
) -> Communication:
    communication = await db.get(Communication, communication_id)
    if communication is None or communication.organization_id != organization_id:
        raise NotFoundError("Communication not found")
    return communication


def _require_future(send_at: datetime) -> datetime:
    send_at = ensure_utc(send_at)
    if send_at <= utc_now():
        raise InvalidStateError("send_at must be in the future")
    return send_at


async def create_communication(
    db: AsyncSession,
    organization_id: uuid.UUID,
    created_by: uuid.UUID,
    subject: str,
    body: str,
    type: CommunicationType = CommunicationType.EMAIL,
    target_audience: AudienceInput = None,
    send_at: Optional[datetime] = None,
    is_admin: bool = False,
) -> Communication:
    communication = Communication(
        organization_id=organization_id,
        created_by=created_by,
        subject=subject,
        body=body,
        type=type,
        target_audience=normalize_audience(target_audience, organization_id, is_admin),
        status=CommunicationStatus.DRAFT,
        attempts=0,
        recipient_count=0,
    )
    if send_at is not None:
        communication.send_at = _require_future(send_at)
        communication.status = CommunicationStatus.SCHEDULED
    db.add(communication)
    await db.commit()
    await db.refresh(communication)
    return communication


async def update_communication(
    db: AsyncSession,
    communication: Communication,
    is_admin: bool = False,
    **fields: Any,
) -> Communication:
    if communication.status != CommunicationStatus.DRAFT:
        raise InvalidStateError("Only draft communications can be edited")
    if "target_audience" in fields:
        fields["target_audience"] = normalize_audience(
            fields["target_audience"], communication.organization_id, is_admin
        )
    for key, value in fields.items():
        setattr(communication, key, value)
    await db.commit()
    await db.refresh(communication)
    return communication


async def schedule_communication(
    db: AsyncSession, communication: Communication, send_at: datetime
) -> Communication:
    if communication.status not in (CommunicationStatus.DRAFT, CommunicationStatus.SCHEDULED):
        raise InvalidStateError("Only draft or scheduled communications can be scheduled")
    communication.send_at = _require_future(send_at)
    communication.status = CommunicationStatus.SCHEDULED
    await db.commit()
    await db.refresh(communication)
    return communication


async def cancel_communication(
    db: AsyncSession, communication: Communication
) -> Communication:
    if communication.status not in (CommunicationStatus.DRAFT, CommunicationStatus.SCHEDULED):
        raise InvalidStateError("Only draft or scheduled communications can be cancelled")
    communication.status = CommunicationStatus.CANCELLED
    await db.commit()
    await db.refresh(communication)
    return communication
