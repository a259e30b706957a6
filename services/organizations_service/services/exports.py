"""CSV exports of an organization's volunteer hours and compliance records."""

import csv
import io
import uuid
from datetime import date
from typing import Optional

from libs.common.datetime_utils import ensure_utc
from services.compliance_service.models import ComplianceDocument
from services.organizations_service.models import MembershipStatus, OrganizationVolunteer
from services.users_service.models import User
from services.volunteer_service.models import HoursStatus, VolunteerHour
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

HOURS_COLUMNS = ["Date", "Volunteer", "Email", "Hours", "Status", "Notes", "Approved At"]
COMPLIANCE_COLUMNS = [
    "Volunteer",
    "Email",
    "Document Type",
    "State",
    "Document Number",
    "Status",
    "Issued",
    "Expires",
]


def _write(columns: list[str], rows) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(columns)
    writer.writerows(rows)
    return buffer.getvalue()


def _stamp(value) -> str:
    value = ensure_utc(value)
    return value.isoformat() if value else ""


async def hours_csv(
    db: AsyncSession,
    organization_id: uuid.UUID,
    status: Optional[HoursStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    volunteer_id: Optional[uuid.UUID] = None,
) -> str:
    query = (
        select(VolunteerHour, User)
        .join(User, User.id == VolunteerHour.user_id)
        .where(VolunteerHour.organization_id == organization_id)
    )
    if status:
        query = query.where(VolunteerHour.status == status)
    if start_date:
        query = query.where(VolunteerHour.date >= start_date)
    if end_date:
        query = query.where(VolunteerHour.date <= end_date)
    if volunteer_id:
        query = query.where(VolunteerHour.user_id == volunteer_id)
    result = await db.execute(query.order_by(VolunteerHour.date.desc(), User.last_name))

    return _write(
        HOURS_COLUMNS,
        (
            [
                entry.date.isoformat(),
                user.full_name,
                user.email,
                entry.hours,
                entry.status.value,
                entry.notes or "",
                _stamp(entry.approved_at),
            ]
            for entry, user in result
        ),
    )


async def compliance_csv(db: AsyncSession, organization_id: uuid.UUID) -> str:
    """Every compliance document held by the organization's active volunteers."""
    result = await db.execute(
        select(ComplianceDocument, User)
        .join(User, User.id == ComplianceDocument.user_id)
        .join(OrganizationVolunteer, OrganizationVolunteer.user_id == User.id)
        .where(
            OrganizationVolunteer.organization_id == organization_id,
            OrganizationVolunteer.status == MembershipStatus.ACTIVE,
        )
        .order_by(User.last_name, User.first_name, ComplianceDocument.doc_type)
    )
    return _write(
        COMPLIANCE_COLUMNS,
        (
            [
                user.full_name,
                user.email,
                document.doc_type.value,
                document.state or "",
                document.document_number or "",
                document.status.value,
                _stamp(document.issued_at),
                _stamp(document.expires_at),
            ]
            for document, user in result
        ),
    )
