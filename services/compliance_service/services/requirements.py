"""Organization compliance requirements and the checks built on them."""

import uuid
from datetime import timedelta
from typing import Any, Iterable, Optional

from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.errors import NotFoundError, PermissionDeniedError
from libs.common.logging import get_logger
from services.compliance_service.models import (
    ComplianceDocument,
    ComplianceRequirement,
    DocumentStatus,
    DocumentType,
    EnforcementLevel,
)
from services.events_service.models import Opportunity
from services.organizations_service.models import MembershipStatus, OrganizationVolunteer
from services.users_service.models import User
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

VALID_STATUSES = (DocumentStatus.VERIFIED, DocumentStatus.EXPIRING)

# Levels enforced at each gate; onboarding requirements apply everywhere
CHECKIN_LEVELS = (EnforcementLevel.ONBOARDING, EnforcementLevel.SIGNUP, EnforcementLevel.CHECKIN)
SIGNUP_LEVELS = (EnforcementLevel.ONBOARDING, EnforcementLevel.SIGNUP)


async def _check_opportunity(
    db: AsyncSession, organization_id: uuid.UUID, opportunity_id: Optional[uuid.UUID]
) -> None:
    if opportunity_id is None:
        return
    opportunity = await db.get(Opportunity, opportunity_id)
    if opportunity is None or opportunity.organization_id != organization_id:
        raise NotFoundError("Opportunity not found")


async def list_requirements(
    db: AsyncSession, organization_id: uuid.UUID
) -> list[ComplianceRequirement]:
    result = await db.execute(
        select(ComplianceRequirement)
        .where(ComplianceRequirement.organization_id == organization_id)
        .order_by(ComplianceRequirement.name)
    )
    return list(result.scalars().all())


async def get_requirement_or_404(
    db: AsyncSession, organization_id: uuid.UUID, requirement_id: uuid.UUID
) -> ComplianceRequirement:
    requirement = await db.get(ComplianceRequirement, requirement_id)
    if requirement is None or requirement.organization_id != organization_id:
        raise NotFoundError("Requirement not found")
    return requirement


async def create_requirement(
    db: AsyncSession,
    organization_id: uuid.UUID,
    name: str,
    doc_type: DocumentType,
    description: Optional[str] = None,
    is_mandatory: bool = True,
    enforcement_level: EnforcementLevel = EnforcementLevel.CHECKIN,
    opportunity_id: Optional[uuid.UUID] = None,
) -> ComplianceRequirement:
    await _check_opportunity(db, organization_id, opportunity_id)
    requirement = ComplianceRequirement(
        organization_id=organization_id,
        opportunity_id=opportunity_id,
        name=name,
        doc_type=doc_type,
        description=description,
        is_mandatory=is_mandatory,
        enforcement_level=enforcement_level,
    )
    db.add(requirement)
    await db.commit()
    await db.refresh(requirement)
    logger.info(f"Compliance requirement {name!r} added for organization {organization_id}")
    return requirement


async def update_requirement(
    db: AsyncSession, requirement: ComplianceRequirement, **changes: Any
) -> ComplianceRequirement:
    if "opportunity_id" in changes:
        await _check_opportunity(db, requirement.organization_id, changes["opportunity_id"])
    for field, value in changes.items():
        setattr(requirement, field, value)
    await db.commit()
    await db.refresh(requirement)
    return requirement


async def delete_requirement(db: AsyncSession, requirement: ComplianceRequirement) -> None:
    await db.delete(requirement)
    await db.commit()


def _valid_document_filter(now):
    return (
        ComplianceDocument.status.in_(VALID_STATUSES),
        or_(ComplianceDocument.expires_at.is_(None), ComplianceDocument.expires_at > now),
    )


async def held_doc_types(
    db: AsyncSession, user_id: uuid.UUID, doc_types: Iterable[DocumentType]
) -> set[DocumentType]:
    """Document types the user holds a verified, unexpired document for."""
    doc_types = list(doc_types)
    if not doc_types:
        return set()
    result = await db.execute(
        select(ComplianceDocument.doc_type).where(
            ComplianceDocument.user_id == user_id,
            ComplianceDocument.doc_type.in_(doc_types),
            *_valid_document_filter(utc_now()),
        )
    )
    return set(result.scalars().all())


async def missing_requirements(
    db: AsyncSession,
    user_id: uuid.UUID,
    organization_id: uuid.UUID,
    opportunity_id: Optional[uuid.UUID] = None,
    levels: Iterable[EnforcementLevel] = CHECKIN_LEVELS,
) -> list[ComplianceRequirement]:
    """
    Mandatory requirements the user does not currently satisfy.

    Organization-wide requirements always apply; opportunity-scoped ones only
    when ``opportunity_id`` matches.
    """
    scope = ComplianceRequirement.opportunity_id.is_(None)
    if opportunity_id is not None:
        scope = or_(scope, ComplianceRequirement.opportunity_id == opportunity_id)
    result = await db.execute(
        select(ComplianceRequirement)
        .where(
            ComplianceRequirement.organization_id == organization_id,
            ComplianceRequirement.is_mandatory.is_(True),
            ComplianceRequirement.enforcement_level.in_(list(levels)),
            scope,
        )
        .order_by(ComplianceRequirement.name)
    )
    requirements = list(result.scalars().all())
    held = await held_doc_types(db, user_id, {r.doc_type for r in requirements})
    return [r for r in requirements if r.doc_type not in held]


async def ensure_compliant(
    db: AsyncSession,
    user_id: uuid.UUID,
    organization_id: uuid.UUID,
    action: str,
    opportunity_id: Optional[uuid.UUID] = None,
    levels: Iterable[EnforcementLevel] = CHECKIN_LEVELS,
) -> None:
    """Raise 403 naming the unmet requirements, if any."""
    missing = await missing_requirements(db, user_id, organization_id, opportunity_id, levels)
    if missing:
        names = ", ".join(r.name for r in missing)
        raise PermissionDeniedError(
            f"You do not meet the compliance requirements to {action}: {names}",
            code="COMPLIANCE_REQUIRED",
        )


async def organization_compliance_status(
    db: AsyncSession, organization_id: uuid.UUID, expiring_within: int = 30
) -> dict[str, Any]:
    """
    Coverage of the organization's mandatory requirements across its active
    volunteers.

    Each volunteer counts once per requirement: ``valid`` when they hold a
    verified unexpired document, else ``expired`` when a document of that type has
    lapsed, else ``missing``.
    """
    now = utc_now()
    volunteer_ids = list(
        (
            await db.execute(
                select(OrganizationVolunteer.user_id).where(
                    OrganizationVolunteer.organization_id == organization_id,
                    OrganizationVolunteer.status == MembershipStatus.ACTIVE,
                )
            )
        )
        .scalars()
        .all()
    )
    requirements = (
        await db.execute(
            select(ComplianceRequirement)
            .where(
                ComplianceRequirement.organization_id == organization_id,
                ComplianceRequirement.is_mandatory.is_(True),
                ComplianceRequirement.opportunity_id.is_(None),
            )
            .order_by(ComplianceRequirement.name)
        )
    ).scalars().all()

    if not volunteer_ids:
        return {"overall_rate": 100.0, "by_requirement": [], "expiring_documents": []}

    doc_types = {r.doc_type for r in requirements}
    valid: dict[DocumentType, set] = {t: set() for t in doc_types}
    lapsed: dict[DocumentType, set] = {t: set() for t in doc_types}
    if doc_types:
        rows = await db.execute(
            select(
                ComplianceDocument.user_id,
                ComplianceDocument.doc_type,
                ComplianceDocument.status,
                ComplianceDocument.expires_at,
            ).where(
                ComplianceDocument.user_id.in_(volunteer_ids),
                ComplianceDocument.doc_type.in_(doc_types),
            )
        )
        for user_id, doc_type, status, expires_at in rows:
            expires_at = ensure_utc(expires_at)
            expired = status == DocumentStatus.EXPIRED or (
                expires_at is not None and expires_at <= now
            )
            if status in VALID_STATUSES and not expired:
                valid[doc_type].add(user_id)
            elif expired:
                lapsed[doc_type].add(user_id)

    total = len(volunteer_ids)
    by_requirement = []
    compliant = 0
    for requirement in requirements:
        holders = valid[requirement.doc_type]
        expired_only = lapsed[requirement.doc_type] - holders
        compliant += len(holders)
        by_requirement.append(
            {
                "requirement_id": str(requirement.id),
                "name": requirement.name,
                "doc_type": requirement.doc_type.value,
                "total": total,
                "valid": len(holders),
                "expired": len(expired_only),
                "missing": total - len(holders) - len(expired_only),
            }
        )

    required = total * len(requirements)
    overall_rate = round(compliant / required * 100, 1) if required else 100.0

    expiring = await db.execute(
        select(ComplianceDocument, User)
        .join(User, User.id == ComplianceDocument.user_id)
        .where(
            ComplianceDocument.user_id.in_(volunteer_ids),
            ComplianceDocument.status.in_(VALID_STATUSES),
            ComplianceDocument.expires_at > now,
            ComplianceDocument.expires_at <= now + timedelta(days=expiring_within),
        )
        .order_by(ComplianceDocument.expires_at)
        .limit(10)
    )
    expiring_documents = [
        {
            "user_id": str(user.id),
            "user_name": user.full_name,
            "doc_type": document.doc_type.value,
            "expires_at": ensure_utc(document.expires_at).isoformat(),
        }
        for document, user in expiring
    ]

    return {
        "overall_rate": overall_rate,
        "by_requirement": by_requirement,
        "expiring_documents": expiring_documents,
    }
