"""Applications to opportunities.

Capacity is enforced when an application is accepted, not when it is made:
applying only records interest.
"""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    CapacityError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from libs.common.logging import get_logger
from services.communications_service.services.notifications import (
    create_bulk,
    create_notification,
)
from services.compliance_service.services import ensure_compliant
from services.compliance_service.services.requirements import SIGNUP_LEVELS
from services.events_service.models import (
    Application,
    ApplicationStatus,
    Opportunity,
    OpportunityStatus,
)
from services.organizations_service.permissions import require_team_member, team_user_ids
from services.users_service.models import User
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

DECISION_STATUSES = (ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED)


async def get_application_or_404(db: AsyncSession, application_id: uuid.UUID) -> Application:
    application = await db.get(Application, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    return application


async def apply(
    db: AsyncSession,
    opportunity: Opportunity,
    user_id: uuid.UUID,
    notes: Optional[str] = None,
) -> Application:
    if opportunity.status != OpportunityStatus.PUBLISHED:
        raise InvalidStateError("Cannot apply to unpublished opportunity")

    existing = (
        await db.execute(
            select(Application.id).where(
                Application.opportunity_id == opportunity.id,
                Application.user_id == user_id,
            )
        )
    ).scalar_one_or_none()
    if existing:
        raise ConflictError("You have already applied to this opportunity")

    await ensure_compliant(
        db,
        user_id,
        opportunity.organization_id,
        "apply",
        opportunity_id=opportunity.id,
        levels=SIGNUP_LEVELS,
    )

    application = Application(
        opportunity_id=opportunity.id,
        user_id=user_id,
        status=ApplicationStatus.APPLIED,
        applied_at=utc_now(),
        notes=notes,
    )
    db.add(application)
    await db.flush()

    volunteer = await db.get(User, user_id)
    volunteer_name = (volunteer.full_name or volunteer.email) if volunteer else "A volunteer"
    await create_bulk(
        db,
        await team_user_ids(db, opportunity.organization_id),
        type="new_application",
        title="New application",
        message=f"{volunteer_name} applied to {opportunity.title}",
        payload={
            "application_id": str(application.id),
            "opportunity_id": str(opportunity.id),
            "opportunity_title": opportunity.title,
            "volunteer_id": str(user_id),
            "volunteer_name": volunteer_name,
        },
        category="applications",
    )

    await db.commit()
    await db.refresh(application)
    logger.info(f"User {user_id} applied to opportunity {opportunity.id}")
    return application


async def _accepted_count(db: AsyncSession, opportunity_id: uuid.UUID, exclude_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count(Application.id)).where(
            Application.opportunity_id == opportunity_id,
            Application.status == ApplicationStatus.ACCEPTED,
            Application.id != exclude_id,
        )
    )
    return result.scalar() or 0


async def _decide(
    db: AsyncSession,
    application: Application,
    status: ApplicationStatus,
    notes: Optional[str] = None,
) -> Application:
    """Apply an accept/reject decision without committing."""
    if status not in DECISION_STATUSES:
        raise InvalidStateError("Invalid status. Use accepted or rejected.")
    if application.status == ApplicationStatus.WITHDRAWN:
        raise InvalidStateError("Application was withdrawn")

    opportunity = await db.get(Opportunity, application.opportunity_id)
    if status == ApplicationStatus.ACCEPTED and opportunity and opportunity.capacity > 0:
        if await _accepted_count(db, opportunity.id, application.id) >= opportunity.capacity:
            raise CapacityError("Opportunity is at full capacity")

    application.status = status
    application.responded_at = utc_now()
    if notes:
        application.notes = notes
    await db.flush()

    opportunity_title = opportunity.title if opportunity else "Opportunity"
    accepted = status == ApplicationStatus.ACCEPTED
    await create_notification(
        db,
        application.user_id,
        type="application_accepted" if accepted else "application_rejected",
        title="Application accepted" if accepted else "Application update",
        message=(
            f"Your application to {opportunity_title} was accepted."
            if accepted
            else f"Your application to {opportunity_title} was not successful."
        ),
        payload={
            "application_id": str(application.id),
            "opportunity_id": str(application.opportunity_id),
            "opportunity_title": opportunity_title,
            "status": status.value,
        },
        category="applications",
        send_email=accepted,
    )
    return application


async def update_status(
    db: AsyncSession,
    application: Application,
    status: ApplicationStatus,
    notes: Optional[str] = None,
) -> Application:
    await _decide(db, application, status, notes)
    await db.commit()
    await db.refresh(application)
    return application


async def withdraw(db: AsyncSession, application: Application, user_id: uuid.UUID) -> Application:
    if application.user_id != user_id:
        raise PermissionDeniedError("You can only withdraw your own applications")
    if application.status != ApplicationStatus.APPLIED:
        raise InvalidStateError("Can only withdraw pending applications")
    application.status = ApplicationStatus.WITHDRAWN
    application.responded_at = utc_now()
    await db.commit()
    await db.refresh(application)
    return application


async def bulk_update_status(
    db: AsyncSession,
    organization_id: uuid.UUID,
    application_ids: list[uuid.UUID],
    status: ApplicationStatus,
    notes: Optional[str] = None,
) -> dict:
    """Decide several applications; failures are reported per id."""
    if status not in DECISION_STATUSES:
        raise InvalidStateError("Invalid status. Use accepted or rejected.")

    updated: list[str] = []
    errors: list[dict] = []
    for application_id in dict.fromkeys(application_ids):
        application = await db.get(Application, application_id)
        opportunity = (
            await db.get(Opportunity, application.opportunity_id) if application else None
        )
        if application is None or opportunity is None or opportunity.organization_id != organization_id:
            errors.append({"id": str(application_id), "error": "Application not found"})
            continue
        try:
            await _decide(db, application, status, notes)
        except ServiceError as e:
            errors.append({"id": str(application_id), "error": e.detail})
            continue
        updated.append(str(application_id))

    await db.commit()
    return {"updated": updated, "errors": errors}


async def authorize_for_application(
    db: AsyncSession, application: Application, user: AuthUser
) -> Opportunity:
    """Team members of the opportunity's organization may decide on it."""
    opportunity = await db.get(Opportunity, application.opportunity_id)
    if opportunity is None:
        raise NotFoundError("Opportunity not found")
    await require_team_member(db, opportunity.organization_id, user)
    return opportunity
