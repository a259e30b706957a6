"""Unit tests for organization compliance requirements and their enforcement."""

from datetime import datetime, timedelta, timezone

import pytest
from libs.common.errors import NotFoundError, PermissionDeniedError
from services.compliance_service.models import (
    DocumentStatus,
    DocumentType,
    EnforcementLevel,
)
from services.compliance_service.services import (
    create_requirement,
    ensure_compliant,
    missing_requirements,
    organization_compliance_status,
)
from services.events_service.models import ApplicationStatus
from services.events_service.services.applications import apply
from services.volunteer_service.models import AssignmentStatus
from services.volunteer_service.services.shifts import check_in
from tests.factories import (
    ComplianceDocumentFactory,
    ComplianceRequirementFactory,
    OpportunityFactory,
    OrganizationFactory,
    OrganizationVolunteerFactory,
    ShiftAssignmentFactory,
    ShiftFactory,
    UserFactory,
    persist,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_requirement_rejects_foreign_opportunity(db_session):
    org, other = await persist(
        db_session, OrganizationFactory.create(), OrganizationFactory.create()
    )
    opportunity = await persist(db_session, OpportunityFactory.create(other.id))

    with pytest.raises(NotFoundError):
        await create_requirement(
            db_session,
            org.id,
            "First Aid",
            DocumentType.FIRST_AID,
            opportunity_id=opportunity.id,
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_missing_requirements_only_counts_valid_documents(db_session):
    org, volunteer = await persist(
        db_session, OrganizationFactory.create(), UserFactory.create()
    )
    await persist(
        db_session,
        ComplianceRequirementFactory.create(org.id),
        ComplianceRequirementFactory.create(
            org.id, name="First Aid", doc_type=DocumentType.FIRST_AID
        ),
        ComplianceRequirementFactory.create(
            org.id, name="Insurance", doc_type=DocumentType.INSURANCE, is_mandatory=False
        ),
        ComplianceDocumentFactory.create(volunteer.id),
        ComplianceDocumentFactory.create(
            volunteer.id,
            doc_type=DocumentType.FIRST_AID,
            status=DocumentStatus.VERIFIED,
            expires_at=_now() - timedelta(days=1),
        ),
    )

    missing = await missing_requirements(db_session, volunteer.id, org.id)

    # WWCC held; first aid lapsed; insurance optional
    assert [r.name for r in missing] == ["First Aid"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_pending_document_does_not_satisfy_requirement(db_session):
    org, volunteer = await persist(
        db_session, OrganizationFactory.create(), UserFactory.create()
    )
    await persist(
        db_session,
        ComplianceRequirementFactory.create(org.id),
        ComplianceDocumentFactory.create(volunteer.id, status=DocumentStatus.PENDING),
    )

    with pytest.raises(PermissionDeniedError) as exc:
        await ensure_compliant(db_session, volunteer.id, org.id, "check in")

    assert exc.value.code == "COMPLIANCE_REQUIRED"
    assert "Working With Children Check" in exc.value.detail


@pytest.mark.asyncio
@pytest.mark.unit
async def test_opportunity_requirement_only_applies_to_that_opportunity(db_session):
    org, volunteer = await persist(
        db_session, OrganizationFactory.create(), UserFactory.create()
    )
    target, other = await persist(
        db_session, OpportunityFactory.create(org.id), OpportunityFactory.create(org.id)
    )
    await persist(
        db_session,
        ComplianceRequirementFactory.create(
            org.id,
            name="Police Check",
            doc_type=DocumentType.POLICE_CHECK,
            opportunity_id=target.id,
            enforcement_level=EnforcementLevel.SIGNUP,
        ),
    )

    assert await missing_requirements(db_session, volunteer.id, org.id, other.id) == []
    missing = await missing_requirements(db_session, volunteer.id, org.id, target.id)
    assert [r.doc_type for r in missing] == [DocumentType.POLICE_CHECK]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_in_blocked_until_requirements_met(db_session):
    org, volunteer = await persist(
        db_session, OrganizationFactory.create(), UserFactory.create()
    )
    shift = await persist(db_session, ShiftFactory.create(org.id))
    assignment = await persist(
        db_session, ShiftAssignmentFactory.create(shift.id, volunteer.id)
    )
    await persist(db_session, ComplianceRequirementFactory.create(org.id))

    with pytest.raises(PermissionDeniedError):
        await check_in(db_session, assignment)
    assert assignment.status == AssignmentStatus.ASSIGNED

    await persist(db_session, ComplianceDocumentFactory.create(volunteer.id))
    checked_in = await check_in(db_session, assignment)

    assert checked_in.status == AssignmentStatus.CHECKED_IN


@pytest.mark.asyncio
@pytest.mark.unit
async def test_apply_enforces_signup_requirements_but_not_checkin_ones(db_session):
    org, volunteer = await persist(
        db_session, OrganizationFactory.create(), UserFactory.create()
    )
    opportunity = await persist(db_session, OpportunityFactory.create(org.id))
    requirement = await persist(db_session, ComplianceRequirementFactory.create(org.id))

    # Check-in level requirements are not enforced at sign-up
    application = await apply(db_session, opportunity, volunteer.id)
    assert application.status == ApplicationStatus.APPLIED

    second = await persist(db_session, OpportunityFactory.create(org.id))
    requirement.enforcement_level = EnforcementLevel.SIGNUP
    await db_session.commit()

    with pytest.raises(PermissionDeniedError):
        await apply(db_session, second, volunteer.id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_organization_compliance_status_counts_each_volunteer(db_session):
    org = await persist(db_session, OrganizationFactory.create())
    valid, lapsed, missing, former = await persist(
        db_session,
        UserFactory.create(first_name="Valid"),
        UserFactory.create(first_name="Lapsed"),
        UserFactory.create(first_name="Missing"),
        UserFactory.create(first_name="Former"),
    )
    await persist(
        db_session,
        ComplianceRequirementFactory.create(org.id),
        OrganizationVolunteerFactory.create(org.id, valid.id),
        OrganizationVolunteerFactory.create(org.id, lapsed.id),
        OrganizationVolunteerFactory.create(org.id, missing.id),
        ComplianceDocumentFactory.create(valid.id, expires_at=_now() + timedelta(days=10)),
        ComplianceDocumentFactory.create(lapsed.id, status=DocumentStatus.EXPIRED),
        ComplianceDocumentFactory.create(former.id),
    )

    status = await organization_compliance_status(db_session, org.id)

    [row] = status["by_requirement"]
    assert (row["total"], row["valid"], row["expired"], row["missing"]) == (3, 1, 1, 1)
    assert status["overall_rate"] == pytest.approx(33.3)
    [expiring] = status["expiring_documents"]
    assert expiring["user_id"] == str(valid.id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_compliance_status_without_volunteers_is_fully_compliant(db_session):
    org = await persist(db_session, OrganizationFactory.create())
    await persist(db_session, ComplianceRequirementFactory.create(org.id))

    status = await organization_compliance_status(db_session, org.id)

    assert status["overall_rate"] == 100.0
    assert status["by_requirement"] == []
