"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    user = UserFactory.create(email="custom@test.com")
    db_session.add(user)
    await db_session.commit()

or, for several rows at once:
    org, user = await persist(db_session, OrganizationFactory.create(), UserFactory.create())
"""

import uuid
from datetime import date, datetime, timedelta, timezone

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _tomorrow() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=1)


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:8]}@test.com"


def _unique_slug(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


async def persist(db, *instances):
    """Add and commit the given rows, returning them (a single row unwrapped)."""
    for instance in instances:
        db.add(instance)
    await db.commit()
    return instances[0] if len(instances) == 1 else instances


# ---------------------------------------------------------------------------
# Users Service
# ---------------------------------------------------------------------------


class UserFactory:
    @staticmethod
    def create(**overrides):
        from services.users_service.models import User

        defaults = {
            "id": _uuid(),
            "email": _unique_email(),
            # Not a valid bcrypt hash; tests that log in hash a real password
            "password_hash": "not-a-real-hash",
            "first_name": "Test",
            "last_name": "Volunteer",
            "is_admin": False,
            "is_disabled": False,
        }
        defaults.update(overrides)
        return User(**defaults)


# ---------------------------------------------------------------------------
# Organizations Service
# ---------------------------------------------------------------------------


class OrganizationFactory:
    @staticmethod
    def create(**overrides):
        from services.organizations_service.models import (
            Organization,
            OrganizationStatus,
        )

        defaults = {
            "id": _uuid(),
            "name": "Harbour Cleanup Crew",
            "slug": _unique_slug("org"),
            "contact_email": _unique_email(),
            "status": OrganizationStatus.ACTIVE,
            "is_approved": True,
            "is_active": True,
        }
        defaults.update(overrides)
        return Organization(**defaults)


class TeamMemberFactory:
    @staticmethod
    def create(organization_id=None, user_id=None, **overrides):
        from services.organizations_service.models import (
            OrganizationTeamMember,
            TeamRole,
        )

        defaults = {
            "id": _uuid(),
            "organization_id": organization_id or _uuid(),
            "user_id": user_id or _uuid(),
            "role": TeamRole.ADMIN,
            "is_active": True,
        }
        defaults.update(overrides)
        return OrganizationTeamMember(**defaults)


class OrganizationVolunteerFactory:
    @staticmethod
    def create(organization_id=None, user_id=None, **overrides):
        from services.organizations_service.models import (
            MembershipStatus,
            OrganizationVolunteer,
        )

        defaults = {
            "id": _uuid(),
            "organization_id": organization_id or _uuid(),
            "user_id": user_id or _uuid(),
            "status": MembershipStatus.ACTIVE,
            "joined_at": _now(),
        }
        defaults.update(overrides)
        return OrganizationVolunteer(**defaults)


class InviteFactory:
    @staticmethod
    def create(organization_id=None, **overrides):
        from services.organizations_service.models import (
            InviteStatus,
            OrganizationInvite,
        )

        defaults = {
            "id": _uuid(),
            "organization_id": organization_id or _uuid(),
            "email": _unique_email(),
            "role": "volunteer",
            "token": uuid.uuid4().hex,
            "status": InviteStatus.PENDING,
            "expires_at": _now() + timedelta(days=7),
        }
        defaults.update(overrides)
        return OrganizationInvite(**defaults)


class InviteSendJobFactory:
    @staticmethod
    def create(invite_id=None, **overrides):
        from services.organizations_service.models import (
            InviteSendJob,
            InviteSendStatus,
        )

        defaults = {
            "id": _uuid(),
            "invite_id": invite_id or _uuid(),
            "status": InviteSendStatus.PENDING,
            "attempts": 0,
            "next_attempt_at": _now() - timedelta(minutes=1),
        }
        defaults.update(overrides)
        return InviteSendJob(**defaults)


# ---------------------------------------------------------------------------
# Events Service
# ---------------------------------------------------------------------------


class EventFactory:
    @staticmethod
    def create(organization_id=None, **overrides):
        from services.events_service.models import Event

        start = _tomorrow()
        defaults = {
            "id": _uuid(),
            "organization_id": organization_id or _uuid(),
            "title": "Beach Cleanup",
            "location": "Bondi Beach",
            "start_at": start,
            "end_at": start + timedelta(hours=3),
            "capacity": 0,
            "is_published": True,
        }
        defaults.update(overrides)
        return Event(**defaults)


class OpportunityFactory:
    @staticmethod
    def create(organization_id=None, **overrides):
        from services.events_service.models import Opportunity, OpportunityStatus

        start = _tomorrow()
        defaults = {
            "id": _uuid(),
            "organization_id": organization_id or _uuid(),
            "title": "Sorting Volunteer",
            "slug": _unique_slug("opportunity"),
            "capacity": 0,
            "start_at": start,
            "end_at": start + timedelta(hours=4),
            "status": OpportunityStatus.PUBLISHED,
        }
        defaults.update(overrides)
        return Opportunity(**defaults)


class ApplicationFactory:
    @staticmethod
    def create(opportunity_id=None, user_id=None, **overrides):
        from services.events_service.models import Application, ApplicationStatus

        defaults = {
            "id": _uuid(),
            "opportunity_id": opportunity_id or _uuid(),
            "user_id": user_id or _uuid(),
            "status": ApplicationStatus.APPLIED,
        }
        defaults.update(overrides)
        return Application(**defaults)


# ---------------------------------------------------------------------------
# Volunteer Service
# ---------------------------------------------------------------------------


class ShiftFactory:
    @staticmethod
    def create(organization_id=None, **overrides):
        from services.volunteer_service.models import Shift

        start = _tomorrow().replace(hour=9, minute=0, second=0, microsecond=0)
        defaults = {
            "id": _uuid(),
            "organization_id": organization_id or _uuid(),
            "title": "Morning Shift",
            "start_at": start,
            "end_at": start + timedelta(hours=3),
            "capacity": 0,
        }
        defaults.update(overrides)
        return Shift(**defaults)


class ShiftAssignmentFactory:
    @staticmethod
    def create(shift_id=None, user_id=None, **overrides):
        from services.volunteer_service.models import AssignmentStatus, ShiftAssignment

        defaults = {
            "id": _uuid(),
            "shift_id": shift_id or _uuid(),
            "user_id": user_id or _uuid(),
            "status": AssignmentStatus.ASSIGNED,
        }
        defaults.update(overrides)
        return ShiftAssignment(**defaults)


class VolunteerHourFactory:
    @staticmethod
    def create(organization_id=None, user_id=None, **overrides):
        from services.volunteer_service.models import HoursStatus, VolunteerHour

        defaults = {
            "id": _uuid(),
            "organization_id": organization_id or _uuid(),
            "user_id": user_id or _uuid(),
            "date": date.today(),
            "hours": 3.0,
            "status": HoursStatus.PENDING,
        }
        defaults.update(overrides)
        return VolunteerHour(**defaults)


# ---------------------------------------------------------------------------
# Communications Service
# ---------------------------------------------------------------------------


class NotificationFactory:
    @staticmethod
    def create(user_id=None, **overrides):
        from services.communications_service.models import Notification

        defaults = {
            "id": _uuid(),
            "user_id": user_id or _uuid(),
            "type": "test.notification",
            "title": "Test notification",
            "message": "Something happened",
            "read": False,
        }
        defaults.update(overrides)
        return Notification(**defaults)


class ScheduledJobFactory:
    @staticmethod
    def create(**overrides):
        from services.communications_service.models import ScheduledJob

        defaults = {
            "id": _uuid(),
            "name": "Test reminder",
            "type": "reminder",
            "payload": {},
            "run_at": _now() - timedelta(minutes=1),
            "attempts": 0,
            "max_attempts": 3,
        }
        defaults.update(overrides)
        return ScheduledJob(**defaults)


class CommunicationFactory:
    @staticmethod
    def create(organization_id=None, **overrides):
        from services.communications_service.models import (
            Communication,
            CommunicationStatus,
            CommunicationType,
        )

        defaults = {
            "id": _uuid(),
            "organization_id": organization_id,
            "subject": "Roster update",
            "body": "See you on Saturday.",
            "type": CommunicationType.IN_APP,
            "status": CommunicationStatus.DRAFT,
        }
        defaults.update(overrides)
        return Communication(**defaults)


# ---------------------------------------------------------------------------
# Compliance Service
# ---------------------------------------------------------------------------


class ComplianceDocumentFactory:
    @staticmethod
    def create(user_id=None, **overrides):
        from services.compliance_service.models import (
            ComplianceDocument,
            DocumentStatus,
            DocumentType,
        )

        defaults = {
            "id": _uuid(),
            "user_id": user_id or _uuid(),
            "doc_type": DocumentType.WWCC,
            "state": "NSW",
            "document_number": "WWC1234567E",
            "expires_at": _now() + timedelta(days=365),
            "status": DocumentStatus.VERIFIED,
        }
        defaults.update(overrides)
        return ComplianceDocument(**defaults)


class ComplianceRequirementFactory:
    @staticmethod
    def create(organization_id=None, **overrides):
        from services.compliance_service.models import (
            ComplianceRequirement,
            DocumentType,
            EnforcementLevel,
        )

        defaults = {
            "id": _uuid(),
            "organization_id": organization_id or _uuid(),
            "name": "Working With Children Check",
            "doc_type": DocumentType.WWCC,
            "is_mandatory": True,
            "enforcement_level": EnforcementLevel.CHECKIN,
        }
        defaults.update(overrides)
        return ComplianceRequirement(**defaults)


class BackgroundCheckFactory:
    @staticmethod
    def create(user_id=None, **overrides):
        from services.compliance_service.models import (
            BackgroundCheck,
            BackgroundCheckStatus,
        )

        defaults = {
            "id": _uuid(),
            "user_id": user_id or _uuid(),
            "check_type": "police_check",
            "status": BackgroundCheckStatus.PENDING,
            "requested_at": _now(),
        }
        defaults.update(overrides)
        return BackgroundCheck(**defaults)


# ---------------------------------------------------------------------------
# Engagement Service
# ---------------------------------------------------------------------------


class AchievementFactory:
    @staticmethod
    def create(**overrides):
        from services.engagement_service.models import (
            Achievement,
            AchievementRuleType,
        )

        defaults = {
            "id": _uuid(),
            "key": _unique_slug("achievement"),
            "title": "Ten Hours",
            "rule_type": AchievementRuleType.HOURS,
            "criteria": {"threshold": 10},
            "points": 10,
            "is_enabled": True,
        }
        defaults.update(overrides)
        return Achievement(**defaults)


class CertificateFactory:
    @staticmethod
    def create(organization_id=None, user_id=None, **overrides):
        from services.engagement_service.models import Certificate

        defaults = {
            "id": _uuid(),
            "verification_id": _uuid(),
            "organization_id": organization_id or _uuid(),
            "user_id": user_id or _uuid(),
            "title": "Certificate of Service",
            "hours": 12.0,
        }
        defaults.update(overrides)
        return Certificate(**defaults)


# ---------------------------------------------------------------------------
# Resources Service
# ---------------------------------------------------------------------------


class ResourceFactory:
    @staticmethod
    def create(organization_id=None, **overrides):
        from services.resources_service.models import Resource, ResourceStatus

        defaults = {
            "id": _uuid(),
            "organization_id": organization_id or _uuid(),
            "name": "High-vis vest",
            "category": "safety",
            "quantity_total": 5,
            "quantity_available": 5,
            "status": ResourceStatus.AVAILABLE,
        }
        defaults.update(overrides)
        return Resource(**defaults)


class ResourceAssignmentFactory:
    @staticmethod
    def create(resource_id=None, related_id=None, **overrides):
        from services.resources_service.models import (
            ResourceAssignment,
            ResourceAssignmentStatus,
            ResourceAssignmentType,
        )

        defaults = {
            "id": _uuid(),
            "resource_id": resource_id or _uuid(),
            "assignment_type": ResourceAssignmentType.VOLUNTEER,
            "related_id": related_id or _uuid(),
            "quantity": 1,
            "status": ResourceAssignmentStatus.ASSIGNED,
        }
        defaults.update(overrides)
        return ResourceAssignment(**defaults)
