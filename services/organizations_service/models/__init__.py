"""Organizations Service models package."""

from services.organizations_service.models.core import (
    InviteSendJob,
    Organization,
    OrganizationInvite,
    OrganizationTeamMember,
    OrganizationVolunteer,
)
from services.organizations_service.models.enums import (
    InviteSendStatus,
    InviteStatus,
    MembershipStatus,
    OrganizationStatus,
    TeamRole,
)

__all__ = [
    "InviteSendJob",
    "InviteSendStatus",
    "InviteStatus",
    "MembershipStatus",
    "Organization",
    "OrganizationInvite",
    "OrganizationStatus",
    "OrganizationTeamMember",
    "OrganizationVolunteer",
    "TeamRole",
]
