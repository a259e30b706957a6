"""Organizations service business logic."""

from services.organizations_service.services.invite_sender import (
    enqueue_invite_send,
    process_queue,
    send_invite_now,
)
from services.organizations_service.services.invites import (
    accept_invite,
    cancel_invite,
    create_invite,
    decline_invite,
    get_invite_by_token,
    get_invite_or_404,
    resend_invite,
)
from services.organizations_service.services.organizations import (
    add_team_member,
    create_organization,
    join_organization,
    remove_team_member,
    set_approval,
    update_volunteer_status,
)

__all__ = [
    "accept_invite",
    "add_team_member",
    "cancel_invite",
    "create_invite",
    "create_organization",
    "decline_invite",
    "enqueue_invite_send",
    "get_invite_by_token",
    "get_invite_or_404",
    "join_organization",
    "process_queue",
    "remove_team_member",
    "resend_invite",
    "send_invite_now",
    "set_approval",
    "update_volunteer_status",
]
