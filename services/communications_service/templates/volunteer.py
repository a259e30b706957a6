"""
Volunteer Hub email templates.

Covers:
- Organization invites
- Notification copies sent by email
- Organization communications (bulk messages)
"""

from html import escape
from typing import Optional

from libs.common.emails.core import send_email
from services.communications_service.templates.base import (
    GRADIENT_AMBER,
    GRADIENT_RED,
    GRADIENT_TEAL,
    cta_button,
    detail_box,
    wrap_html,
)

PRIORITY_GRADIENTS = {
    "high": GRADIENT_AMBER,
    "urgent": GRADIENT_RED,
}


async def send_invite_email(
    to_email: str,
    organization_name: str,
    role: str,
    accept_url: str,
    expires_on: Optional[str] = None,
) -> bool:
    """
    Send an organization invitation with its accept link.
    """
    subject = f"You're invited to volunteer with {organization_name}"

    body = (
        "Hi there,\n\n"
        f"{organization_name} has invited you to join them as a {role}.\n\n"
        f"Accept the invitation: {accept_url}\n\n"
        + (f"This invitation expires on {expires_on}.\n\n" if expires_on else "")
        + "If you weren't expecting this, you can ignore this email.\n"
        "The Volunteer Hub Team"
    )

    body_html = (
        "<p>Hi there,</p>"
        f"<p><strong>{escape(organization_name)}</strong> has invited you to join "
        f"them as a <strong>{escape(role)}</strong>.</p>"
        + detail_box({"Organization": organization_name, "Expires": expires_on or ""})
        + cta_button("Accept Invitation", accept_url)
        + "<p>If you weren't expecting this, you can ignore this email.</p>"
    )

    html_body = wrap_html(
        title="You're invited!",
        subtitle=organization_name,
        body_html=body_html,
        preheader=f"{organization_name} invited you to volunteer",
    )

    return await send_email(to_email, subject, body, html_body)


async def send_notification_email(
    to_email: str,
    recipient_name: str,
    title: str,
    message: str,
    action_url: Optional[str] = None,
    priority: str = "medium",
) -> bool:
    """Email copy of an in-app notification."""
    body = f"Hi {recipient_name},\n\n{message}\n"
    if action_url:
        body += f"\nView details: {action_url}\n"
    body += "\nThe Volunteer Hub Team"

    body_html = f"<p>Hi {escape(recipient_name)},</p><p>{escape(message)}</p>"
    if action_url:
        body_html += cta_button("View details", action_url)

    html_body = wrap_html(
        title=title,
        body_html=body_html,
        header_gradient=PRIORITY_GRADIENTS.get(priority, GRADIENT_TEAL),
        preheader=message[:90],
    )
    return await send_email(to_email, title, body, html_body)


async def send_communication_email(
    to_email: str,
    subject: str,
    message: str,
    organization_name: Optional[str] = None,
) -> bool:
    """Deliver one recipient's copy of an organization communication."""
    paragraphs = "".join(
        f"<p>{escape(part)}</p>" for part in message.split("\n\n") if part.strip()
    )
    html_body = wrap_html(
        title=subject,
        subtitle=organization_name or "",
        body_html=paragraphs,
    )
    return await send_email(to_email, subject, message, html_body)
