"""
Volunteer Hub email package.

Modules:
- core: Base send_email function (console or SMTP backend)

Templates live in services/communications_service/templates/.
"""
