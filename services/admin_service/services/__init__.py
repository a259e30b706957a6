"""Admin service business logic."""

from services.admin_service.services.audit import record_audit

__all__ = ["record_audit"]
