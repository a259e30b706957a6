"""Business logic for the Compliance Service."""

from services.compliance_service.services.documents import (
    get_check_or_404,
    get_document_or_404,
    reject_document,
    request_background_check,
    update_background_check,
    upload_document,
    verify_document,
)
from services.compliance_service.services.requirements import (
    create_requirement,
    delete_requirement,
    ensure_compliant,
    get_requirement_or_404,
    list_requirements,
    missing_requirements,
    organization_compliance_status,
    update_requirement,
)

__all__ = [
    "create_requirement",
    "delete_requirement",
    "ensure_compliant",
    "get_check_or_404",
    "get_document_or_404",
    "get_requirement_or_404",
    "list_requirements",
    "missing_requirements",
    "organization_compliance_status",
    "reject_document",
    "request_background_check",
    "update_background_check",
    "update_requirement",
    "upload_document",
    "verify_document",
]
