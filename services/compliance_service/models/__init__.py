"""Compliance Service models package."""

from services.compliance_service.models.core import (
    BackgroundCheck,
    ComplianceDocument,
    ComplianceRequirement,
)
from services.compliance_service.models.enums import (
    BackgroundCheckStatus,
    DocumentStatus,
    DocumentType,
    EnforcementLevel,
)

__all__ = [
    "BackgroundCheck",
    "BackgroundCheckStatus",
    "ComplianceDocument",
    "ComplianceRequirement",
    "DocumentStatus",
    "DocumentType",
    "EnforcementLevel",
]
