"""Resources Service models package."""

from services.resources_service.models.core import Resource, ResourceAssignment
from services.resources_service.models.enums import (
    ResourceAssignmentStatus,
    ResourceAssignmentType,
    ResourceStatus,
    ReturnCondition,
)

__all__ = [
    "Resource",
    "ResourceAssignment",
    "ResourceAssignmentStatus",
    "ResourceAssignmentType",
    "ResourceStatus",
    "ReturnCondition",
]
