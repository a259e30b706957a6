"""Business logic for the Resources Service."""

from services.resources_service.services.inventory import (
    assign_resource,
    cancel_resource_assignment,
    create_resource,
    delete_resource,
    get_resource_assignment_or_404,
    get_resource_or_404,
    record_maintenance,
    return_resource,
    update_resource,
)
from services.resources_service.services.notifier import (
    check_maintenance_due,
    check_overdue_assignments,
)

__all__ = [
    "assign_resource",
    "cancel_resource_assignment",
    "check_maintenance_due",
    "check_overdue_assignments",
    "create_resource",
    "delete_resource",
    "get_resource_assignment_or_404",
    "get_resource_or_404",
    "record_maintenance",
    "return_resource",
    "update_resource",
]
