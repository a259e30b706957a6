"""Events service business logic."""

from services.events_service.services.applications import (
    apply,
    authorize_for_application,
    bulk_update_status,
    get_application_or_404,
    update_status,
    withdraw,
)
from services.events_service.services.catalog import (
    create_event,
    create_opportunity,
    get_event_or_404,
    get_opportunity_or_404,
    set_opportunity_status,
    update_event,
    update_opportunity,
)

__all__ = [
    "apply",
    "authorize_for_application",
    "bulk_update_status",
    "create_event",
    "create_opportunity",
    "get_application_or_404",
    "get_event_or_404",
    "get_opportunity_or_404",
    "set_opportunity_status",
    "update_event",
    "update_opportunity",
    "update_status",
    "withdraw",
]
