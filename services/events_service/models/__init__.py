"""Events Service models package."""

from services.events_service.models.core import Application, Event, Opportunity
from services.events_service.models.enums import (
    ApplicationStatus,
    OpportunityStatus,
    OpportunityVisibility,
)

__all__ = [
    "Application",
    "ApplicationStatus",
    "Event",
    "Opportunity",
    "OpportunityStatus",
    "OpportunityVisibility",
]
