"""Volunteer Service models package."""

from services.volunteer_service.models.core import (
    Shift,
    ShiftAssignment,
    ShiftTask,
    VolunteerHour,
)
from services.volunteer_service.models.enums import AssignmentStatus, HoursStatus

__all__ = [
    "AssignmentStatus",
    "HoursStatus",
    "Shift",
    "ShiftAssignment",
    "ShiftTask",
    "VolunteerHour",
]
