"""Business logic for the Volunteer Service."""

from services.volunteer_service.services.hours import (
    approve_hours,
    bulk_approve,
    get_hours_or_404,
    hours_summary,
    log_hours,
    pending_query,
    reject_hours,
)
from services.volunteer_service.services.recurrence import (
    describe_recurrence_rule,
    generate_occurrences,
    parse_recurrence_rule,
)
from services.volunteer_service.services.shifts import (
    add_task,
    assign_volunteer,
    bulk_assign,
    cancel_assignment,
    check_in,
    check_out,
    create_recurring_shifts,
    create_shift,
    describe_conflicts,
    find_conflicts,
    get_assignment_or_404,
    get_shift_or_404,
    set_assignment_status,
    update_shift,
)

__all__ = [
    "add_task",
    "approve_hours",
    "assign_volunteer",
    "bulk_approve",
    "bulk_assign",
    "cancel_assignment",
    "check_in",
    "check_out",
    "create_recurring_shifts",
    "create_shift",
    "describe_conflicts",
    "describe_recurrence_rule",
    "find_conflicts",
    "generate_occurrences",
    "get_assignment_or_404",
    "get_hours_or_404",
    "get_shift_or_404",
    "hours_summary",
    "log_hours",
    "parse_recurrence_rule",
    "pending_query",
    "reject_hours",
    "set_assignment_status",
    "update_shift",
]
