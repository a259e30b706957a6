"""Communications service background tasks."""

from services.communications_service.tasks.communications import (
    process_due_communications,
    send_scheduled_communications,
)
from services.communications_service.tasks.scheduler import (
    process_scheduled_jobs,
    run_due_jobs,
)

__all__ = [
    "process_due_communications",
    "process_scheduled_jobs",
    "run_due_jobs",
    "send_scheduled_communications",
]
