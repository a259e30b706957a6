"""ARQ worker for resource loan and maintenance reminders.

Run with: arq services.resources_service.worker.WorkerSettings
"""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def task_resource_checks(ctx: dict):
    """Flag overdue loans and send maintenance reminders."""
    from services.resources_service.tasks import run_resource_checks

    counts = await run_resource_checks()
    if any(counts.values()):
        logger.info(f"Resource checks: {counts}")


async def startup(ctx: dict):
    configure_logging()


class WorkerSettings:
    """ARQ worker settings with cron job schedules."""

    redis_settings = get_redis_settings()
    on_startup = startup

    functions = [task_resource_checks]

    cron_jobs = [
        # Every 5 minutes
        cron(task_resource_checks, minute=set(range(0, 60, 5)), run_at_startup=True),
    ]
