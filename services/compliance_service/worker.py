"""ARQ worker for the daily compliance expiry sweep.

Run with: arq services.compliance_service.worker.WorkerSettings
"""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def task_check_compliance_expiry(ctx: dict):
    """Flag expiring/expired documents and overdue background checks."""
    from services.compliance_service.tasks import run_compliance_expiry

    counts = await run_compliance_expiry()
    logger.info(f"Compliance sweep: {counts}")


async def startup(ctx: dict):
    configure_logging()


class WorkerSettings:
    """ARQ worker settings with cron job schedules."""

    redis_settings = get_redis_settings()
    on_startup = startup

    functions = [task_check_compliance_expiry]

    cron_jobs = [
        # Daily at 01:00 UTC
        cron(task_check_compliance_expiry, hour=1, minute=0),
    ]
