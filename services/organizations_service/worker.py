"""ARQ worker for the organization invite email queue.

Run with: arq services.organizations_service.worker.WorkerSettings
"""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def task_process_invite_queue(ctx: dict):
    """Send pending invite emails, retrying failures with backoff."""
    from services.organizations_service.tasks import process_invite_queue

    sent = await process_invite_queue()
    if sent:
        logger.info(f"Invite queue processed {sent} job(s)")


async def startup(ctx: dict):
    configure_logging()


class WorkerSettings:
    """ARQ worker settings with cron job schedules."""

    redis_settings = get_redis_settings()
    on_startup = startup

    functions = [task_process_invite_queue]

    cron_jobs = [
        # Every minute
        cron(task_process_invite_queue, second=15, run_at_startup=True),
    ]
