"""ARQ worker for communications service background tasks.

Runs the scheduled-job runner, the communication sender and notification
housekeeping as ARQ cron jobs backed by Redis.
Run with: arq services.communications_service.worker.WorkerSettings
"""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)


# ── Wrapper functions (ARQ requires top-level async callables) ──


async def task_process_scheduled_jobs(ctx: dict):
    """Run due scheduled jobs (reminders, deferred communications)."""
    from services.communications_service.tasks import process_scheduled_jobs

    logger.info("Running: process_scheduled_jobs")
    await process_scheduled_jobs()


async def task_send_scheduled_communications(ctx: dict):
    """Send communications whose send time has passed."""
    from services.communications_service.tasks import send_scheduled_communications

    logger.info("Running: send_scheduled_communications")
    await send_scheduled_communications()


async def task_delete_expired_notifications(ctx: dict):
    """Purge notifications past their expiry."""
    from libs.db.session import get_async_db
    from services.communications_service.services.notifications import delete_expired

    logger.info("Running: delete_expired_notifications")
    async for db in get_async_db():
        await delete_expired(db)
        break


async def startup(ctx: dict):
    configure_logging()


# ── Worker configuration ──


class WorkerSettings:
    """ARQ worker settings with cron job schedules."""

    redis_settings = get_redis_settings()
    on_startup = startup

    functions = [
        task_process_scheduled_jobs,
        task_send_scheduled_communications,
        task_delete_expired_notifications,
    ]

    cron_jobs = [
        # Scheduler polls every minute
        cron(task_process_scheduled_jobs, second=0, run_at_startup=True),
        # Communication sender polls every minute, offset from the scheduler
        cron(task_send_scheduled_communications, second=30, run_at_startup=False),
        # Housekeeping at 03:15 UTC
        cron(task_delete_expired_notifications, hour=3, minute=15, run_at_startup=False),
    ]
