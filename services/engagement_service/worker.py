"""ARQ worker for nightly achievement evaluation.

Run with: arq services.engagement_service.worker.WorkerSettings
"""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def task_evaluate_achievements(ctx: dict):
    """Evaluate achievements for every active user."""
    from services.engagement_service.tasks import evaluate_achievements

    totals = await evaluate_achievements()
    logger.info(f"Nightly achievement evaluation: {totals}")


async def startup(ctx: dict):
    configure_logging()


class WorkerSettings:
    """ARQ worker settings with cron job schedules."""

    redis_settings = get_redis_settings()
    on_startup = startup

    functions = [task_evaluate_achievements]

    cron_jobs = [
        # Nightly at 02:00 UTC
        cron(task_evaluate_achievements, hour=2, minute=0),
    ]
