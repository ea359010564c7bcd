"""
Background scheduler running the daily plan rollover inside the API process.

The job time is UTC; each user's period boundaries still follow their own zone.
"""
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from components.core.config import get_settings

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")


async def run_rollover_job() -> int:
    from components.core.init_db import get_db_manager
    from components.plan.rollover import roll_over_all

    try:
        return await roll_over_all(get_db_manager().get_db, datetime.now(timezone.utc))
    except Exception:
        logger.exception("Plan rollover job failed")
        return 0


def start_scheduler() -> None:
    """Register the rollover job and start the scheduler when enabled."""
    settings = get_settings()
    if not settings.ROLLOVER_SCHEDULE_ENABLED:
        logger.info("Plan rollover schedule disabled")
        return

    scheduler.add_job(
        run_rollover_job,
        CronTrigger(hour=settings.ROLLOVER_CRON_HOUR, minute=settings.ROLLOVER_CRON_MINUTE, timezone="UTC"),
        id="plan_rollover",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    scheduler.start()
    logger.info(
        "Scheduler started: plan_rollover (%02d:%02d UTC)",
        settings.ROLLOVER_CRON_HOUR, settings.ROLLOVER_CRON_MINUTE,
    )


def shutdown_scheduler() -> None:
    """Gracefully stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
