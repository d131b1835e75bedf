import logging
from datetime import date
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()
_session_factory: Any = None


async def _calculate_monthly_carryover() -> None:
    """Job: make sure the month that just started has its carryover record."""
    try:
        async with _session_factory() as db:
            from app.carryover.service import check_and_calculate_carryover_if_needed

            result = await check_and_calculate_carryover_if_needed(db, date.today())
            if result.error:
                logger.warning("Monthly carryover job: %s", result.message)
            else:
                logger.info("Monthly carryover job: %s", result.message)
    except Exception:
        logger.exception("Error calculating monthly carryover")


def setup_scheduler(session_factory: Any, settings: Any) -> None:
    """Register all periodic jobs and start the scheduler."""
    global _session_factory
    _session_factory = session_factory

    scheduler.add_job(
        _calculate_monthly_carryover,
        CronTrigger(
            day=settings.carryover_cron_day,
            hour=settings.carryover_cron_hour,
            minute=settings.carryover_cron_minute,
        ),
        id="calculate_monthly_carryover",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Background scheduler started with %d jobs", len(scheduler.get_jobs()))


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")
