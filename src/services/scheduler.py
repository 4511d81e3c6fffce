"""Background job scheduler.

APScheduler-based scheduler for periodic maintenance. Currently runs
the sweep that deletes expired pairing codes and device tokens.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError

from src.config import settings
from src.database import get_session_maker
from src.logging_config import get_logger
from src.services.device_service import purge_expired_device_tokens

logger = get_logger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def sweep_expired_device_tokens() -> int:
    """Delete expired device link records.

    Errors are logged and swallowed so one failed run does not stop
    the schedule.

    Returns:
        Number of records removed (0 on failure).
    """
    session_maker = get_session_maker()
    try:
        async with session_maker() as db:
            return await purge_expired_device_tokens(db)
    except SQLAlchemyError:
        logger.exception("Expired device token sweep failed")
        return 0


def start_scheduler() -> AsyncIOScheduler:
    """Start the background job scheduler.

    Returns:
        The started scheduler instance
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already running")
        return scheduler

    scheduler = AsyncIOScheduler()

    if settings.device_token_sweep_enabled:
        scheduler.add_job(
            sweep_expired_device_tokens,
            trigger=IntervalTrigger(hours=settings.device_token_sweep_interval_hours),
            id="device_token_sweep",
            name="Expired Device Token Sweep",
            replace_existing=True,
            max_instances=1,
        )
        logger.info(
            "Scheduled device token sweep job",
            interval_hours=settings.device_token_sweep_interval_hours,
        )

    scheduler.start()
    logger.info("Background scheduler started")

    return scheduler


def stop_scheduler() -> None:
    """Stop the background job scheduler."""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Background scheduler stopped")


def get_scheduler() -> AsyncIOScheduler | None:
    """Get the current scheduler instance.

    Returns:
        The scheduler instance or None if not started
    """
    return scheduler
