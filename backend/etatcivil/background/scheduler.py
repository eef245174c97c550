"""
Background scheduler for the calendar client.

Uses APScheduler (AsyncIOScheduler) for:
  - the periodic refresh of the visible range (every REFRESH_INTERVAL_MINUTES)
  - notification date jobs (see background/notifications.py)
"""

import logging
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from etatcivil.config import get_settings

if TYPE_CHECKING:
    from etatcivil.features.calendar.controller import CalendarController

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "calendar_refresh"


def create_scheduler() -> AsyncIOScheduler:
    """New scheduler in the configured timezone (not started)."""
    settings = get_settings()
    return AsyncIOScheduler(timezone=ZoneInfo(settings.TIMEZONE))


def register_refresh_job(scheduler: AsyncIOScheduler, controller: "CalendarController",
                         minutes: int | None = None):
    """Refetch the visible range at a fixed interval. Last writer wins."""
    minutes = minutes or get_settings().REFRESH_INTERVAL_MINUTES
    scheduler.add_job(
        controller.refetch,
        "interval",
        minutes=minutes,
        id=REFRESH_JOB_ID,
        replace_existing=True,
    )
    logger.info(f"🔄 Calendar refresh scheduled every {minutes} min")


def start_scheduler(scheduler: AsyncIOScheduler):
    """Start the scheduler. Must be called with a running event loop."""
    if not scheduler.running:
        scheduler.start()
        jobs = scheduler.get_jobs()
        logger.info(f"📅 Scheduler started with {len(jobs)} job(s)")


def shutdown_scheduler(scheduler: AsyncIOScheduler):
    """Gracefully shutdown the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("📅 Scheduler shut down.")
