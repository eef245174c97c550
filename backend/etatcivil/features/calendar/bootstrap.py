"""
Calendar feature: client start-up wiring.

Builds the controller with its scheduler, notifiers and periodic refresh,
then loads the initial range.
"""

import logging
from datetime import datetime
from typing import Callable

from etatcivil.background.notifications import NotificationScheduler
from etatcivil.background.scheduler import create_scheduler, register_refresh_job, start_scheduler
from etatcivil.config import get_settings
from etatcivil.core.notifier import DesktopNotifier, ToastNotifier
from etatcivil.core.security import TokenStore
from etatcivil.features.calendar.client import CalendarAPIClient
from etatcivil.features.calendar.controller import CalendarController

logger = logging.getLogger(__name__)


async def setup_calendar(
    range_start: datetime,
    range_end: datetime,
    client: CalendarAPIClient | None = None,
    token_store: TokenStore | None = None,
    desktop: DesktopNotifier | None = None,
    toasts: ToastNotifier | None = None,
    on_login_required: Callable[[str], None] | None = None,
) -> CalendarController | None:
    """Start the calendar client. Returns None when no credential is stored."""
    token_store = token_store or TokenStore()
    if not token_store.load():
        logger.warning("No stored credential, calendar not started")
        if on_login_required:
            on_login_required(get_settings().LOGIN_URL)
        return None

    scheduler = create_scheduler()
    desktop = desktop or DesktopNotifier()
    desktop.setup()

    controller = CalendarController(
        client=client or CalendarAPIClient(),
        token_store=token_store,
        toasts=toasts,
        notifications=NotificationScheduler(scheduler, desktop),
        on_login_required=on_login_required,
    )
    register_refresh_job(scheduler, controller)
    start_scheduler(scheduler)

    await controller.set_range(range_start, range_end)
    return controller
