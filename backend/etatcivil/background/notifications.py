"""
Background: event notification scheduling.

For every loaded event, with Δ = start − now:
  Δ < −5 min          → nothing (past event)
  0 < Δ ≤ 5 min       → immediate "Commence dans N minutes" (N rounded up)
  Δ > 5 min           → job at Δ − 29 min, "Commence dans 30 minutes" (only if still ahead)
  Δ > 0               → job at Δ, "L'événement commence maintenant"

Jobs are keyed `notify:{event_id}:{phase}` and replaced on each reload, so a
periodic refresh never stacks duplicate notifications.
"""

import logging
import math
from datetime import datetime, timedelta, timezone

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from etatcivil.core.notifier import DesktopNotifier
from etatcivil.features.calendar.schemas import DisplayEvent

logger = logging.getLogger(__name__)

JOB_PREFIX = "notify:"
PAST_GRACE_MS = 5 * 60 * 1000
SOON_WINDOW_MS = 5 * 60 * 1000
REMINDER_LEAD_MS = 29 * 60 * 1000

PHASE_THIRTY_MINUTES = "thirty_minutes"
PHASE_NOW = "now"


def _upcoming_title(event: DisplayEvent) -> str:
    return f"Événement à venir: {event.title or 'Sans titre'}"


def _ongoing_title(event: DisplayEvent) -> str:
    return f"Événement en cours: {event.title or 'Sans titre'}"


def _event_key(event: DisplayEvent) -> str:
    return event.id or f"{event.title}@{event.extended_props.start}"


def _announce_key(event: DisplayEvent) -> tuple[str, str]:
    """An event moved to another start is announced again."""
    return _event_key(event), event.extended_props.start


async def _deliver(notifier: DesktopNotifier, title: str, body: str):
    """Job callback: show one desktop notification."""
    notifier.notify(title, body)


class NotificationScheduler:
    """Arms APScheduler date jobs for upcoming events."""

    def __init__(self, scheduler: AsyncIOScheduler, notifier: DesktopNotifier):
        self.scheduler = scheduler
        self.notifier = notifier
        self._announced: set[tuple[str, str]] = set()

    def schedule_notifications(self, events: list[DisplayEvent], now: datetime | None = None) -> None:
        """Re-arm notifications for the given load cycle.

        Jobs for events absent from `events` are dropped.
        """
        if not self.notifier.enabled:
            return

        now = now or datetime.now(timezone.utc)
        wanted: set[str] = set()
        loaded: set[tuple[str, str]] = set()

        for event in events:
            loaded.add(_announce_key(event))
            try:
                wanted.update(self._schedule_one(event, now))
            except Exception as e:
                logger.error(f"Failed to schedule notification for event {event.id!r}: {e}")

        for job in self.scheduler.get_jobs():
            if job.id.startswith(JOB_PREFIX) and job.id not in wanted:
                self._remove_job(job.id)
        self._announced &= loaded

        logger.debug(f"📅 {len(wanted)} notification job(s) armed for {len(events)} event(s)")

    def _schedule_one(self, event: DisplayEvent, now: datetime) -> list[str]:
        key = _event_key(event)
        delta_ms = (event.start - now).total_seconds() * 1000
        job_ids: list[str] = []

        if delta_ms < -PAST_GRACE_MS:
            return job_ids

        if 0 < delta_ms <= SOON_WINDOW_MS:
            announce_key = _announce_key(event)
            if announce_key not in self._announced:
                self._announced.add(announce_key)
                minutes = math.ceil(delta_ms / 60000)
                self.notifier.notify(_upcoming_title(event), f"Commence dans {minutes} minutes")
        elif delta_ms > SOON_WINDOW_MS:
            offset_ms = delta_ms - REMINDER_LEAD_MS
            if offset_ms > 0:
                job_ids.append(self._arm(
                    key, PHASE_THIRTY_MINUTES,
                    now + timedelta(milliseconds=offset_ms),
                    _upcoming_title(event), "Commence dans 30 minutes",
                ))

        if delta_ms > 0:
            job_ids.append(self._arm(
                key, PHASE_NOW, event.start,
                _ongoing_title(event), "L'événement commence maintenant",
            ))
        return job_ids

    def _arm(self, key: str, phase: str, run_at: datetime, title: str, body: str) -> str:
        job_id = f"{JOB_PREFIX}{key}:{phase}"
        # Pending jobs of a scheduler that is not started yet are not
        # deduplicated by replace_existing, so remove first.
        self._remove_job(job_id)
        self.scheduler.add_job(
            _deliver,
            trigger=DateTrigger(run_date=run_at),
            args=[self.notifier, title, body],
            id=job_id,
            misfire_grace_time=60,
            replace_existing=True,
        )
        return job_id

    def _remove_job(self, job_id: str) -> None:
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            pass

    def cancel_all(self) -> None:
        for job in self.scheduler.get_jobs():
            if job.id.startswith(JOB_PREFIX):
                self._remove_job(job.id)
        self._announced.clear()

    def pending(self) -> list[str]:
        return sorted(j.id for j in self.scheduler.get_jobs() if j.id.startswith(JOB_PREFIX))
