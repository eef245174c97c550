"""
Calendar feature: Interaction handlers.

`CalendarController` owns every piece of mutable calendar state (rendered
view, current user, open form, detail view, search filter) and reacts to
user gestures:

  date click   → create form (start = clicked date, end = start + 1h)
  event click  → read-only details, with an edit affordance
  save         → local checks, then POST / PUT, refetch
  delete       → confirmation, DELETE, refetch
  drag/resize  → PUT new start/end; on failure refetch to undo the move

Form state: IDLE → FORM_OPEN → SUBMITTING → IDLE | FORM_OPEN.
"""

import inspect
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable

from etatcivil.background.notifications import NotificationScheduler
from etatcivil.background.scheduler import shutdown_scheduler
from etatcivil.config import get_settings
from etatcivil.core.exceptions import AppBaseError, LocalValidationError, UnauthenticatedError
from etatcivil.core.notifier import ToastLevel, ToastNotifier
from etatcivil.core.security import TokenStore
from etatcivil.features.calendar.client import CalendarAPIClient
from etatcivil.features.calendar.mapper import format_event_details
from etatcivil.features.calendar.schemas import DisplayEvent, EventForm, EventPayload, to_iso
from etatcivil.features.calendar.search import SearchFilter
from etatcivil.features.calendar.view import CalendarView

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[], bool | Awaitable[bool]]


class FormState(str, Enum):
    IDLE = "idle"
    FORM_OPEN = "form_open"
    SUBMITTING = "submitting"


class CalendarController:
    """Explicit owner of the calendar state; handlers are its methods."""

    def __init__(
        self,
        client: CalendarAPIClient,
        token_store: TokenStore,
        toasts: ToastNotifier | None = None,
        notifications: NotificationScheduler | None = None,
        on_login_required: Callable[[str], None] | None = None,
        view: CalendarView | None = None,
    ):
        self.settings = get_settings()
        self.client = client
        self.token_store = token_store
        self.toasts = toasts or ToastNotifier()
        self.notifications = notifications
        self._on_login_required = on_login_required

        self.view = view or CalendarView()
        self.search = SearchFilter(self.view)
        self.current_user: dict | None = token_store.user()

        self.form: EventForm | None = None
        self.form_state = FormState.IDLE
        self.details: DisplayEvent | None = None

        self._fetch_generation = 0
        self.fetch_count = 0

    # ── Loading ──────────────────────────────────────────

    async def set_range(self, range_start: datetime, range_end: datetime) -> list[DisplayEvent]:
        """Visible range changed (navigation, view switch)."""
        self.view.range_start = range_start
        self.view.range_end = range_end
        return await self.load_events(range_start, range_end)

    async def refetch(self) -> list[DisplayEvent]:
        """Reload the current visible range."""
        if self.view.range_start is None or self.view.range_end is None:
            return self.view.events
        return await self.load_events(self.view.range_start, self.view.range_end)

    async def load_events(self, range_start: datetime, range_end: datetime) -> list[DisplayEvent]:
        """Fetch a range and render it. Never raises: failures render an empty list."""
        self.fetch_count += 1
        self._fetch_generation += 1
        generation = self._fetch_generation

        token = self.token_store.load()
        if not token:
            self._redirect_to_login()
            return []

        try:
            events = await self.client.fetch_events(
                range_start, range_end, token, indicator=self.view.loading,
            )
        except UnauthenticatedError:
            self._redirect_to_login()
            events = []
        except AppBaseError as e:
            logger.error(f"Calendar load failed: {e.message}")
            self.toasts.show(e.message or "Erreur lors du chargement des événements", ToastLevel.DANGER)
            events = []

        if generation != self._fetch_generation:
            logger.debug(f"Discarding stale fetch #{generation}")
            return events

        self.view.events = events
        self.search.reapply()
        if self.notifications:
            self.notifications.schedule_notifications(events)
        return events

    # ── Date / event clicks ──────────────────────────────

    def date_click(self, date: datetime) -> EventForm:
        """Open the create form at the clicked date, one hour long."""
        return self._open_form(EventForm.for_new(date))

    def open_new_event_form(self, now: datetime | None = None) -> EventForm:
        """'Add event' button: starts at the next whole hour."""
        now = now or datetime.now(timezone.utc)
        start = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
        return self._open_form(EventForm.for_new(start))

    def event_click(self, event_id: str) -> list[str] | None:
        """Open the read-only detail view. Returns its lines."""
        event = self.view.get_event(event_id)
        if event is None:
            logger.warning(f"Clicked unknown event {event_id!r}")
            return None
        self.details = event
        return format_event_details(event)

    def edit_from_details(self) -> EventForm | None:
        """Edit affordance of the detail view."""
        if self.details is None:
            return None
        form = EventForm.from_event(self.details)
        self.details = None
        return self._open_form(form)

    def close_form(self):
        self.form = None
        self.form_state = FormState.IDLE

    def _open_form(self, form: EventForm) -> EventForm:
        self.form = form
        self.form_state = FormState.FORM_OPEN
        return form

    # ── Save ─────────────────────────────────────────────

    async def save(self) -> dict | None:
        """Submit the open form. Returns the saved record, None on failure."""
        if self.form is None or self.form_state != FormState.FORM_OPEN:
            return None

        try:
            payload = self.form.to_payload()
        except LocalValidationError as e:
            self.toasts.show(e.message, ToastLevel.WARNING)
            return None

        self.form_state = FormState.SUBMITTING
        token = self.token_store.load()
        try:
            if self.form.is_edit:
                result = await self.client.update_event(self.form.id, payload, token)
            else:
                result = await self.client.create_event(payload, token)
        except UnauthenticatedError:
            self.form_state = FormState.FORM_OPEN
            self._redirect_to_login()
            return None
        except AppBaseError as e:
            logger.error(f"Save failed: {e.message}")
            self.form_state = FormState.FORM_OPEN
            self.toasts.show(f"Erreur: {e.message}", ToastLevel.DANGER)
            return None

        self.close_form()
        await self.refetch()
        self.toasts.show("Événement enregistré avec succès", ToastLevel.SUCCESS)
        return result

    # ── Delete ───────────────────────────────────────────

    async def delete(self, event_id: str, confirm: ConfirmCallback) -> bool:
        """Delete after interactive confirmation."""
        if not event_id:
            return False

        confirmed = confirm()
        if inspect.isawaitable(confirmed):
            confirmed = await confirmed
        if not confirmed:
            return False

        try:
            await self.client.delete_event(event_id, self.token_store.load())
        except UnauthenticatedError:
            self._redirect_to_login()
            return False
        except AppBaseError as e:
            logger.error(f"Delete of {event_id} failed: {e.message}")
            self.toasts.show(f"Erreur: {e.message}", ToastLevel.DANGER)
            return False

        await self.refetch()
        self.toasts.show("Événement supprimé avec succès", ToastLevel.SUCCESS)
        self.details = None
        return True

    # ── Drag & resize ────────────────────────────────────

    async def event_moved(self, event_id: str, start: datetime, end: datetime | None = None) -> bool:
        """Drag-move: apply the new position, then persist it.

        On failure the whole range is refetched, which discards the move.
        """
        event = self.view.get_event(event_id)
        if event is None:
            return False

        # Optimistic: the view shows the new position right away.
        event.start = start
        event.end = end
        event.extended_props.start = to_iso(start)

        try:
            payload = EventPayload(
                title=event.title or "Sans titre",
                description=event.extended_props.description,
                location=event.extended_props.location,
                type=event.category,
                start=start,
                end=end,
                allDay=event.all_day,
            )
            await self.client.update_event(event_id, payload, self.token_store.load())
        except UnauthenticatedError:
            self._redirect_to_login()
            return False
        except (AppBaseError, ValueError) as e:
            logger.error(f"Move of {event_id} failed: {e}")
            self.toasts.show("Erreur lors de la mise à jour de l'événement", ToastLevel.DANGER)
            await self.refetch()
            return False

        self.toasts.show("Événement mis à jour", ToastLevel.SUCCESS)
        return True

    async def event_resized(self, event_id: str, start: datetime, end: datetime | None) -> bool:
        return await self.event_moved(event_id, start, end)

    # ── Session / connectivity ───────────────────────────

    async def connectivity_changed(self, online: bool):
        if online:
            await self.refetch()
            self.toasts.show("Connexion rétablie", ToastLevel.SUCCESS)
        else:
            self.toasts.show(
                "Vous êtes hors ligne. Les modifications seront synchronisées dès la reconnexion.",
                ToastLevel.WARNING,
            )

    def logout(self):
        self.token_store.clear()
        self.current_user = None
        if self.notifications:
            self.notifications.cancel_all()
        self._redirect_to_login()

    async def close(self):
        """Stop timers and release the HTTP client."""
        self.search.cancel()
        if self.notifications:
            shutdown_scheduler(self.notifications.scheduler)
        await self.client.close()

    def _redirect_to_login(self):
        logger.warning(f"No valid credential, redirecting to {self.settings.LOGIN_URL}")
        if self._on_login_required:
            self._on_login_required(self.settings.LOGIN_URL)
