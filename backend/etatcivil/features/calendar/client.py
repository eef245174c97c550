"""
Calendar feature: Event store client for the `/api/calendar` REST endpoints.

ENDPOINTS:
  1. Range fetch:  GET    /api/calendar?start=<ISO>&end=<ISO>
                   → {success: bool, events: [{id, title, start, allDay?, color?, extendedProps}]}
  2. Create:       POST   /api/calendar          body: {title, description, location, type, start, end}
  3. Update:       PUT    /api/calendar/{id}     same body
  4. Delete:       DELETE /api/calendar/{id}

All calls carry `Authorization: Bearer <token>`. Errors come back as `{message}`.
"""

import logging
from datetime import datetime

import httpx
from pydantic import ValidationError

from etatcivil.config import get_settings
from etatcivil.core.exceptions import (
    FetchFailedError,
    MalformedResponseError,
    UnauthenticatedError,
)
from etatcivil.features.calendar.mapper import to_display_events
from etatcivil.features.calendar.schemas import DisplayEvent, EventPayload, to_iso
from etatcivil.features.calendar.view import LoadingIndicator

logger = logging.getLogger(__name__)

CALENDAR_PATH = "/api/calendar"


class CalendarAPIClient:
    """Async client for the calendar API.

    One `httpx.AsyncClient` is shared by every call; close it with `close()`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=float(timeout or settings.API_TIMEOUT),
            transport=transport,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
        )

    # ── Reads ────────────────────────────────────────────

    async def fetch_events(
        self,
        range_start: datetime,
        range_end: datetime,
        auth_token: str | None,
        indicator: LoadingIndicator | None = None,
    ) -> list[DisplayEvent]:
        """Fetch and map the events of a visible range.

        Raises:
            UnauthenticatedError: No token, or the server answered 401.
            FetchFailedError: Transport failure or non-success status.
            MalformedResponseError: Body is not `{success: true, events: [...]}`.
        """
        if not auth_token:
            raise UnauthenticatedError()

        if indicator:
            indicator.show()
        try:
            response = await self._request(
                "GET",
                CALENDAR_PATH,
                auth_token,
                params={"start": to_iso(range_start), "end": to_iso(range_end)},
                default_error="Erreur lors du chargement des événements",
            )
            data = self._json(response)

            events = data.get("events") if isinstance(data, dict) else None
            if not isinstance(data, dict) or not data.get("success") or not isinstance(events, list):
                logger.error(f"Invalid calendar payload: {str(data)[:200]}")
                raise MalformedResponseError()

            try:
                displayed = to_display_events(events)
            except (ValidationError, TypeError, ValueError) as e:
                logger.error(f"Could not map calendar events: {e}", exc_info=True)
                raise MalformedResponseError() from e

            logger.debug(f"Loaded {len(displayed)} calendar event(s)")
            return displayed
        finally:
            if indicator:
                indicator.hide()

    # ── Writes ───────────────────────────────────────────

    async def create_event(self, payload: EventPayload, auth_token: str | None) -> dict:
        """POST a new event. Returns the created record."""
        self._ensure_token(auth_token)
        response = await self._request(
            "POST", CALENDAR_PATH, auth_token,
            json=payload.to_json(),
            default_error="Erreur lors de la sauvegarde",
        )
        return self._record(response)

    async def update_event(self, event_id: str, payload: EventPayload, auth_token: str | None) -> dict:
        """PUT the full record of an existing event. Returns the updated record."""
        self._ensure_token(auth_token)
        response = await self._request(
            "PUT", f"{CALENDAR_PATH}/{event_id}", auth_token,
            json=payload.to_json(),
            default_error="Erreur lors de la mise à jour",
        )
        return self._record(response)

    async def delete_event(self, event_id: str, auth_token: str | None) -> None:
        self._ensure_token(auth_token)
        await self._request(
            "DELETE", f"{CALENDAR_PATH}/{event_id}", auth_token,
            default_error="Erreur lors de la suppression",
        )

    # ── Helpers ──────────────────────────────────────────

    @staticmethod
    def _ensure_token(auth_token: str | None):
        if not auth_token:
            raise UnauthenticatedError()

    async def _request(
        self,
        method: str,
        path: str,
        auth_token: str,
        default_error: str,
        **kwargs,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                path,
                headers={"Authorization": f"Bearer {auth_token}"},
                **kwargs,
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {path} failed: {e}")
            raise FetchFailedError(default_error) from e

        if response.status_code == 401:
            raise UnauthenticatedError(self._error_message(response) or "Non authentifié")
        if response.is_error:
            message = self._error_message(response) or default_error
            logger.warning(f"{method} {path} → {response.status_code}: {message}")
            raise FetchFailedError(message, http_status=response.status_code)
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str | None:
        """`message` from a structured error body, if any."""
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        message = body.get("message")
        if not message and isinstance(body.get("detail"), dict):
            message = body["detail"].get("message")
        return str(message) if message else None

    @staticmethod
    def _json(response: httpx.Response):
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError() from e

    def _record(self, response: httpx.Response) -> dict:
        if not response.content:
            return {}
        body = self._json(response)
        if isinstance(body, dict):
            return body.get("event", body)
        return {}

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "CalendarAPIClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
