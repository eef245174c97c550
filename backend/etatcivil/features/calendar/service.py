"""
Calendar feature: Service layer for calendar event management (reference backend).

In-memory store keyed by event id; every query is scoped to the owning user.
"""

import uuid
from datetime import datetime, timezone

from etatcivil.core.exceptions import EventNotFoundError
from etatcivil.features.calendar.palette import event_colors
from etatcivil.features.calendar.schemas import CalendarEvent, EventPayload


class CalendarService:
    """CRUD operations for calendar events with date range queries."""

    def __init__(self):
        self._events: dict[str, CalendarEvent] = {}

    def create_event(self, user_id: str, data: EventPayload) -> CalendarEvent:
        """Create a new calendar event."""
        now = datetime.now(timezone.utc)
        background, border = event_colors(data.type)
        event = CalendarEvent(
            id=uuid.uuid4().hex,
            user_id=user_id,
            title=data.title,
            description=data.description,
            location=data.location,
            category=data.type,
            start=data.start,
            end=data.end,
            all_day=data.allDay,
            color=background,
            background_color=background,
            border_color=border,
            created_at=now,
            updated_at=now,
        )
        self._events[event.id] = event
        return event

    def get_events(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[CalendarEvent]:
        """Events of a user whose start falls within [start, end], ordered by start."""
        events = [
            e for e in self._events.values()
            if e.user_id == user_id
            and (start is None or e.start >= start)
            and (end is None or e.start <= end)
        ]
        return sorted(events, key=lambda e: e.start)

    def get_event_by_id(self, user_id: str, event_id: str) -> CalendarEvent | None:
        """Get a single event by ID."""
        event = self._events.get(event_id)
        if event is None or event.user_id != user_id:
            return None
        return event

    def update_event(self, user_id: str, event_id: str, data: EventPayload) -> CalendarEvent:
        """Replace the editable fields of an existing event."""
        event = self.get_event_by_id(user_id, event_id)
        if event is None:
            raise EventNotFoundError(event_id)

        background, border = event_colors(data.type)
        updated = event.model_copy(update={
            "title": data.title,
            "description": data.description,
            "location": data.location,
            "category": data.type,
            "start": data.start,
            "end": data.end,
            "all_day": data.allDay,
            "color": background,
            "background_color": background,
            "border_color": border,
            "updated_at": datetime.now(timezone.utc),
        })
        self._events[event_id] = updated
        return updated

    def delete_event(self, user_id: str, event_id: str) -> None:
        """Hard delete an event."""
        if self.get_event_by_id(user_id, event_id) is None:
            raise EventNotFoundError(event_id)
        del self._events[event_id]
