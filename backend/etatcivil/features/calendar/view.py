"""
Calendar feature: Rendered calendar state.

Plays the part of the calendar widget: holds the visible range, the currently
rendered events and the loading indicator.
"""

from dataclasses import dataclass, field
from datetime import datetime

from etatcivil.features.calendar.schemas import DisplayEvent


@dataclass
class LoadingIndicator:
    """Shared loading flag, shown while a range fetch is in flight."""
    visible: bool = False

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False


@dataclass
class CalendarView:
    range_start: datetime | None = None
    range_end: datetime | None = None
    events: list[DisplayEvent] = field(default_factory=list)
    loading: LoadingIndicator = field(default_factory=LoadingIndicator)

    def get_event(self, event_id: str) -> DisplayEvent | None:
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    def visible_events(self) -> list[DisplayEvent]:
        return [e for e in self.events if e.is_visible]
