"""
Calendar feature: Local search over rendered events.

No network call: matching events stay visible, the others get
`display="none"` but remain in the rendered set.
"""

import asyncio
import logging

from etatcivil.config import get_settings
from etatcivil.features.calendar.view import CalendarView

logger = logging.getLogger(__name__)


class SearchFilter:
    """Debounced free-text filter bound to a CalendarView."""

    def __init__(self, view: CalendarView, debounce_ms: int | None = None):
        self.view = view
        self.debounce_ms = debounce_ms if debounce_ms is not None else get_settings().SEARCH_DEBOUNCE_MS
        self.query = ""
        self._pending: asyncio.Task | None = None

    def apply_filter(self, query: str) -> int:
        """Apply `query` now. Returns the number of visible events."""
        self.query = (query or "").strip().lower()
        events = self.view.events

        if not self.query:
            for event in events:
                event.display = "auto"
            return len(events)

        visible = 0
        for event in events:
            match = self.query in event.search_text
            event.display = "auto" if match else "none"
            visible += match
        logger.debug(f"Search '{self.query}': {visible}/{len(events)} event(s) visible")
        return visible

    def reapply(self) -> int:
        """Re-run the last query, e.g. after a reload replaced the events."""
        return self.apply_filter(self.query)

    def on_input(self, query: str) -> asyncio.Task:
        """Keystroke handler: evaluate `debounce_ms` after the last call."""
        self.cancel()
        self._pending = asyncio.create_task(self._debounced(query))
        return self._pending

    async def _debounced(self, query: str):
        await asyncio.sleep(self.debounce_ms / 1000)
        self.apply_filter(query)

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def cancel(self):
        if self._pending and not self._pending.done():
            self._pending.cancel()
        self._pending = None
