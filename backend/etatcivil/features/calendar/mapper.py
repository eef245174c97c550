"""
Calendar feature: Display mapper.

Turns a raw `/api/calendar` event into a `DisplayEvent`. Total: missing or
broken fields resolve to defaults, never to an error.
"""

import logging
from datetime import datetime, timezone

from etatcivil.features.calendar.palette import TEXT_COLOR, event_badge, event_colors
from etatcivil.features.calendar.schemas import (
    Category,
    DisplayEvent,
    ExtendedProps,
    parse_timestamp,
    to_iso,
)

logger = logging.getLogger(__name__)

_WEEKDAYS_FR = ["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"]
_MONTHS_FR = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]


def to_display_event(raw: dict, now: datetime | None = None) -> DisplayEvent:
    """Map one wire event to its display form.

    Args:
        raw: Event dict as returned by the API.
        now: Substitute start for unparseable values. Defaults to current UTC time.
    """
    raw = raw if isinstance(raw, dict) else {}
    props = raw.get("extendedProps")
    props = props if isinstance(props, dict) else {}

    start = parse_timestamp(raw.get("start"))
    if start is None:
        logger.debug(f"Unparseable start for event {raw.get('id')!r}, using current time")
        start = now or datetime.now(timezone.utc)

    category = Category.parse(props.get("type") or raw.get("type"))
    background, border = event_colors(category)
    event_id = raw.get("id")

    return DisplayEvent(
        id=_text(event_id) or None,
        title=_text(raw.get("title")),
        start=start,
        end=parse_timestamp(raw.get("end")),
        all_day=raw.get("allDay") is not False,
        color=raw.get("color") if isinstance(raw.get("color"), str) else None,
        background_color=background,
        border_color=border,
        text_color=TEXT_COLOR,
        extended_props=ExtendedProps(
            category=category,
            description=_text(props.get("description")),
            location=_text(props.get("location")),
            start=to_iso(start),
        ),
    )


def _text(value) -> str:
    """Strings and numbers as text; anything else (None, dicts, lists) as empty."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return ""
    return str(value)


def to_display_events(raw_events: list, now: datetime | None = None) -> list[DisplayEvent]:
    return [to_display_event(raw, now=now) for raw in raw_events]


# ── Rendering helpers ────────────────────────────────────

def render_event_content(event: DisplayEvent, time_text: str = "") -> str:
    """Single-line label: time, category badge (non-default only), title."""
    parts = []
    if time_text:
        parts.append(time_text)
    if event.category is not Category.OTHER:
        label, _ = event_badge(event.category)
        parts.append(f"[{label}]")
    parts.append(event.title)
    return " ".join(parts)


def format_datetime_fr(dt: datetime | None, with_date: bool = True) -> str:
    """e.g. 'lundi 3 mars 2025 à 14:30'. 'Non défini' when missing."""
    if dt is None:
        return "Non défini"
    time_part = dt.strftime("%H:%M")
    if not with_date:
        return time_part
    weekday = _WEEKDAYS_FR[dt.weekday()]
    month = _MONTHS_FR[dt.month - 1]
    return f"{weekday} {dt.day} {month} {dt.year} à {time_part}"


def format_event_details(event: DisplayEvent, tz=None) -> list[str]:
    """Lines of the read-only detail view."""
    start = event.start.astimezone(tz) if tz else event.start
    end = event.end.astimezone(tz) if (tz and event.end) else event.end
    label, _ = event_badge(event.category)

    lines = [
        f"Date de début : {format_datetime_fr(start)}",
        f"Date de fin : {format_datetime_fr(end, with_date=False)}",
    ]
    if event.extended_props.description:
        lines.append(f"Description : {event.extended_props.description}")
    if event.extended_props.location:
        lines.append(f"Lieu : {event.extended_props.location}")
    lines.append(f"Type : {label}")
    return lines
