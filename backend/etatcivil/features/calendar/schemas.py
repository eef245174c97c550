"""
Calendar feature: Schemas for wire payloads, persisted events and display models.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from etatcivil.core.exceptions import LocalValidationError


class Category(str, Enum):
    """Closed set of event categories. Values are the wire values."""
    BIRTH = "naissance"
    MARRIAGE = "mariage"
    DEATH = "deces"
    OTHER = "autre"

    @classmethod
    def parse(cls, value) -> "Category":
        """Lenient lookup: English aliases accepted, anything unknown is OTHER."""
        if isinstance(value, Category):
            return value
        if not value:
            return cls.OTHER
        key = str(value).strip().lower()
        return _CATEGORY_ALIASES.get(key, cls.OTHER)


_CATEGORY_ALIASES = {
    "naissance": Category.BIRTH,
    "birth": Category.BIRTH,
    "mariage": Category.MARRIAGE,
    "marriage": Category.MARRIAGE,
    "deces": Category.DEATH,
    "décès": Category.DEATH,
    "death": Category.DEATH,
    "autre": Category.OTHER,
    "other": Category.OTHER,
    "general": Category.OTHER,
}


# ── Timestamp helpers ────────────────────────────────────

def parse_timestamp(value) -> datetime | None:
    """Parse an ISO string, epoch milliseconds or datetime. None if unparseable.

    Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        try:
            dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso(dt: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a `Z` suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ── Persisted entity (reference backend) ─────────────────

class CalendarEvent(BaseModel):
    """A calendar event as stored by the backend."""
    id: str
    user_id: str
    title: str = Field(min_length=1)
    description: str = ""
    location: str = ""
    category: Category = Category.OTHER
    start: datetime
    end: datetime | None = None
    all_day: bool = False
    color: str = "#3498db"
    background_color: str = "#3498db"
    border_color: str = "#0d6efd"
    text_color: str = "#ffffff"
    is_public: bool = False
    created_at: datetime
    updated_at: datetime

    def to_wire(self) -> dict:
        """Shape returned by `GET /api/calendar`."""
        return {
            "id": self.id,
            "title": self.title,
            "start": to_iso(self.start),
            "end": to_iso(self.end) if self.end else None,
            "allDay": self.all_day,
            "color": self.color,
            "backgroundColor": self.background_color,
            "borderColor": self.border_color,
            "textColor": self.text_color,
            "extendedProps": {
                "type": self.category.value,
                "description": self.description,
                "location": self.location,
                "isPublic": self.is_public,
            },
        }


# ── Wire payload for POST / PUT ──────────────────────────

class EventPayload(BaseModel):
    """Request body to create or update an event."""
    title: str
    description: str = ""
    location: str = ""
    type: Category = Category.OTHER
    start: datetime
    end: datetime | None = None
    allDay: bool = False

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Le titre est obligatoire")
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _lenient_type(cls, value):
        return Category.parse(value)

    @field_validator("start", "end", mode="after")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_json(self) -> dict:
        data = self.model_dump(mode="json")
        data["start"] = to_iso(self.start)
        data["end"] = to_iso(self.end) if self.end else None
        return data


# ── Display model (client side) ──────────────────────────

class ExtendedProps(BaseModel):
    category: Category = Category.OTHER
    description: str = ""
    location: str = ""
    start: str  # normalized ISO-8601, used as a lookup key


class DisplayEvent(BaseModel):
    """An event as rendered for one load cycle. Rebuilt on every fetch."""
    id: str | None = None
    title: str = ""
    start: datetime
    end: datetime | None = None
    all_day: bool = True
    color: str | None = None
    background_color: str
    border_color: str
    text_color: str = "#ffffff"
    display: str = "auto"  # "auto" | "none"
    extended_props: ExtendedProps

    @property
    def category(self) -> Category:
        return self.extended_props.category

    @property
    def is_visible(self) -> bool:
        return self.display != "none"

    @property
    def search_text(self) -> str:
        """Lower-cased `title description location` used by the search box."""
        return (
            f"{self.title or ''} {self.extended_props.description or ''} "
            f"{self.extended_props.location or ''}"
        ).lower()


# ── Typed form model ─────────────────────────────────────

class EventForm(BaseModel):
    """Create / edit form. Empty values are allowed until `check()`."""
    id: str | None = None
    title: str = ""
    description: str = ""
    location: str = ""
    category: Category = Category.OTHER
    start: datetime | None = None
    end: datetime | None = None

    @classmethod
    def for_new(cls, start: datetime, duration: timedelta = timedelta(hours=1)) -> "EventForm":
        """Blank form starting at `start`, one hour long by default."""
        return cls(start=start, end=start + duration)

    @classmethod
    def from_event(cls, event: DisplayEvent) -> "EventForm":
        """Form pre-filled from a rendered event."""
        return cls(
            id=event.id,
            title=event.title,
            description=event.extended_props.description or "",
            location=event.extended_props.location or "",
            category=event.category,
            start=event.start,
            end=event.end,
        )

    @property
    def is_edit(self) -> bool:
        return bool(self.id)

    def check(self) -> None:
        """Validate required fields.

        Raises:
            LocalValidationError: On the first missing required field.
        """
        if not self.title.strip():
            raise LocalValidationError("Le titre est obligatoire", field="title")
        if self.start is None:
            raise LocalValidationError("La date de début est obligatoire", field="start")

    def to_payload(self) -> EventPayload:
        self.check()
        return EventPayload(
            title=self.title.strip(),
            description=self.description.strip(),
            location=self.location.strip(),
            type=self.category,
            start=self.start,
            end=self.end,
        )
