"""Shared fixtures: a scriptable fake of the /api/calendar endpoints."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from etatcivil.core.security import TokenStore
from etatcivil.features.calendar.client import CalendarAPIClient


class FakeCalendarAPI:
    """In-memory stand-in for the calendar REST API, driven through httpx.MockTransport."""

    def __init__(self, events: list[dict] | None = None):
        self.events: list[dict] = list(events or [])
        self.requests: list[httpx.Request] = []
        self.fail: dict[str, tuple[int, dict]] = {}  # method -> (status, body)
        self._next_id = 100

    def count(self, method: str) -> int:
        return sum(1 for r in self.requests if r.method == method)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method in self.fail:
            status, body = self.fail[request.method]
            return httpx.Response(status, json=body)

        if request.method == "GET":
            return httpx.Response(200, json={"success": True, "events": self.events})

        if request.method == "POST":
            body = json.loads(request.content)
            self._next_id += 1
            record = _wire(str(self._next_id), body)
            self.events.append(record)
            return httpx.Response(201, json={"success": True, "event": record})

        event_id = request.url.path.rsplit("/", 1)[-1]
        if request.method == "PUT":
            body = json.loads(request.content)
            record = _wire(event_id, body)
            self.events = [record if e["id"] == event_id else e for e in self.events]
            return httpx.Response(200, json={"success": True, "event": record})

        if request.method == "DELETE":
            self.events = [e for e in self.events if e["id"] != event_id]
            return httpx.Response(200, json={"success": True})

        return httpx.Response(405)


def _wire(event_id: str, body: dict) -> dict:
    return {
        "id": event_id,
        "title": body["title"],
        "start": body["start"],
        "end": body.get("end"),
        "allDay": body.get("allDay", False),
        "extendedProps": {
            "type": body.get("type", "autre"),
            "description": body.get("description", ""),
            "location": body.get("location", ""),
        },
    }


def raw_event(event_id: str = "1", title: str = "Mariage Dupont", start: str = "2030-06-01T10:00:00Z",
              category: str = "mariage", **extra) -> dict:
    props = {"type": category, "description": extra.pop("description", ""),
             "location": extra.pop("location", "")}
    return {"id": event_id, "title": title, "start": start, "allDay": False,
            "extendedProps": props, **extra}


RANGE_START = datetime(2030, 6, 1, tzinfo=timezone.utc)
RANGE_END = datetime(2030, 7, 1, tzinfo=timezone.utc)


@pytest.fixture
def token_store(tmp_path) -> TokenStore:
    store = TokenStore(tmp_path / "token.json")
    store.save("test-token", {"nom": "Diallo", "prenom": "Awa", "role": "agent"})
    return store


@pytest.fixture
def empty_token_store(tmp_path) -> TokenStore:
    return TokenStore(tmp_path / "missing.json")


@pytest.fixture
def fake_api() -> FakeCalendarAPI:
    return FakeCalendarAPI([
        raw_event("1", "Mariage Dupont", "2030-06-01T10:00:00Z", "mariage",
                  description="Salle des fêtes", location="Mairie"),
        raw_event("2", "Naissance Martin", "2030-06-02T09:00:00Z", "naissance"),
        raw_event("3", "Décès Bernard", "2030-06-03T15:30:00Z", "deces", location="Hôpital"),
    ])


@pytest.fixture
def api_client(fake_api) -> CalendarAPIClient:
    return CalendarAPIClient(base_url="http://test", transport=httpx.MockTransport(fake_api.handler))
