"""
Unit tests for the calendar API client (httpx.MockTransport, no network).
"""

import json
from datetime import datetime, timezone

import httpx
import pytest

from etatcivil.core.exceptions import FetchFailedError, MalformedResponseError, UnauthenticatedError
from etatcivil.features.calendar.client import CalendarAPIClient
from etatcivil.features.calendar.schemas import Category, EventPayload
from etatcivil.features.calendar.view import LoadingIndicator

from conftest import RANGE_END, RANGE_START


def _client(handler) -> CalendarAPIClient:
    return CalendarAPIClient(base_url="http://test", transport=httpx.MockTransport(handler))


class TestFetchEvents:
    @pytest.mark.asyncio
    async def test_success_maps_events(self, api_client, fake_api):
        events = await api_client.fetch_events(RANGE_START, RANGE_END, "tok")
        assert [e.id for e in events] == ["1", "2", "3"]
        assert events[0].category is Category.MARRIAGE

        request = fake_api.requests[0]
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.url.params["start"] == "2030-06-01T00:00:00.000Z"
        assert request.url.params["end"] == "2030-07-01T00:00:00.000Z"

    @pytest.mark.asyncio
    async def test_missing_token(self, api_client, fake_api):
        with pytest.raises(UnauthenticatedError):
            await api_client.fetch_events(RANGE_START, RANGE_END, None)
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_server_message_is_used(self, api_client, fake_api):
        fake_api.fail["GET"] = (500, {"message": "Base de données indisponible"})
        with pytest.raises(FetchFailedError) as exc:
            await api_client.fetch_events(RANGE_START, RANGE_END, "tok")
        assert exc.value.message == "Base de données indisponible"
        assert exc.value.http_status == 500

    @pytest.mark.asyncio
    async def test_generic_message_without_body(self):
        client = _client(lambda request: httpx.Response(503, text="oops"))
        with pytest.raises(FetchFailedError) as exc:
            await client.fetch_events(RANGE_START, RANGE_END, "tok")
        assert exc.value.message == "Erreur lors du chargement des événements"

    @pytest.mark.asyncio
    async def test_401_is_unauthenticated(self, api_client, fake_api):
        fake_api.fail["GET"] = (401, {"message": "Token expiré"})
        with pytest.raises(UnauthenticatedError):
            await api_client.fetch_events(RANGE_START, RANGE_END, "tok")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"success": False, "events": []},
        {"success": True, "events": "nope"},
        {"success": True},
        ["not", "an", "object"],
    ])
    async def test_malformed(self, body):
        client = _client(lambda request: httpx.Response(200, json=body))
        with pytest.raises(MalformedResponseError):
            await client.fetch_events(RANGE_START, RANGE_END, "tok")

    @pytest.mark.asyncio
    async def test_unmappable_events_are_malformed(self, api_client, monkeypatch):
        def broken(events):
            raise TypeError("unexpected event shape")

        monkeypatch.setattr("etatcivil.features.calendar.client.to_display_events", broken)
        with pytest.raises(MalformedResponseError):
            await api_client.fetch_events(RANGE_START, RANGE_END, "tok")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FetchFailedError):
            await _client(handler).fetch_events(RANGE_START, RANGE_END, "tok")

    @pytest.mark.asyncio
    async def test_indicator_hidden_on_every_path(self, api_client, fake_api):
        seen = []
        indicator = LoadingIndicator()

        def handler(request):
            seen.append(indicator.visible)
            return httpx.Response(500, json={})

        await api_client.fetch_events(RANGE_START, RANGE_END, "tok", indicator=indicator)
        assert indicator.visible is False

        with pytest.raises(FetchFailedError):
            await _client(handler).fetch_events(RANGE_START, RANGE_END, "tok", indicator=indicator)
        assert seen == [True]
        assert indicator.visible is False


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_posts_payload(self, api_client, fake_api):
        payload = EventPayload(
            title="Mariage Kone", type="mariage", location="Mairie",
            start=datetime(2030, 6, 10, 14, tzinfo=timezone.utc),
        )
        record = await api_client.create_event(payload, "tok")

        request = fake_api.requests[-1]
        assert request.method == "POST"
        assert request.url.path == "/api/calendar"
        body = json.loads(request.content)
        assert body["title"] == "Mariage Kone"
        assert body["type"] == "mariage"
        assert body["start"] == "2030-06-10T14:00:00.000Z"
        assert body["end"] is None
        assert record["id"] == "101"

    @pytest.mark.asyncio
    async def test_update_uses_put(self, api_client, fake_api):
        payload = EventPayload(title="Déplacé", start=datetime(2030, 6, 5, tzinfo=timezone.utc))
        await api_client.update_event("2", payload, "tok")
        assert fake_api.requests[-1].method == "PUT"
        assert fake_api.requests[-1].url.path == "/api/calendar/2"

    @pytest.mark.asyncio
    async def test_delete(self, api_client, fake_api):
        await api_client.delete_event("3", "tok")
        assert fake_api.requests[-1].method == "DELETE"
        assert [e["id"] for e in fake_api.events] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_write_error_message(self, api_client, fake_api):
        fake_api.fail["DELETE"] = (404, {"message": "Événement introuvable"})
        with pytest.raises(FetchFailedError, match="Événement introuvable"):
            await api_client.delete_event("9", "tok")

    @pytest.mark.asyncio
    async def test_write_without_token(self, api_client, fake_api):
        payload = EventPayload(title="X", start=datetime(2030, 1, 1, tzinfo=timezone.utc))
        with pytest.raises(UnauthenticatedError):
            await api_client.create_event(payload, "")
        assert fake_api.requests == []

    def test_blank_title_rejected_by_payload(self):
        with pytest.raises(ValueError):
            EventPayload(title="   ", start=datetime(2030, 1, 1, tzinfo=timezone.utc))
