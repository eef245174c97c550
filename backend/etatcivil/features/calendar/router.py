"""
Calendar feature: API routes for event management (reference backend).
"""

from fastapi import APIRouter, Depends

from etatcivil.core.dependencies import get_calendar_service, get_current_user_id
from etatcivil.core.exceptions import InvalidParameterError
from etatcivil.features.calendar.schemas import EventPayload, parse_timestamp
from etatcivil.features.calendar.service import CalendarService

router = APIRouter()


@router.get("")
async def list_events(
    start: str | None = None,
    end: str | None = None,
    user_id: str = Depends(get_current_user_id),
    service: CalendarService = Depends(get_calendar_service),
):
    """List events whose start falls within [start, end]."""
    range_start = parse_timestamp(start)
    range_end = parse_timestamp(end)
    if start and range_start is None:
        raise InvalidParameterError("Paramètres de date invalides", field="start")
    if end and range_end is None:
        raise InvalidParameterError("Paramètres de date invalides", field="end")

    events = service.get_events(user_id, range_start, range_end)
    return {"success": True, "events": [e.to_wire() for e in events]}


@router.post("", status_code=201)
async def create_event(
    data: EventPayload,
    user_id: str = Depends(get_current_user_id),
    service: CalendarService = Depends(get_calendar_service),
):
    """Create a new calendar event."""
    event = service.create_event(user_id, data)
    return {"success": True, "event": event.to_wire()}


@router.put("/{event_id}")
async def update_event(
    event_id: str,
    data: EventPayload,
    user_id: str = Depends(get_current_user_id),
    service: CalendarService = Depends(get_calendar_service),
):
    """Update an existing event."""
    event = service.update_event(user_id, event_id, data)
    return {"success": True, "event": event.to_wire()}


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    service: CalendarService = Depends(get_calendar_service),
):
    """Delete an event."""
    service.delete_event(user_id, event_id)
    return {"success": True, "message": "Événement supprimé"}
