"""Bridge for creating calendar events for scheduled property viewings."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from agents.scheduling import VisitWindow
from agents.schemas import CalendarEvent
from config.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)

REMINDER_MINUTES: tuple[int, ...] = (60, 15)


def build_event_payload(
    visit: Mapping[str, str],
    window: VisitWindow,
    *,
    tz_name: str,
    calendar_id: str | None = None,
) -> dict[str, Any]:
    description = (
        f"Property: {visit.get('property') or 'TBD'}\n"
        f"Address: {visit.get('address') or 'TBD'}\n"
        f"Phone: {visit.get('phone') or 'N/A'}\n"
        f"Interest: {visit.get('interest') or 'Rental'}\n"
        f"Notes: {visit.get('notes') or 'None'}"
    )
    payload: dict[str, Any] = {
        "summary": f"Property Viewing - {visit.get('name') or 'Client'}",
        "description": description,
        "location": visit.get("address") or "",
        "start": {"dateTime": window.start.isoformat(), "timeZone": tz_name},
        "end": {"dateTime": window.end.isoformat(), "timeZone": tz_name},
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": minutes} for minutes in REMINDER_MINUTES],
        },
    }
    if calendar_id:
        payload["calendarId"] = calendar_id
    return payload


class CalendarBridge:
    """Simple HTTP bridge to a calendar service.

    Event creation is best-effort: HTTP failures are logged and reported as
    ``None`` so the visit itself is never lost.
    """

    def __init__(self, settings: Settings | None = None, *, timeout: float = 30) -> None:
        settings = settings or get_settings()
        if not settings.calendar_endpoint:
            raise ValueError("Calendar endpoint is not configured.")
        self._endpoint = settings.calendar_endpoint.rstrip("/")
        self._api_key = settings.calendar_api_key
        self._calendar_id = settings.calendar_id
        self._tz_name = settings.business_timezone
        self._timeout = timeout

    async def create_event(self, visit: Mapping[str, str], window: VisitWindow) -> CalendarEvent | None:
        payload = build_event_payload(visit, window, tz_name=self._tz_name, calendar_id=self._calendar_id)
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._endpoint, json=payload, headers=headers)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            LOGGER.error("Calendar event creation failed: %s", exc)
            return None
        except ValueError as exc:
            LOGGER.error("Calendar service returned invalid JSON: %s", exc)
            return None
        if not isinstance(body, dict):
            body = {}

        event = CalendarEvent(
            id=str(body.get("id") or ""),
            summary=str(body.get("summary") or payload["summary"]),
            html_link=str(body.get("htmlLink") or ""),
        )
        LOGGER.info("Calendar event created: %s", event.html_link or event.id)
        return event


def build_calendar_bridge(settings: Settings | None = None) -> CalendarBridge | None:
    """Return a bridge when an endpoint is configured, otherwise None."""

    settings = settings or get_settings()
    if not settings.calendar_endpoint:
        LOGGER.info("Calendar endpoint not configured; visits will not create events.")
        return None
    return CalendarBridge(settings)
