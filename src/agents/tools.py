"""Tools exposed to the realtime backend and the dispatcher that executes them."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from agents.call_state import CallState
from agents.errors import ToolArgumentsError
from agents.intent import INTEREST_CATEGORIES, RENTAL
from agents.scheduling import business_status, format_visit_date, hours_table, now_in, resolve_visit_window
from agents.schemas import MediaLogEntry, SaveLeadArgs, ScheduleVisitArgs, SendPropertyMediaArgs
from config.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)

VISIT_SCHEDULED = "Visit Scheduled"

DUPLICATE_VISIT_INSTRUCTION = (
    "Tell the caller they already have a visit scheduled for this property. "
    "Ask if they want to change the time or see a different property."
)

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "save_lead",
        "description": "Save lead info when customer gives their name. Call as soon as you learn their name.",
        "parameters": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Customer full name"},
                "phone": {"type": "string", "description": "Phone number"},
                "email": {"type": "string", "description": "Email address"},
                "interest": {"type": "string", "enum": list(INTEREST_CATEGORIES)},
                "property": {"type": "string", "description": "Property interested in"},
                "budget": {"type": "string", "description": "Budget range"},
                "notes": {"type": "string", "description": "Notes"},
            },
            "required": ["name"],
        },
    },
    {
        "type": "function",
        "name": "schedule_visit",
        "description": "Schedule property visit after confirming day, time, property. Auto-checks duplicates.",
        "parameters": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "phone": {"type": "string"},
                "visitDate": {"type": "string", "description": "Day (Monday, Tomorrow, Saturday)"},
                "visitTime": {"type": "string", "description": "Time (10 AM, 2 PM)"},
                "property": {"type": "string"},
                "address": {"type": "string"},
                "interest": {"type": "string"},
                "notes": {"type": "string"},
            },
            "required": ["visitDate", "visitTime"],
        },
    },
    {
        "type": "function",
        "name": "send_property_media",
        "description": "Send property photos/videos via WhatsApp when customer asks for pictures.",
        "parameters": {
            "type": "object",
            "properties": {
                "phone": {"type": "string"},
                "property": {"type": "string"},
                "mediaType": {"type": "string", "enum": ["photos", "videos", "both"]},
            },
            "required": ["property"],
        },
    },
    {
        "type": "function",
        "name": "check_business_hours",
        "description": "Check if office is open. Use when caller asks about hours or availability.",
        "parameters": {"type": "object", "properties": {}, "required": []},
    },
]

ArgsT = TypeVar("ArgsT", bound=BaseModel)


def _validate(model: type[ArgsT], arguments: Mapping[str, Any]) -> ArgsT:
    try:
        return model.model_validate(dict(arguments))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ToolArgumentsError(f"Invalid arguments: {problems}") from exc


class ToolDispatcher:
    """Executes backend tool calls against the CRM and calendar.

    Results are plain dicts sent back to the backend verbatim. Nothing here
    raises into the bridge: bad arguments, unknown tools and persistence
    failures all come back as results.
    """

    def __init__(
        self,
        crm,
        calendar=None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._crm = crm
        self._calendar = calendar
        self._tz_name = settings.business_timezone
        self._clock = clock or (lambda: now_in(self._tz_name))
        self._handlers = {
            "save_lead": self._save_lead,
            "schedule_visit": self._schedule_visit,
            "send_property_media": self._send_property_media,
            "check_business_hours": self._check_business_hours,
        }

    async def dispatch(self, name: str, arguments: Mapping[str, Any], call: CallState) -> dict[str, Any]:
        handler = self._handlers.get(name)
        if handler is None:
            LOGGER.warning("Backend requested unknown tool %r", name)
            return {"success": False, "reason": "unrecognized tool", "message": f"Unknown function: {name}"}

        LOGGER.info("Tool %s called for stream %s", name, call.session.session_id or "?")
        try:
            return await handler(arguments, call)
        except ToolArgumentsError as exc:
            LOGGER.warning("Tool %s rejected arguments: %s", name, exc.detail)
            return {"success": False, "message": exc.detail}

    async def _save_lead(self, arguments: Mapping[str, Any], call: CallState) -> dict[str, Any]:
        params = _validate(SaveLeadArgs, arguments)
        session = call.session

        call.merge_lead(params.model_dump(exclude_none=True))
        if not session.lead_record.get("phone"):
            call.merge_lead({"phone": session.caller_identity})

        if not await self._crm.save_lead(dict(session.lead_record)):
            LOGGER.warning("Lead for %r was not persisted", params.name)
        session.lead_saved = True
        return {"success": True, "message": "Lead saved."}

    async def _schedule_visit(self, arguments: Mapping[str, Any], call: CallState) -> dict[str, Any]:
        params = _validate(ScheduleVisitArgs, arguments)
        session = call.session
        lead = session.lead_record

        call.merge_visit(params.model_dump(exclude_none=True, exclude={"interest"}))
        visit = session.visit_record
        if not visit.get("phone"):
            call.merge_visit({"phone": lead.get("phone") or session.caller_identity})
        if not visit.get("name"):
            call.merge_visit({"name": lead.get("name")})

        conflict = await self._crm.find_scheduled_visit(visit.get("name", ""), visit.get("property", ""))
        if conflict is not None:
            LOGGER.info("Duplicate visit for %r: %s", visit.get("name"), conflict.message)
            return {
                "success": False,
                "duplicate": True,
                "message": conflict.message,
                "existingDate": conflict.existing_date,
                "existingTime": conflict.existing_time,
                "instruction": DUPLICATE_VISIT_INSTRUCTION,
            }

        if lead.get("name"):
            if session.lead_saved:
                await self._crm.update_lead_status(dict(lead), VISIT_SCHEDULED)
            else:
                lead["status"] = VISIT_SCHEDULED
                await self._crm.save_lead(dict(lead))
                session.lead_saved = True

        window = resolve_visit_window(visit["visitDate"], visit["visitTime"], self._clock(), tz_name=self._tz_name)
        resolved_date = format_visit_date(window.start)
        if not await self._crm.save_visit(dict(visit), resolved_date=resolved_date):
            LOGGER.warning("Visit for %r on %s was not persisted", visit.get("name"), resolved_date)
            return {"success": True, "message": "Visit scheduled."}

        if self._calendar is not None:
            details = {**visit, "interest": lead.get("interest") or params.interest or RENTAL}
            event = await self._calendar.create_event(details, window)
            if event is not None:
                await self._crm.log_calendar_event({**visit, "visitDate": resolved_date}, event)
                return {"success": True, "message": "Visit scheduled and calendar event created."}
        return {"success": True, "message": "Visit scheduled."}

    async def _send_property_media(self, arguments: Mapping[str, Any], call: CallState) -> dict[str, Any]:
        params = _validate(SendPropertyMediaArgs, arguments)
        session = call.session
        session.media_request = params.model_dump(exclude_none=True)

        media_type = params.mediaType or "photos"
        await self._crm.log_media(
            MediaLogEntry(
                phone=params.phone or session.lead_record.get("phone") or session.caller_identity,
                direction="outbound",
                customer_message="Requested photos/videos",
                ai_reply=f"Sending {media_type} for {params.property}",
                message_type=media_type,
                property=params.property,
                status="queued",
            )
        )
        return {"success": True, "message": "Photos/videos queued for WhatsApp."}

    async def _check_business_hours(self, arguments: Mapping[str, Any], call: CallState) -> dict[str, Any]:
        status = business_status(self._clock(), tz_name=self._tz_name)
        return {"success": True, **status.as_dict(), "hours": hours_table()}
