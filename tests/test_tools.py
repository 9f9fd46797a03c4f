from __future__ import annotations

import asyncio
from datetime import datetime
from zoneinfo import ZoneInfo

from agents.call_state import CallState
from agents.schemas import CalendarEvent
from agents.tools import TOOL_DEFINITIONS, ToolDispatcher
from config.settings import Settings

NY = ZoneInfo("America/New_York")
# Wednesday afternoon.
NOW = datetime(2026, 2, 11, 14, 30, tzinfo=NY)


def _run(coro):
    return asyncio.run(coro)


def _dispatcher(crm, calendar=None) -> ToolDispatcher:
    return ToolDispatcher(crm, calendar, Settings(), clock=lambda: NOW)


class FakeCalendar:
    def __init__(self, event: CalendarEvent | None) -> None:
        self.event = event
        self.requests = []

    async def create_event(self, visit, window):
        self.requests.append((dict(visit), window))
        return self.event


def test_tool_definitions_cover_all_tools():
    assert [tool["name"] for tool in TOOL_DEFINITIONS] == [
        "save_lead",
        "schedule_visit",
        "send_property_media",
        "check_business_hours",
    ]


def test_save_lead_backfills_caller_phone(fake_crm):
    call = CallState()
    call.session.caller_identity = "+12035550100"

    result = _run(_dispatcher(fake_crm).dispatch("save_lead", {"name": "Dana"}, call))

    assert result == {"success": True, "message": "Lead saved."}
    assert fake_crm.leads[0]["phone"] == "+12035550100"
    assert call.session.lead_saved is True


def test_save_lead_twice_keeps_earlier_fields(fake_crm):
    call = CallState()
    dispatcher = _dispatcher(fake_crm)
    _run(dispatcher.dispatch("save_lead", {"name": "Dana", "budget": "2500", "email": "dana@example.com"}, call))
    _run(dispatcher.dispatch("save_lead", {"name": "Dana"}, call))

    assert call.session.lead_record["budget"] == "2500"
    assert call.session.lead_record["email"] == "dana@example.com"
    assert fake_crm.leads[-1]["budget"] == "2500"


def test_save_lead_requires_name(fake_crm):
    call = CallState()
    result = _run(_dispatcher(fake_crm).dispatch("save_lead", {"name": "  "}, call))

    assert result["success"] is False
    assert "name" in result["message"]
    assert fake_crm.leads == []


def test_save_lead_reports_success_when_persistence_fails(fake_crm):
    fake_crm.fail_writes = True
    call = CallState()
    result = _run(_dispatcher(fake_crm).dispatch("save_lead", {"name": "Dana"}, call))

    assert result["success"] is True
    assert call.session.lead_saved is True


def test_schedule_visit_persists_resolved_date_and_updates_lead(fake_crm):
    call = CallState()
    dispatcher = _dispatcher(fake_crm)
    _run(dispatcher.dispatch("save_lead", {"name": "Dana", "phone": "+12035550100"}, call))

    result = _run(
        dispatcher.dispatch(
            "schedule_visit",
            {"visitDate": "Saturday", "visitTime": "11", "property": "213 Ely Ave"},
            call,
        )
    )

    assert result["success"] is True
    visit = fake_crm.visits[0]
    assert visit["resolved_date"] == "Saturday, February 14, 2026"
    assert visit["name"] == "Dana"
    assert visit["phone"] == "+12035550100"
    assert [status for _, status in fake_crm.status_updates] == ["Visit Scheduled"]
    assert len(fake_crm.leads) == 1


def test_schedule_visit_without_saved_lead_appends_lead_with_status(fake_crm):
    call = CallState()
    call.merge_lead({"name": "Dana"})

    _run(_dispatcher(fake_crm).dispatch("schedule_visit", {"visitDate": "tomorrow", "visitTime": "2pm"}, call))

    assert fake_crm.leads[0]["status"] == "Visit Scheduled"
    assert call.session.lead_saved is True
    assert fake_crm.status_updates == []


def test_schedule_visit_requires_date_and_time(fake_crm):
    call = CallState()
    result = _run(_dispatcher(fake_crm).dispatch("schedule_visit", {"visitDate": "Saturday"}, call))

    assert result["success"] is False
    assert fake_crm.visits == []


def test_duplicate_visit_is_rejected_without_writes(fake_crm):
    dispatcher = _dispatcher(fake_crm)
    first = CallState()
    _run(dispatcher.dispatch("schedule_visit", {"name": "A", "visitDate": "Saturday", "visitTime": "11", "property": "X"}, first))
    leads_before = list(fake_crm.leads)

    second = CallState()
    result = _run(
        dispatcher.dispatch("schedule_visit", {"name": "a ", "visitDate": "Monday", "visitTime": "3pm", "property": "x"}, second)
    )

    assert result["success"] is False
    assert result["duplicate"] is True
    assert result["existingDate"] == "Saturday, February 14, 2026"
    assert result["existingTime"] == "11"
    assert "different property" in result["instruction"]
    assert len(fake_crm.visits) == 1
    assert fake_crm.leads == leads_before

    other = _run(
        dispatcher.dispatch("schedule_visit", {"name": "A", "visitDate": "Monday", "visitTime": "3pm", "property": "Y"}, CallState())
    )
    assert other["success"] is True
    assert len(fake_crm.visits) == 2


def test_calendar_event_is_logged_with_resolved_date(fake_crm):
    calendar = FakeCalendar(CalendarEvent(id="evt1", summary="Property Viewing - Dana", html_link="https://cal/evt1"))
    call = CallState()
    call.merge_lead({"name": "Dana", "interest": "Rental"})

    result = _run(
        _dispatcher(fake_crm, calendar).dispatch(
            "schedule_visit", {"visitDate": "Saturday", "visitTime": "11am", "property": "213 Ely Ave"}, call
        )
    )

    assert result["message"] == "Visit scheduled and calendar event created."
    details, window = calendar.requests[0]
    assert details["interest"] == "Rental"
    assert window.start == datetime(2026, 2, 14, 11, 0, tzinfo=NY)
    logged_visit, event = fake_crm.calendar_events[0]
    assert logged_visit["visitDate"] == "Saturday, February 14, 2026"
    assert event.id == "evt1"


def test_calendar_failure_does_not_fail_visit(fake_crm):
    call = CallState()
    result = _run(
        _dispatcher(fake_crm, FakeCalendar(None)).dispatch(
            "schedule_visit", {"name": "Dana", "visitDate": "Saturday", "visitTime": "11"}, call
        )
    )

    assert result["success"] is True
    assert len(fake_crm.visits) == 1
    assert fake_crm.calendar_events == []


def test_send_property_media_logs_queued_request(fake_crm):
    call = CallState()
    call.session.caller_identity = "+12035550100"

    result = _run(
        _dispatcher(fake_crm).dispatch("send_property_media", {"property": "213 Ely Ave", "mediaType": "videos"}, call)
    )

    assert result["success"] is True
    entry = fake_crm.media[0]
    assert entry.phone == "+12035550100"
    assert entry.status == "queued"
    assert entry.message_type == "videos"
    assert call.session.media_request == {"property": "213 Ely Ave", "mediaType": "videos"}


def test_check_business_hours(fake_crm):
    result = _run(_dispatcher(fake_crm).dispatch("check_business_hours", {}, CallState()))

    assert result["success"] is True
    assert result["isOpen"] is True
    assert result["currentDay"] == "Wednesday"
    assert result["hours"]["saturday"] == "10 AM-4 PM"


def test_unknown_tool_returns_structured_failure(fake_crm):
    result = _run(_dispatcher(fake_crm).dispatch("order_pizza", {}, CallState()))

    assert result == {"success": False, "reason": "unrecognized tool", "message": "Unknown function: order_pizza"}
