"""CRM gateway used by the tool dispatcher and the session bridge.

The gateway never raises into the call path: every storage failure is
logged and turned into a falsy result. Only :meth:`load_reference_data`
propagates errors, so the reference cache can keep serving stale data.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from agents.schemas import (
    CalendarEvent,
    CallLogEntry,
    FaqEntry,
    LocalInfoEntry,
    MediaLogEntry,
    PropertyListing,
    VisitConflict,
)
from db.repository import CrmRepository

LOGGER = logging.getLogger(__name__)


class CRMGateway(Protocol):
    async def save_lead(self, lead: Mapping[str, str]) -> bool: ...

    async def update_lead_status(self, lead: Mapping[str, str], status: str) -> bool: ...

    async def find_scheduled_visit(self, name: str, property_ref: str) -> VisitConflict | None: ...

    async def save_visit(self, visit: Mapping[str, str], *, resolved_date: str) -> bool: ...

    async def log_calendar_event(self, visit: Mapping[str, str], event: CalendarEvent) -> bool: ...

    async def log_call(self, entry: CallLogEntry) -> bool: ...

    async def log_media(self, entry: MediaLogEntry) -> bool: ...

    async def load_reference_data(
        self,
    ) -> tuple[list[PropertyListing], list[FaqEntry], list[LocalInfoEntry]]: ...


class SqlCRMGateway:
    """CRM gateway backed by the SQLAlchemy repository."""

    def __init__(self, repository: CrmRepository | None = None) -> None:
        self._repo = repository or CrmRepository()

    async def save_lead(self, lead: Mapping[str, str]) -> bool:
        try:
            await self._repo.add_lead(lead)
        except SQLAlchemyError:
            LOGGER.exception("Saving lead %r failed", lead.get("name"))
            return False
        LOGGER.info("Lead saved: %s", lead.get("name"))
        return True

    async def update_lead_status(self, lead: Mapping[str, str], status: str) -> bool:
        try:
            row = await self._repo.update_latest_lead_status(
                name=lead.get("name", ""),
                phone=lead.get("phone", ""),
                status=status,
            )
        except SQLAlchemyError:
            LOGGER.exception("Updating lead status for %r failed", lead.get("name"))
            return False
        if row is None:
            LOGGER.info("No lead row matched %r for status update", lead.get("name"))
            return False
        LOGGER.info("Lead -> %r: %s", status, lead.get("name"))
        return True

    async def find_scheduled_visit(self, name: str, property_ref: str) -> VisitConflict | None:
        try:
            row = await self._repo.find_scheduled_visit(name=name, property_ref=property_ref)
        except SQLAlchemyError:
            LOGGER.exception("Duplicate visit lookup failed")
            return None
        if row is None:
            return None
        return VisitConflict(
            existing_date=row.visit_date,
            existing_time=row.visit_time,
            property_ref=row.property,
        )

    async def save_visit(self, visit: Mapping[str, str], *, resolved_date: str) -> bool:
        try:
            await self._repo.add_visit(visit, resolved_date=resolved_date)
        except SQLAlchemyError:
            LOGGER.exception("Saving visit for %r failed", visit.get("name"))
            return False
        LOGGER.info("Visit saved: %s at %s", resolved_date, visit.get("visitTime"))
        return True

    async def log_calendar_event(self, visit: Mapping[str, str], event: CalendarEvent) -> bool:
        try:
            await self._repo.add_calendar_event(
                event_id=event.id,
                summary=event.summary,
                visit_date=visit.get("visitDate", ""),
                visit_time=visit.get("visitTime", ""),
                name=visit.get("name", ""),
                phone=visit.get("phone", ""),
                property=visit.get("property", ""),
                address=visit.get("address", ""),
                link=event.html_link,
                status="Scheduled",
            )
        except SQLAlchemyError:
            LOGGER.exception("Logging calendar event %s failed", event.id)
            return False
        return True

    async def log_call(self, entry: CallLogEntry) -> bool:
        try:
            await self._repo.add_call_log(**entry.model_dump())
        except SQLAlchemyError:
            LOGGER.exception("Logging call for %s failed", entry.phone)
            return False
        LOGGER.info("Call logged: %s (%s, %s)", entry.phone, entry.duration, entry.outcome)
        return True

    async def log_media(self, entry: MediaLogEntry) -> bool:
        try:
            await self._repo.add_media_log(**entry.model_dump())
        except SQLAlchemyError:
            LOGGER.exception("Logging %s message for %s failed", entry.direction, entry.phone)
            return False
        return True

    async def load_reference_data(
        self,
    ) -> tuple[list[PropertyListing], list[FaqEntry], list[LocalInfoEntry]]:
        properties = await self._repo.list_active_properties()
        faqs = await self._repo.list_faqs()
        local_info = await self._repo.list_local_info()
        return (
            [PropertyListing.model_validate(row, from_attributes=True) for row in properties],
            [FaqEntry.model_validate(row, from_attributes=True) for row in faqs],
            [LocalInfoEntry.model_validate(row, from_attributes=True) for row in local_info],
        )
