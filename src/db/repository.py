"""Repository utilities for persisting CRM records."""

from __future__ import annotations

from collections.abc import Mapping

from sqlalchemy import desc, func, or_, select

from db.base import AsyncSessionFactory
from db.models import CalendarEventLog, CallLog, Faq, Lead, LocalInfo, MediaLog, Property, Visit


def _normalized(column):
    return func.lower(func.trim(column))


class CrmRepository:
    """Async repository encapsulating storage operations.

    Methods raise SQLAlchemy errors unchanged; failure containment lives in
    the CRM gateway.
    """

    def __init__(self, session_factory=AsyncSessionFactory) -> None:
        self._session_factory = session_factory

    async def add_lead(self, lead: Mapping[str, str]) -> Lead:
        async with self._session_factory() as session:
            row = Lead(
                name=lead.get("name", ""),
                phone=lead.get("phone", ""),
                email=lead.get("email", ""),
                interest=lead.get("interest", ""),
                property=lead.get("property", ""),
                budget=lead.get("budget", ""),
                notes=lead.get("notes", ""),
                status=lead.get("status") or "New",
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return row

    async def update_latest_lead_status(self, *, name: str, phone: str, status: str) -> Lead | None:
        """Set the status of the most recent lead matching by name or phone."""

        conditions = [_normalized(Lead.name) == name.strip().lower()]
        if phone.strip():
            conditions.append(func.trim(Lead.phone) == phone.strip())

        async with self._session_factory() as session:
            query = select(Lead).where(or_(*conditions)).order_by(desc(Lead.id)).limit(1)
            result = await session.execute(query)
            row = result.scalar_one_or_none()
            if row is None:
                return None
            row.status = status
            await session.commit()
            return row

    async def find_scheduled_visit(self, *, name: str, property_ref: str) -> Visit | None:
        query = (
            select(Visit)
            .where(_normalized(Visit.status) == "scheduled")
            .where(_normalized(Visit.name) == name.strip().lower())
            .where(_normalized(Visit.property) == property_ref.strip().lower())
            .order_by(Visit.id)
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return result.scalar_one_or_none()

    async def add_visit(self, visit: Mapping[str, str], *, resolved_date: str) -> Visit:
        async with self._session_factory() as session:
            row = Visit(
                visit_date=resolved_date,
                visit_time=visit.get("visitTime", ""),
                name=visit.get("name", ""),
                phone=visit.get("phone", ""),
                property=visit.get("property", ""),
                address=visit.get("address", ""),
                notes=visit.get("notes", ""),
                status="Scheduled",
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return row

    async def add_calendar_event(self, **fields: str) -> CalendarEventLog:
        async with self._session_factory() as session:
            row = CalendarEventLog(**fields)
            session.add(row)
            await session.commit()
            return row

    async def add_call_log(self, **fields: str) -> CallLog:
        async with self._session_factory() as session:
            row = CallLog(**fields)
            session.add(row)
            await session.commit()
            return row

    async def add_media_log(self, **fields: str) -> MediaLog:
        async with self._session_factory() as session:
            row = MediaLog(**fields)
            session.add(row)
            await session.commit()
            return row

    async def list_active_properties(self) -> list[Property]:
        query = (
            select(Property)
            .where(_normalized(Property.status) == "active")
            .where(func.trim(Property.address) != "")
            .order_by(Property.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def list_faqs(self) -> list[Faq]:
        async with self._session_factory() as session:
            result = await session.execute(select(Faq).order_by(Faq.id))
            return list(result.scalars().all())

    async def list_local_info(self) -> list[LocalInfo]:
        async with self._session_factory() as session:
            result = await session.execute(select(LocalInfo).order_by(LocalInfo.id))
            return list(result.scalars().all())

    async def list_call_logs(self, *, limit: int = 50) -> list[CallLog]:
        async with self._session_factory() as session:
            result = await session.execute(select(CallLog).order_by(desc(CallLog.id)).limit(limit))
            return list(result.scalars().all())

    async def list_visits(self) -> list[Visit]:
        async with self._session_factory() as session:
            result = await session.execute(select(Visit).order_by(Visit.id))
            return list(result.scalars().all())

    async def list_leads(self) -> list[Lead]:
        async with self._session_factory() as session:
            result = await session.execute(select(Lead).order_by(Lead.id))
            return list(result.scalars().all())
