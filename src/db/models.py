"""SQLAlchemy models for the CRM store."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Lead(Base):
    """Prospective customer captured during a call."""

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)
    name: Mapped[str] = mapped_column(String(255), default="", index=True)
    phone: Mapped[str] = mapped_column(String(64), default="", index=True)
    email: Mapped[str] = mapped_column(String(255), default="")
    interest: Mapped[str] = mapped_column(String(64), default="")
    property: Mapped[str] = mapped_column(String(255), default="")
    budget: Mapped[str] = mapped_column(String(128), default="")
    notes: Mapped[str] = mapped_column(Text(), default="")
    status: Mapped[str] = mapped_column(String(64), default="New")


class Visit(Base):
    """Scheduled property viewing; `visit_date` holds the resolved date string."""

    __tablename__ = "visits"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)
    visit_date: Mapped[str] = mapped_column(String(64), default="")
    visit_time: Mapped[str] = mapped_column(String(64), default="")
    name: Mapped[str] = mapped_column(String(255), default="", index=True)
    phone: Mapped[str] = mapped_column(String(64), default="")
    property: Mapped[str] = mapped_column(String(255), default="", index=True)
    address: Mapped[str] = mapped_column(String(255), default="")
    notes: Mapped[str] = mapped_column(Text(), default="")
    status: Mapped[str] = mapped_column(String(32), default="Scheduled")


class CallLog(Base):
    __tablename__ = "call_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)
    phone: Mapped[str] = mapped_column(String(64), default="Unknown")
    duration: Mapped[str] = mapped_column(String(32), default="0")
    call_type: Mapped[str] = mapped_column(String(64), default="General")
    summary: Mapped[str] = mapped_column(Text(), default="")
    outcome: Mapped[str] = mapped_column(String(64), default="Completed")


class CalendarEventLog(Base):
    __tablename__ = "calendar_events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)
    event_id: Mapped[str] = mapped_column(String(255), default="")
    summary: Mapped[str] = mapped_column(String(255), default="")
    visit_date: Mapped[str] = mapped_column(String(64), default="")
    visit_time: Mapped[str] = mapped_column(String(64), default="")
    name: Mapped[str] = mapped_column(String(255), default="")
    phone: Mapped[str] = mapped_column(String(64), default="")
    property: Mapped[str] = mapped_column(String(255), default="")
    address: Mapped[str] = mapped_column(String(255), default="")
    link: Mapped[str] = mapped_column(Text(), default="")
    status: Mapped[str] = mapped_column(String(32), default="Scheduled")


class MediaLog(Base):
    """Inbound and outbound messaging records (WhatsApp, property media)."""

    __tablename__ = "media_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)
    phone: Mapped[str] = mapped_column(String(64), default="")
    direction: Mapped[str] = mapped_column(String(16), default="outbound")
    customer_message: Mapped[str] = mapped_column(Text(), default="")
    ai_reply: Mapped[str] = mapped_column(Text(), default="")
    message_type: Mapped[str] = mapped_column(String(32), default="text")
    property: Mapped[str] = mapped_column(String(255), default="")
    status: Mapped[str] = mapped_column(String(32), default="sent")


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(255))
    city: Mapped[str] = mapped_column(String(128), default="")
    bedrooms: Mapped[str] = mapped_column(String(16), default="")
    bathrooms: Mapped[str] = mapped_column(String(16), default="")
    price: Mapped[str] = mapped_column(String(64), default="")
    neighborhood: Mapped[str] = mapped_column(String(128), default="")
    status: Mapped[str] = mapped_column(String(32), default="Active")
    features: Mapped[str] = mapped_column(Text(), default="")
    description: Mapped[str] = mapped_column(Text(), default="")
    security: Mapped[str] = mapped_column(String(128), default="")


class Faq(Base):
    __tablename__ = "faqs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(128), default="")
    question: Mapped[str] = mapped_column(Text())
    answer: Mapped[str] = mapped_column(Text())
    keywords: Mapped[str] = mapped_column(Text(), default="")
    priority: Mapped[str] = mapped_column(String(32), default="")


class LocalInfo(Base):
    __tablename__ = "local_info"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    topic: Mapped[str] = mapped_column(String(255))
    information: Mapped[str] = mapped_column(Text())
