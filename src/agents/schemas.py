"""Pydantic schemas for tool arguments and CRM records."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ToolArguments(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class SaveLeadArgs(_ToolArguments):
    name: str
    phone: str | None = None
    email: str | None = None
    interest: str | None = None
    property: str | None = None
    budget: str | None = None
    notes: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("name may not be empty.")
        return value


class ScheduleVisitArgs(_ToolArguments):
    name: str | None = None
    phone: str | None = None
    visitDate: str
    visitTime: str
    property: str | None = None
    address: str | None = None
    interest: str | None = None
    notes: str | None = None

    @field_validator("visitDate", "visitTime")
    @classmethod
    def slot_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("visit date and time are required.")
        return value


class SendPropertyMediaArgs(_ToolArguments):
    property: str
    phone: str | None = None
    mediaType: str | None = Field(default=None, description="photos, videos or both")

    @field_validator("property")
    @classmethod
    def property_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("property may not be empty.")
        return value


class VisitConflict(BaseModel):
    """An already scheduled visit for the same caller and property."""

    existing_date: str
    existing_time: str
    property_ref: str

    @property
    def message(self) -> str:
        return f"Already has a visit for {self.property_ref} on {self.existing_date} at {self.existing_time}."


class CalendarEvent(BaseModel):
    id: str = ""
    summary: str = ""
    html_link: str = ""


class CallLogEntry(BaseModel):
    phone: str = "Unknown"
    duration: str = "0"
    call_type: str = "General"
    summary: str = ""
    outcome: str = "Completed"


class MediaLogEntry(BaseModel):
    phone: str = ""
    direction: Literal["inbound", "outbound"] = "outbound"
    customer_message: str = ""
    ai_reply: str = ""
    message_type: str = "text"
    property: str = ""
    status: str = "sent"


class PropertyListing(BaseModel):
    address: str
    city: str = ""
    bedrooms: str = ""
    bathrooms: str = ""
    price: str = ""
    neighborhood: str = ""
    status: str = "Active"
    features: str = ""
    description: str = ""
    security: str = ""


class FaqEntry(BaseModel):
    category: str = ""
    question: str
    answer: str
    keywords: str = ""
    priority: str = ""


class LocalInfoEntry(BaseModel):
    topic: str
    information: str
