"""API-facing Pydantic models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    agent: str
    uptime: float = Field(description="Seconds since the process started.")
    activeCalls: int


class ServiceStatusResponse(BaseModel):
    status: str
    agent: str
    properties: int
    activeCalls: int
    timestamp: datetime


class IncomingCallInfo(BaseModel):
    message: str = "POST for Twilio"
    agent: str
