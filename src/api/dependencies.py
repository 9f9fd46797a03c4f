"""Shared FastAPI dependencies.

Process-wide collaborators are created once and shared by every call.
Tests replace them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from agents.sessions import SessionRegistry
from agents.tools import ToolDispatcher
from api.rate_limit import SlidingWindowRateLimiter
from config.settings import get_settings
from integrations.calendar_bridge import CalendarBridge, build_calendar_bridge
from integrations.crm import SqlCRMGateway
from integrations.realtime_client import RealtimeConnector
from integrations.reference_data import ReferenceDataCache


@lru_cache(maxsize=1)
def get_crm() -> SqlCRMGateway:
    return SqlCRMGateway()


@lru_cache(maxsize=1)
def get_calendar() -> CalendarBridge | None:
    return build_calendar_bridge(get_settings())


@lru_cache(maxsize=1)
def get_reference_cache() -> ReferenceDataCache:
    settings = get_settings()
    return ReferenceDataCache(get_crm().load_reference_data, refresh_seconds=settings.reference_refresh_seconds)


@lru_cache(maxsize=1)
def get_registry() -> SessionRegistry:
    return SessionRegistry()


@lru_cache(maxsize=1)
def get_status_limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(get_settings().status_rate_limit_per_minute)


@lru_cache(maxsize=1)
def get_connector() -> RealtimeConnector:
    return RealtimeConnector(get_settings())


def get_dispatcher(
    crm: SqlCRMGateway = Depends(get_crm),
    calendar: CalendarBridge | None = Depends(get_calendar),
) -> ToolDispatcher:
    return ToolDispatcher(crm, calendar, get_settings())
