"""Service status endpoints."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status

from agents.sessions import SessionRegistry
from api.dependencies import get_reference_cache, get_registry, get_status_limiter
from api.rate_limit import SlidingWindowRateLimiter
from api.schemas import HealthResponse, ServiceStatusResponse
from config.settings import get_settings
from integrations.reference_data import ReferenceDataCache

LOGGER = logging.getLogger(__name__)

router = APIRouter()

_PROCESS_STARTED = time.monotonic()


def _agent_label() -> str:
    settings = get_settings()
    return f"{settings.agent_name} ({settings.company_name})"


def limit_status_requests(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_status_limiter),
) -> None:
    client = request.client.host if request.client else "unknown"
    if not limiter.hit(f"root:{client}"):
        LOGGER.warning("Status rate limit exceeded for %s", client)
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many requests")


@router.get("/health", response_model=HealthResponse)
async def health(registry: SessionRegistry = Depends(get_registry)) -> HealthResponse:
    return HealthResponse(
        agent=_agent_label(),
        uptime=round(time.monotonic() - _PROCESS_STARTED, 3),
        activeCalls=registry.active_count,
    )


@router.get("/", response_model=ServiceStatusResponse, dependencies=[Depends(limit_status_requests)])
async def service_status(
    registry: SessionRegistry = Depends(get_registry),
    cache: ReferenceDataCache = Depends(get_reference_cache),
) -> ServiceStatusResponse:
    return ServiceStatusResponse(
        status="Voice receptionist running",
        agent=_agent_label(),
        properties=len(cache.current().properties),
        activeCalls=registry.active_count,
        timestamp=datetime.now(timezone.utc),
    )
