"""Entry point for the real estate voice receptionist service."""

from __future__ import annotations

import logging
import socket
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from agents.sessions import SessionRegistry
from api.dependencies import get_reference_cache, get_registry
from api.routes import router as status_router
from api.twilio_routes import router as twilio_router
from config.settings import get_settings
from db.base import dispose_db, init_db

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    cache = get_reference_cache()
    cache.start()
    yield
    # Only finds calls when served without ReceptionistServer (e.g. `uvicorn main:app`).
    await close_active_calls(get_registry())
    await cache.stop()
    await dispose_db()


async def close_active_calls(registry: SessionRegistry) -> None:
    if not await registry.shutdown(settings.shutdown_timeout_seconds):
        LOGGER.warning("Shutdown finished with calls still open")


class ReceptionistServer(uvicorn.Server):
    """Uvicorn server that hangs up live calls before closing connections.

    ``uvicorn.Server.shutdown`` fails open websockets with 1012 and then
    cancels whatever is still running, so the registry has to go first for
    callers to get 1001 and for call logs to flush.
    """

    def __init__(self, config: uvicorn.Config, registry: SessionRegistry) -> None:
        super().__init__(config)
        self._registry = registry

    async def shutdown(self, sockets: list[socket.socket] | None = None) -> None:
        await close_active_calls(self._registry)
        await super().shutdown(sockets=sockets)


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="Realty Voice Receptionist",
    description="Answers inbound calls and bridges them to a realtime voice agent.",
    lifespan=lifespan,
)
app.include_router(status_router)
app.include_router(twilio_router)


def main() -> None:
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=int(settings.shutdown_timeout_seconds),
    )
    ReceptionistServer(config, get_registry()).run()


if __name__ == "__main__":
    main()
