"""Twilio Media Streams leg of a call, over the FastAPI websocket."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

LOGGER = logging.getLogger(__name__)


def media_message(stream_sid: str, payload: str) -> dict[str, Any]:
    """Outbound audio frame tagged with the stream it belongs to."""

    return {"event": "media", "streamSid": stream_sid, "media": {"payload": payload}}


class TwilioMediaLink:
    """Adapter giving the session bridge a narrow view of the Twilio websocket."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.application_state is WebSocketState.CONNECTED
            and self._websocket.client_state is WebSocketState.CONNECTED
        )

    async def send(self, message: dict[str, Any]) -> bool:
        if not self.is_open:
            return False
        try:
            await self._websocket.send_text(json.dumps(message))
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            LOGGER.debug("Dropping frame for closed Twilio socket: %s", exc)
            return False
        return True

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if not self.is_open:
            return
        try:
            await self._websocket.close(code=code, reason=reason or None)
        except (RuntimeError, OSError) as exc:
            LOGGER.debug("Twilio socket already closed: %s", exc)

    async def messages(self) -> AsyncIterator[str]:
        while self.is_open:
            try:
                yield await self._websocket.receive_text()
            except WebSocketDisconnect:
                return
