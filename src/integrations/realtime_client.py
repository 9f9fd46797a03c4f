"""Websocket client for the realtime conversational backend."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State

from agents.errors import BackendConnectionError
from config.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)

WS_MAX_SIZE = 16 * 1024 * 1024
WS_PING_INTERVAL = 20


def build_session_update(
    settings: Settings,
    instructions: str,
    tools: Sequence[dict[str, Any]],
) -> dict[str, Any]:
    """Session configuration sent once per backend connection."""

    return {
        "type": "session.update",
        "session": {
            "turn_detection": {
                "type": "server_vad",
                "threshold": settings.vad_threshold,
                "prefix_padding_ms": settings.vad_prefix_padding_ms,
                "silence_duration_ms": settings.vad_silence_duration_ms,
            },
            "input_audio_format": settings.audio_format,
            "output_audio_format": settings.audio_format,
            "voice": settings.realtime_voice,
            "instructions": instructions,
            "modalities": ["text", "audio"],
            "temperature": settings.realtime_temperature,
            "tools": list(tools),
            "input_audio_transcription": {"model": settings.transcription_model},
        },
    }


def build_greeting(text: str) -> list[dict[str, Any]]:
    """Synthetic user turn asking the model to greet the caller, then a response request."""

    return [
        {
            "type": "conversation.item.create",
            "item": {
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": text}],
            },
        },
        {"type": "response.create"},
    ]


def build_function_output(call_id: str, result: dict[str, Any]) -> list[dict[str, Any]]:
    return [
        {
            "type": "conversation.item.create",
            "item": {
                "type": "function_call_output",
                "call_id": call_id,
                "output": json.dumps(result),
            },
        },
        {"type": "response.create"},
    ]


class RealtimeConnection:
    """One open websocket to the backend.

    Iterating yields raw text frames until the socket closes; a dropped
    connection simply ends the iteration.
    """

    def __init__(self, websocket: ClientConnection) -> None:
        self._ws = websocket

    @property
    def is_open(self) -> bool:
        return self._ws.state is State.OPEN

    async def send(self, message: dict[str, Any]) -> bool:
        if not self.is_open:
            return False
        try:
            await self._ws.send(json.dumps(message))
        except ConnectionClosed:
            return False
        return True

    async def close(self) -> None:
        await self._ws.close()

    async def __aiter__(self) -> AsyncIterator[str | bytes]:
        try:
            async for message in self._ws:
                yield message
        except ConnectionClosed as exc:
            LOGGER.info("Realtime backend connection dropped: %s", exc)


class RealtimeConnector:
    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    async def connect(self) -> RealtimeConnection:
        settings = self._settings
        if not settings.openai_api_key:
            raise BackendConnectionError("OPENAI_API_KEY is not configured.")

        headers = {
            "Authorization": f"Bearer {settings.openai_api_key}",
            "OpenAI-Beta": "realtime=v1",
        }
        try:
            websocket = await asyncio.wait_for(
                connect(
                    settings.realtime_endpoint,
                    additional_headers=headers,
                    max_size=WS_MAX_SIZE,
                    ping_interval=WS_PING_INTERVAL,
                    compression=None,
                ),
                timeout=settings.backend_connect_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise BackendConnectionError(
                f"Timed out after {settings.backend_connect_timeout_seconds}s connecting to realtime backend."
            ) from exc
        except (OSError, WebSocketException) as exc:
            raise BackendConnectionError(f"Realtime backend connection failed: {exc}") from exc

        LOGGER.info("Connected to realtime backend (%s)", settings.realtime_model)
        return RealtimeConnection(websocket)
