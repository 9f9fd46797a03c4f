"""Event types consumed by the session bridge, and parsers for both wire formats.

Telephony events arrive as Twilio Media Streams JSON, backend events as
OpenAI Realtime JSON. Lifecycle events (connection opened/closed, timers,
configuration) are produced inside the bridge itself. Every event has a
``kind`` used to pick the bridge handler.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar

from agents.call_state import AGENT, CALLER
from agents.errors import MalformedEventError

# Telephony side


@dataclass(frozen=True)
class Connected:
    kind: ClassVar[str] = "connected"


@dataclass(frozen=True)
class Started:
    kind: ClassVar[str] = "started"
    stream_sid: str
    call_sid: str = ""
    caller_number: str = ""


@dataclass(frozen=True)
class Media:
    kind: ClassVar[str] = "media"
    payload: str


@dataclass(frozen=True)
class Stop:
    kind: ClassVar[str] = "stop"


@dataclass(frozen=True)
class TelephonyClosed:
    kind: ClassVar[str] = "telephony_closed"


# Backend side


@dataclass(frozen=True)
class AudioDelta:
    kind: ClassVar[str] = "audio_delta"
    delta: str


@dataclass(frozen=True)
class ToolCall:
    kind: ClassVar[str] = "tool_call"
    name: str
    call_id: str
    arguments: str = "{}"


@dataclass(frozen=True)
class TranscriptDone:
    kind: ClassVar[str] = "transcript_done"
    speaker: str
    text: str


@dataclass(frozen=True)
class TranscriptionFailed:
    kind: ClassVar[str] = "transcription_failed"
    message: str = ""


@dataclass(frozen=True)
class BackendError:
    kind: ClassVar[str] = "backend_error"
    error: dict[str, Any] = field(default_factory=dict)


# Lifecycle


@dataclass(frozen=True)
class ConfigReady:
    kind: ClassVar[str] = "config_ready"
    instructions: str


@dataclass(frozen=True)
class BackendOpened:
    kind: ClassVar[str] = "backend_opened"
    generation: int
    link: Any


@dataclass(frozen=True)
class BackendClosed:
    kind: ClassVar[str] = "backend_closed"
    generation: int
    reason: str = ""


@dataclass(frozen=True)
class ReconnectDue:
    kind: ClassVar[str] = "reconnect_due"
    generation: int


TelephonyEvent = Connected | Started | Media | Stop | TelephonyClosed
BackendEvent = AudioDelta | ToolCall | TranscriptDone | TranscriptionFailed | BackendError
LifecycleEvent = ConfigReady | BackendOpened | BackendClosed | ReconnectDue
BridgeEvent = TelephonyEvent | BackendEvent | LifecycleEvent


def _decode(raw: str | bytes | dict[str, Any]) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    try:
        message = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedEventError(f"Unparsable event: {exc}") from exc
    if not isinstance(message, dict):
        raise MalformedEventError("Event is not a JSON object.")
    return message


def parse_telephony_event(raw: str | bytes | dict[str, Any]) -> TelephonyEvent | None:
    """Translate one Twilio Media Streams message; None for events we ignore."""

    message = _decode(raw)
    event = str(message.get("event") or "")

    if event == "connected":
        return Connected()
    if event == "start":
        start = message.get("start")
        if not isinstance(start, dict) or not start.get("streamSid"):
            raise MalformedEventError("start event without streamSid")
        custom = start.get("customParameters") or {}
        return Started(
            stream_sid=str(start["streamSid"]),
            call_sid=str(start.get("callSid") or ""),
            caller_number=str(custom.get("callerNumber") or "") if isinstance(custom, dict) else "",
        )
    if event == "media":
        media = message.get("media")
        if not isinstance(media, dict):
            raise MalformedEventError("media event without media body")
        if media.get("track") and media.get("track") != "inbound":
            return None
        payload = media.get("payload")
        if not isinstance(payload, str) or not payload:
            raise MalformedEventError("media event without payload")
        return Media(payload=payload)
    if event == "stop":
        return Stop()
    return None


def parse_backend_event(raw: str | bytes | dict[str, Any]) -> BackendEvent | None:
    """Translate one realtime backend message; None for events we ignore."""

    message = _decode(raw)
    event_type = str(message.get("type") or "")

    if event_type in {"response.audio.delta", "response.output_audio.delta"}:
        delta = message.get("delta")
        if not isinstance(delta, str) or not delta:
            return None
        return AudioDelta(delta=delta)
    if event_type == "response.function_call_arguments.done":
        name = message.get("name")
        if not name:
            raise MalformedEventError("function call without name")
        return ToolCall(
            name=str(name),
            call_id=str(message.get("call_id") or ""),
            arguments=str(message.get("arguments") or "{}"),
        )
    if event_type in {"response.audio_transcript.done", "response.output_audio_transcript.done"}:
        return TranscriptDone(speaker=AGENT, text=str(message.get("transcript") or ""))
    if event_type == "conversation.item.input_audio_transcription.completed":
        return TranscriptDone(speaker=CALLER, text=str(message.get("transcript") or ""))
    if event_type == "conversation.item.input_audio_transcription.failed":
        error = message.get("error") or {}
        return TranscriptionFailed(message=str(error.get("message") or "") if isinstance(error, dict) else str(error))
    if event_type == "error":
        error = message.get("error")
        return BackendError(error=error if isinstance(error, dict) else {"message": str(error)})
    return None
