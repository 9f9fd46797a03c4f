"""Session bridge: one live phone call between Twilio and the realtime backend.

Every input (telephony frames, backend frames, connection lifecycle, timers)
becomes an event on a per-call queue. A single consumer loop applies events
in order through :meth:`SessionBridge.step`, so call state and state
transitions are only ever touched from one place. Readers, connect attempts
and the reconnect timer only enqueue.

State machine::

    IDLE -> AWAITING_BACKEND_READY -> BACKEND_CONNECTING -> BACKEND_OPEN
                                           ^                    |
                                           +--- RECONNECTING <--+
    (any live state) -> TERMINATING -> CLOSED
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Coroutine
from enum import Enum
from typing import Any, Protocol

from agents.call_state import AGENT, CALLER, BackendConnectionState, CallState
from agents.errors import BackendConnectionError, MalformedEventError
from agents.events import (
    AudioDelta,
    BackendClosed,
    BackendError,
    BackendOpened,
    BridgeEvent,
    ConfigReady,
    Connected,
    Media,
    ReconnectDue,
    Started,
    Stop,
    TelephonyClosed,
    ToolCall,
    TranscriptDone,
    TranscriptionFailed,
    parse_backend_event,
    parse_telephony_event,
)
from agents.schemas import CallLogEntry
from agents.tools import TOOL_DEFINITIONS, ToolDispatcher
from config.settings import Settings, get_settings
from integrations.realtime_client import build_function_output, build_greeting, build_session_update
from integrations.twilio_streaming import media_message

LOGGER = logging.getLogger(__name__)


class BridgeState(str, Enum):
    IDLE = "idle"
    AWAITING_BACKEND_READY = "awaiting_backend_ready"
    BACKEND_CONNECTING = "backend_connecting"
    BACKEND_OPEN = "backend_open"
    RECONNECTING = "reconnecting"
    TERMINATING = "terminating"
    CLOSED = "closed"


class TelephonyLink(Protocol):
    @property
    def is_open(self) -> bool: ...

    async def send(self, message: dict[str, Any]) -> bool: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    def messages(self) -> AsyncIterator[str]: ...


class BackendLink(Protocol):
    @property
    def is_open(self) -> bool: ...

    async def send(self, message: dict[str, Any]) -> bool: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


class BackendConnector(Protocol):
    async def connect(self) -> BackendLink: ...


def format_duration(seconds: int) -> str:
    return f"{seconds // 60}m {seconds % 60}s"


class SessionBridge:
    def __init__(
        self,
        telephony: TelephonyLink,
        connector: BackendConnector,
        dispatcher: ToolDispatcher,
        crm,
        *,
        instructions: Callable[[], Awaitable[str]],
        settings: Settings | None = None,
        call: CallState | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._telephony = telephony
        self._connector = connector
        self._dispatcher = dispatcher
        self._crm = crm
        self._instructions_source = instructions
        self.call = call or CallState(agent_label=self._settings.agent_name)

        self.state = BridgeState.IDLE
        self._queue: asyncio.Queue[BridgeEvent] = asyncio.Queue()
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = asyncio.Event()

        self._instructions: str | None = None
        self._stream_started = False
        self._telephony_closed = False
        self._backend: BackendLink | None = None
        self._generation = 0
        self._reconnect_timer: asyncio.TimerHandle | None = None
        self._flushed = False

    @property
    def stream_sid(self) -> str:
        return self.call.session.session_id

    @property
    def generation(self) -> int:
        return self._generation

    # Event loop

    def post(self, event: BridgeEvent) -> None:
        self._queue.put_nowait(event)

    async def run(self) -> None:
        """Process events for this call until it is closed and flushed."""

        self._transition(BridgeState.AWAITING_BACKEND_READY)
        self._spawn(self._read_telephony(), "telephony-reader")
        self._spawn(self._load_instructions(), "instructions")
        try:
            while self.state is not BridgeState.CLOSED:
                event = await self._queue.get()
                try:
                    await self.step(event)
                except Exception:
                    LOGGER.exception("[%s] Handling %s failed", self.stream_sid or "-", event.kind)
        finally:
            await self._shutdown_tasks()
            self._closed.set()

    async def step(self, event: BridgeEvent) -> None:
        handler = getattr(self, f"_on_{event.kind}", None)
        if handler is None:
            LOGGER.debug("No handler for %s", event.kind)
            return
        await handler(event)

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def close_telephony(self, code: int = 1000, reason: str = "") -> None:
        """Close the caller leg from outside the event loop (process shutdown)."""

        await self._close_leg("telephony", self._telephony.close(code=code, reason=reason))
        self.post(TelephonyClosed())

    # Producers

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _read_telephony(self) -> None:
        try:
            async for raw in self._telephony.messages():
                try:
                    event = parse_telephony_event(raw)
                except MalformedEventError as exc:
                    LOGGER.warning("[%s] Dropping telephony frame: %s", self.stream_sid or "-", exc.detail)
                    continue
                if event is not None:
                    self.post(event)
        except Exception as exc:
            LOGGER.warning("[%s] Telephony reader failed: %s", self.stream_sid or "-", exc)
        finally:
            self.post(TelephonyClosed())

    async def _load_instructions(self) -> None:
        try:
            instructions = await self._instructions_source()
        except Exception:
            LOGGER.exception("Rendering instructions failed; using fallback")
            instructions = self._settings.fallback_instructions
        self.post(ConfigReady(instructions=instructions))

    async def _connect_backend(self, generation: int) -> None:
        try:
            link = await self._connector.connect()
        except BackendConnectionError as exc:
            LOGGER.error("[%s] %s", self.stream_sid or "-", exc.detail)
            self.post(BackendClosed(generation=generation, reason=exc.detail))
            return
        self.post(BackendOpened(generation=generation, link=link))

    async def _read_backend(self, generation: int, link: BackendLink) -> None:
        reason = "closed by backend"
        try:
            async for raw in link:
                if generation != self._generation:
                    return
                try:
                    event = parse_backend_event(raw)
                except MalformedEventError as exc:
                    LOGGER.warning("[%s] Dropping backend frame: %s", self.stream_sid or "-", exc.detail)
                    continue
                if event is not None:
                    self.post(event)
        except Exception as exc:
            reason = str(exc) or exc.__class__.__name__
            LOGGER.warning("[%s] Backend reader failed: %s", self.stream_sid or "-", reason)
        finally:
            self.post(BackendClosed(generation=generation, reason=reason))

    # Transitions

    def _transition(self, new_state: BridgeState) -> None:
        LOGGER.debug("[%s] %s -> %s", self.stream_sid or "-", self.state.value, new_state.value)
        self.state = new_state

    @property
    def _telephony_alive(self) -> bool:
        return not self._telephony_closed and self._telephony.is_open

    async def _maybe_connect(self) -> None:
        if self.state is BridgeState.AWAITING_BACKEND_READY and self._instructions is not None and self._stream_started:
            await self._begin_connect()

    async def _begin_connect(self) -> None:
        self._transition(BridgeState.BACKEND_CONNECTING)
        self.call.session.backend_connection_state = BackendConnectionState.CONNECTING
        self._generation += 1
        self._spawn(self._connect_backend(self._generation), f"backend-connect-{self._generation}")

    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    async def _terminate(self, reason: str) -> None:
        if self.state in (BridgeState.TERMINATING, BridgeState.CLOSED):
            return
        LOGGER.info("[%s] Ending call: %s", self.stream_sid or "-", reason)
        self._transition(BridgeState.TERMINATING)
        self._cancel_reconnect()
        # Anything still in flight from the current connection is now stale.
        self._generation += 1

        backend, self._backend = self._backend, None
        try:
            if backend is not None and backend.is_open:
                await self._close_leg("backend", backend.close())
            if self._telephony.is_open:
                await self._close_leg("telephony", self._telephony.close())
        finally:
            self.call.session.backend_connection_state = BackendConnectionState.CLOSED
            try:
                await self._flush()
            finally:
                self._transition(BridgeState.CLOSED)

    async def _close_leg(self, name: str, closing: Awaitable[None]) -> None:
        try:
            await closing
        except Exception as exc:
            LOGGER.warning("[%s] Closing %s leg failed: %s", self.stream_sid or "-", name, exc)

    async def _flush(self) -> None:
        if self._flushed:
            return
        self._flushed = True

        session = self.call.snapshot()
        entry = CallLogEntry(
            phone=session.best_phone or "Unknown",
            duration=format_duration(self.call.elapsed_seconds()),
            call_type=session.lead_record.get("interest") or "General",
            summary=self.call.transcript_text(self._settings.transcript_max_chars),
            outcome=session.outcome,
        )
        await self._crm.log_call(entry)

    async def _shutdown_tasks(self) -> None:
        self._cancel_reconnect()
        current = asyncio.current_task()
        pending = [task for task in self._tasks if task is not current]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        # Connections that finished opening after the call ended.
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if isinstance(event, BackendOpened):
                await event.link.close()

    # Telephony events

    async def _on_connected(self, event: Connected) -> None:
        LOGGER.info("Twilio stream connected; waiting for start")

    async def _on_started(self, event: Started) -> None:
        session = self.call.session
        session.session_id = event.stream_sid
        session.call_sid = event.call_sid
        session.caller_identity = event.caller_number
        self.call.mark_started()
        self._stream_started = True
        LOGGER.info("[%s] Call started (call %s) from %s", event.stream_sid, event.call_sid, event.caller_number or "?")
        await self._maybe_connect()

    async def _on_media(self, event: Media) -> None:
        if self.state is not BridgeState.BACKEND_OPEN or self._backend is None:
            return
        await self._backend.send({"type": "input_audio_buffer.append", "audio": event.payload})

    async def _on_stop(self, event: Stop) -> None:
        LOGGER.info("[%s] Caller hung up", self.stream_sid or "-")
        self.call.session.reconnect_attempts = self._settings.max_reconnect_attempts
        self._cancel_reconnect()
        await self._terminate("stop received")

    async def _on_telephony_closed(self, event: TelephonyClosed) -> None:
        self._telephony_closed = True
        self.call.session.reconnect_attempts = self._settings.max_reconnect_attempts
        await self._terminate("telephony leg closed")

    # Lifecycle events

    async def _on_config_ready(self, event: ConfigReady) -> None:
        self._instructions = event.instructions
        await self._maybe_connect()

    async def _on_backend_opened(self, event: BackendOpened) -> None:
        if event.generation != self._generation or self.state is not BridgeState.BACKEND_CONNECTING:
            LOGGER.debug("Closing superseded backend connection #%d", event.generation)
            await event.link.close()
            return

        session = self.call.session
        self._backend = event.link
        self._transition(BridgeState.BACKEND_OPEN)
        session.backend_connection_state = BackendConnectionState.OPEN
        session.reconnect_attempts = 0
        self.call.mark_started()
        LOGGER.info("[%s] Realtime backend connected (#%d)", self.stream_sid, event.generation)

        await event.link.send(build_session_update(self._settings, self._instructions or "", TOOL_DEFINITIONS))
        for message in build_greeting(self._settings.greeting_instruction):
            await event.link.send(message)
        self._spawn(self._read_backend(event.generation, event.link), f"backend-reader-{event.generation}")

    async def _on_backend_closed(self, event: BackendClosed) -> None:
        if event.generation != self._generation:
            LOGGER.debug("Ignoring close of superseded backend connection #%d", event.generation)
            return
        if self.state not in (BridgeState.BACKEND_CONNECTING, BridgeState.BACKEND_OPEN):
            return

        session = self.call.session
        self._backend = None
        session.backend_connection_state = BackendConnectionState.CLOSED
        LOGGER.info("[%s] Realtime backend closed: %s", self.stream_sid or "-", event.reason)

        limit = self._settings.max_reconnect_attempts
        if self._telephony_alive and session.reconnect_attempts < limit:
            session.reconnect_attempts += 1
            LOGGER.info("[%s] Reconnect %d/%d", self.stream_sid or "-", session.reconnect_attempts, limit)
            self._transition(BridgeState.RECONNECTING)
            self._reconnect_timer = asyncio.get_running_loop().call_later(
                self._settings.reconnect_delay_seconds,
                self.post,
                ReconnectDue(generation=self._generation),
            )
            return
        await self._terminate("backend unavailable")

    async def _on_reconnect_due(self, event: ReconnectDue) -> None:
        if self.state is not BridgeState.RECONNECTING or event.generation != self._generation:
            return
        self._reconnect_timer = None
        await self._begin_connect()

    # Backend events

    async def _on_audio_delta(self, event: AudioDelta) -> None:
        if not self.stream_sid:
            return
        await self._telephony.send(media_message(self.stream_sid, event.delta))

    async def _on_tool_call(self, event: ToolCall) -> None:
        try:
            arguments = json.loads(event.arguments or "{}")
        except ValueError as exc:
            LOGGER.error("[%s] Bad arguments for %s: %s", self.stream_sid or "-", event.name, exc)
            arguments = {}
        if not isinstance(arguments, dict):
            arguments = {}

        result = await self._dispatcher.dispatch(event.name, arguments, self.call)
        if self._backend is None:
            return
        for message in build_function_output(event.call_id, result):
            await self._backend.send(message)

    async def _on_transcript_done(self, event: TranscriptDone) -> None:
        if event.speaker == CALLER:
            self.call.observe_caller_utterance(event.text)
        else:
            self.call.append_transcript(AGENT, event.text)

    async def _on_transcription_failed(self, event: TranscriptionFailed) -> None:
        LOGGER.warning("[%s] Transcription failed: %s", self.stream_sid or "-", event.message)

    async def _on_backend_error(self, event: BackendError) -> None:
        LOGGER.error("[%s] Realtime backend error: %s", self.stream_sid or "-", json.dumps(event.error))
