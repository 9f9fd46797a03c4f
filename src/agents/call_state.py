"""Per-call state accumulated while a phone call is live."""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from agents.intent import IntentClassifier, KeywordIntentClassifier

LEAD_FIELDS: tuple[str, ...] = (
    "name",
    "phone",
    "email",
    "interest",
    "property",
    "budget",
    "notes",
    "status",
)
VISIT_FIELDS: tuple[str, ...] = (
    "name",
    "phone",
    "visitDate",
    "visitTime",
    "property",
    "address",
    "notes",
)

CALLER = "caller"
AGENT = "agent"


class BackendConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


def new_lead_record() -> dict[str, str]:
    record = {key: "" for key in LEAD_FIELDS}
    record["status"] = "New"
    return record


def new_visit_record() -> dict[str, str]:
    return {key: "" for key in VISIT_FIELDS}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CallSession:
    """Everything known about one phone call."""

    session_id: str = ""
    call_sid: str = ""
    caller_identity: str = ""
    backend_connection_state: BackendConnectionState = BackendConnectionState.DISCONNECTED
    reconnect_attempts: int = 0
    lead_record: dict[str, str] = field(default_factory=new_lead_record)
    visit_record: dict[str, str] = field(default_factory=new_visit_record)
    transcript_log: list[tuple[str, str]] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utcnow)
    lead_saved: bool = False
    media_request: dict[str, Any] | None = None

    @property
    def best_phone(self) -> str:
        return self.caller_identity or self.lead_record.get("phone", "")

    @property
    def outcome(self) -> str:
        return "Visit Scheduled" if self.visit_record.get("visitDate") else "Completed"


def _merge(target: dict[str, str], partial: Mapping[str, Any]) -> list[str]:
    changed: list[str] = []
    for key, value in partial.items():
        if value is None:
            continue
        text = str(value).strip()
        if not text:
            continue
        if target.get(key) != text:
            target[key] = text
            changed.append(key)
    return changed


class CallState:
    """Single-writer aggregator over a :class:`CallSession`.

    Only the owning bridge's event loop calls the mutating methods, so no
    locking is needed here.
    """

    def __init__(
        self,
        *,
        classifier: IntentClassifier | None = None,
        agent_label: str = "Agent",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.session = CallSession(started_at=clock())
        self._classifier = classifier or KeywordIntentClassifier()
        self._agent_label = agent_label
        self._clock = clock

    def merge_lead(self, partial: Mapping[str, Any]) -> list[str]:
        return _merge(self.session.lead_record, partial)

    def merge_visit(self, partial: Mapping[str, Any]) -> list[str]:
        return _merge(self.session.visit_record, partial)

    def append_transcript(self, speaker: str, text: str) -> None:
        utterance = (text or "").strip()
        if utterance:
            self.session.transcript_log.append((speaker, utterance))

    def observe_caller_utterance(self, text: str) -> str | None:
        """Record a caller utterance and update the lead's interest from it."""

        self.append_transcript(CALLER, text)
        category = self._classifier.classify(text or "")
        if category:
            self.session.lead_record["interest"] = category
        return category

    def mark_started(self) -> None:
        self.session.started_at = self._clock()

    def elapsed_seconds(self) -> int:
        return max(0, round((self._clock() - self.session.started_at).total_seconds()))

    def transcript_text(self, limit: int | None = None) -> str:
        lines = []
        for speaker, text in self.session.transcript_log:
            label = self._agent_label if speaker == AGENT else "Caller"
            lines.append(f"{label}: {text}\n")
        rendered = "".join(lines)
        if limit is not None:
            return rendered[:limit]
        return rendered

    def snapshot(self) -> CallSession:
        return copy.deepcopy(self.session)
