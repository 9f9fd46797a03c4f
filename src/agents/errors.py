"""Domain-specific exceptions for the receptionist.

These exceptions are safe to import from API layers without pulling in the
session bridge or its network clients.
"""

from __future__ import annotations


class ReceptionistError(Exception):
    default_detail: str = "Receptionist error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class MalformedEventError(ReceptionistError):
    default_detail = "Malformed event payload."


class ToolArgumentsError(ReceptionistError):
    default_detail = "Invalid tool arguments."


class BackendConnectionError(ReceptionistError):
    default_detail = "Realtime backend connection failed."
