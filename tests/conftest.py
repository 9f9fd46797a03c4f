from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

# Must be set before importing modules that create the SQLAlchemy engine.
_RUNTIME_DIR = Path(tempfile.mkdtemp(prefix="receptionist-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{(_RUNTIME_DIR / 'receptionist_test.db').as_posix()}"
os.environ["DATA_DIR"] = str(_RUNTIME_DIR)
# Ensure tests can rely on the schema existing without running Alembic.
os.environ["AUTO_CREATE_DB_SCHEMA"] = "true"
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("CALENDAR_ENDPOINT", None)
os.environ.pop("PUBLIC_BASE_URL", None)

from agents.schemas import VisitConflict  # noqa: E402


class FakeCRM:
    """In-memory CRM gateway recording every write."""

    def __init__(self) -> None:
        self.leads: list[dict] = []
        self.status_updates: list[tuple[dict, str]] = []
        self.visits: list[dict] = []
        self.calendar_events: list[tuple[dict, object]] = []
        self.calls: list = []
        self.media: list = []
        self.fail_writes = False

    async def save_lead(self, lead) -> bool:
        if self.fail_writes:
            return False
        self.leads.append(dict(lead))
        return True

    async def update_lead_status(self, lead, status: str) -> bool:
        self.status_updates.append((dict(lead), status))
        return True

    async def find_scheduled_visit(self, name: str, property_ref: str) -> VisitConflict | None:
        for visit in self.visits:
            if (
                visit.get("name", "").strip().lower() == name.strip().lower()
                and visit.get("property", "").strip().lower() == property_ref.strip().lower()
            ):
                return VisitConflict(
                    existing_date=visit["resolved_date"],
                    existing_time=visit.get("visitTime", ""),
                    property_ref=visit.get("property", ""),
                )
        return None

    async def save_visit(self, visit, *, resolved_date: str) -> bool:
        if self.fail_writes:
            return False
        self.visits.append({**visit, "resolved_date": resolved_date})
        return True

    async def log_calendar_event(self, visit, event) -> bool:
        self.calendar_events.append((dict(visit), event))
        return True

    async def log_call(self, entry) -> bool:
        self.calls.append(entry)
        return True

    async def log_media(self, entry) -> bool:
        self.media.append(entry)
        return True

    async def load_reference_data(self):
        return [], [], []


@pytest.fixture()
def fake_crm() -> FakeCRM:
    return FakeCRM()


@pytest.fixture(scope="session")
def app():
    import importlib

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def client(app, fake_crm):
    import api.dependencies as deps

    app.dependency_overrides[deps.get_crm] = lambda: fake_crm

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
