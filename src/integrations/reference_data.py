"""Process-wide cache of property listings, FAQ and local information.

Sessions read :meth:`ReferenceDataCache.current` without waiting; a single
background task swaps in fresh snapshots. When a refresh fails the previous
snapshot keeps being served.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from agents.schemas import FaqEntry, LocalInfoEntry, PropertyListing

LOGGER = logging.getLogger(__name__)

DEFAULT_PROPERTIES: tuple[PropertyListing, ...] = (
    PropertyListing(
        address="213 Ely Ave",
        city="Norwalk",
        bedrooms="2",
        bathrooms="1",
        price="$2,500",
        neighborhood="Downtown",
        status="Active",
        features="Hardwood Floors, Updated Kitchen",
        description="Beautiful updated family home in the heart of Downtown",
        security="1 month rent",
    ),
)

ReferenceLoader = Callable[
    [], Awaitable[tuple[list[PropertyListing], list[FaqEntry], list[LocalInfoEntry]]]
]


@dataclass(frozen=True)
class ReferenceData:
    properties: tuple[PropertyListing, ...] = DEFAULT_PROPERTIES
    faqs: tuple[FaqEntry, ...] = ()
    local_info: tuple[LocalInfoEntry, ...] = ()
    loaded_at: datetime | None = field(default=None, compare=False)


class ReferenceDataCache:
    def __init__(self, loader: ReferenceLoader, *, refresh_seconds: float = 300.0) -> None:
        self._loader = loader
        self._refresh_seconds = refresh_seconds
        self._snapshot = ReferenceData()
        self._task: asyncio.Task[None] | None = None

    def current(self) -> ReferenceData:
        return self._snapshot

    async def refresh(self) -> bool:
        """Load a new snapshot; on failure keep the previous one and return False."""

        try:
            properties, faqs, local_info = await self._loader()
        except Exception:
            LOGGER.exception("Reference data refresh failed; serving previous snapshot")
            return False

        self._snapshot = ReferenceData(
            properties=tuple(properties) or DEFAULT_PROPERTIES,
            faqs=tuple(faqs),
            local_info=tuple(local_info),
            loaded_at=datetime.now(timezone.utc),
        )
        LOGGER.info(
            "Reference data loaded: %d properties, %d FAQs, %d local info items",
            len(self._snapshot.properties),
            len(self._snapshot.faqs),
            len(self._snapshot.local_info),
        )
        return True

    async def _run(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self._refresh_seconds)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="reference-data-refresh")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
