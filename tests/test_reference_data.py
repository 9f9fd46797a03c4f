from __future__ import annotations

import asyncio

from agents.schemas import FaqEntry, LocalInfoEntry, PropertyListing
from integrations.reference_data import DEFAULT_PROPERTIES, ReferenceDataCache


def test_defaults_before_first_load():
    async def loader():
        raise AssertionError("not called")

    snapshot = ReferenceDataCache(loader).current()
    assert snapshot.properties == DEFAULT_PROPERTIES
    assert snapshot.properties[0].address == "213 Ely Ave"
    assert snapshot.loaded_at is None


def test_refresh_swaps_snapshot():
    async def loader():
        return (
            [PropertyListing(address="1 Harbor Pl", city="Stamford")],
            [FaqEntry(question="Pets?", answer="Cats only.")],
            [LocalInfoEntry(topic="Parking", information="Street parking.")],
        )

    cache = ReferenceDataCache(loader)
    assert asyncio.run(cache.refresh()) is True

    snapshot = cache.current()
    assert [listing.address for listing in snapshot.properties] == ["1 Harbor Pl"]
    assert snapshot.faqs[0].answer == "Cats only."
    assert snapshot.loaded_at is not None


def test_empty_property_list_falls_back_to_defaults():
    async def loader():
        return [], [], []

    cache = ReferenceDataCache(loader)
    asyncio.run(cache.refresh())
    assert cache.current().properties == DEFAULT_PROPERTIES


def test_failed_refresh_keeps_previous_snapshot():
    calls = []

    async def loader():
        calls.append(1)
        if len(calls) > 1:
            raise ConnectionError("database unavailable")
        return [PropertyListing(address="1 Harbor Pl")], [], []

    cache = ReferenceDataCache(loader)
    asyncio.run(cache.refresh())
    before = cache.current()

    assert asyncio.run(cache.refresh()) is False
    assert cache.current() is before


def test_background_task_loads_and_stops():
    async def scenario():
        loaded = asyncio.Event()

        async def loader():
            loaded.set()
            return [PropertyListing(address="1 Harbor Pl")], [], []

        cache = ReferenceDataCache(loader, refresh_seconds=60)
        cache.start()
        await asyncio.wait_for(loaded.wait(), 1)
        await asyncio.sleep(0)
        await cache.stop()
        return cache.current()

    assert asyncio.run(scenario()).properties[0].address == "1 Harbor Pl"
