from __future__ import annotations

import asyncio

from agents.sessions import SHUTDOWN_CLOSE_CODE, SessionRegistry


class FakeBridge:
    def __init__(self, *, flushes: bool = True) -> None:
        self.closed_with = None
        self._flushes = flushes
        self._done = asyncio.Event()

    async def run(self) -> None:
        await self._done.wait()

    async def wait_closed(self) -> None:
        await self._done.wait()

    async def close_telephony(self, code: int = 1000, reason: str = "") -> None:
        self.closed_with = (code, reason)
        if self._flushes:
            self._done.set()


def test_registry_tracks_running_bridges():
    async def scenario():
        registry = SessionRegistry()
        bridge = FakeBridge()
        task = asyncio.create_task(registry.run(bridge))
        await asyncio.sleep(0)
        during = registry.active_count
        await bridge.close_telephony()
        await task
        return during, registry.active_count

    assert asyncio.run(scenario()) == (1, 0)


def test_shutdown_closes_every_caller_leg():
    async def scenario():
        registry = SessionRegistry()
        bridges = [FakeBridge(), FakeBridge()]
        tasks = [asyncio.create_task(registry.run(bridge)) for bridge in bridges]
        await asyncio.sleep(0)
        finished = await registry.shutdown(timeout=1)
        await asyncio.gather(*tasks)
        return finished, bridges, registry.active_count

    finished, bridges, active = asyncio.run(scenario())
    assert finished is True
    assert [bridge.closed_with for bridge in bridges] == [(SHUTDOWN_CLOSE_CODE, "Shutdown")] * 2
    assert active == 0


def test_shutdown_gives_up_after_timeout():
    async def scenario():
        registry = SessionRegistry()
        bridge = FakeBridge(flushes=False)
        task = asyncio.create_task(registry.run(bridge))
        await asyncio.sleep(0)
        finished = await registry.shutdown(timeout=0.05)
        task.cancel()
        return finished

    assert asyncio.run(scenario()) is False


def test_shutdown_without_calls_is_immediate():
    assert asyncio.run(SessionRegistry().shutdown(timeout=0.01)) is True
