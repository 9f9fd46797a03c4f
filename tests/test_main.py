from __future__ import annotations

import asyncio

import uvicorn

from agents.sessions import SHUTDOWN_CLOSE_CODE, SessionRegistry


class FlushingBridge:
    def __init__(self) -> None:
        self.closed_with = None
        self._done = asyncio.Event()

    async def run(self) -> None:
        await self._done.wait()

    async def wait_closed(self) -> None:
        await self._done.wait()

    async def close_telephony(self, code: int = 1000, reason: str = "") -> None:
        self.closed_with = (code, reason)
        self._done.set()


def test_server_hangs_up_calls_before_closing_connections(app, monkeypatch):
    import main

    seen_by_uvicorn = []

    async def connection_teardown(self, sockets=None):
        seen_by_uvicorn.append([bridge.closed_with for bridge in bridges])

    monkeypatch.setattr(uvicorn.Server, "shutdown", connection_teardown)

    registry = SessionRegistry()
    bridges = [FlushingBridge(), FlushingBridge()]

    async def scenario():
        tasks = [asyncio.create_task(registry.run(bridge)) for bridge in bridges]
        await asyncio.sleep(0)
        server = main.ReceptionistServer(uvicorn.Config(app), registry)
        await server.shutdown()
        await asyncio.gather(*tasks)

    asyncio.run(scenario())

    assert seen_by_uvicorn == [[(SHUTDOWN_CLOSE_CODE, "Shutdown")] * 2]


def test_server_shutdown_without_calls_goes_straight_to_uvicorn(app, monkeypatch):
    import main

    calls = []

    async def connection_teardown(self, sockets=None):
        calls.append(sockets)

    monkeypatch.setattr(uvicorn.Server, "shutdown", connection_teardown)

    server = main.ReceptionistServer(uvicorn.Config(app), SessionRegistry())
    asyncio.run(server.shutdown(sockets=[]))

    assert calls == [[]]
