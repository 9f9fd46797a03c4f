"""Registry of live session bridges for health reporting and shutdown."""

from __future__ import annotations

import asyncio
import logging

from agents.bridge import SessionBridge

LOGGER = logging.getLogger(__name__)

SHUTDOWN_CLOSE_CODE = 1001


class SessionRegistry:
    def __init__(self) -> None:
        self._bridges: set[SessionBridge] = set()

    @property
    def active_count(self) -> int:
        return len(self._bridges)

    async def run(self, bridge: SessionBridge) -> None:
        """Run a bridge to completion while it counts as an active call."""

        self._bridges.add(bridge)
        LOGGER.info("Call connected; active calls: %d", self.active_count)
        try:
            await bridge.run()
        finally:
            self._bridges.discard(bridge)
            LOGGER.info("Call finished; active calls: %d", self.active_count)

    async def shutdown(self, timeout: float) -> bool:
        """Close every caller leg, then wait for the calls to flush.

        Returns False when the bridges did not finish within ``timeout``.
        """

        bridges = list(self._bridges)
        if not bridges:
            return True

        LOGGER.info("Shutting down %d active call(s)", len(bridges))
        for bridge in bridges:
            await bridge.close_telephony(code=SHUTDOWN_CLOSE_CODE, reason="Shutdown")

        try:
            await asyncio.wait_for(
                asyncio.gather(*(bridge.wait_closed() for bridge in bridges)),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            LOGGER.warning("Calls still flushing after %.1fs; forcing exit", timeout)
            return False
        return True
