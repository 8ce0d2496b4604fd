"""Network reachability tracking.

Holds the device's online/offline state and notifies listeners on every
transition. The state is either set explicitly (the front-end reports
browser online/offline events) or refreshed by probing the mirror URL.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import httpx
import structlog

logger = structlog.get_logger(__name__)

ConnectivityListener = Callable[[bool], Awaitable[None]]


class ConnectivityMonitor:
    """Online/offline state with transition listeners."""

    def __init__(
        self,
        online: bool = True,
        probe_url: str | None = None,
        probe_timeout: float = 5.0,
    ):
        self._online = online
        self.probe_url = probe_url
        self.probe_timeout = probe_timeout
        self._listeners: list[ConnectivityListener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def add_listener(self, listener: ConnectivityListener) -> None:
        self._listeners.append(listener)

    async def set_online(self, online: bool) -> bool:
        """Record the current reachability.

        Listeners are awaited in registration order, only when the state
        actually changes.

        Returns:
            True if this call was a transition.
        """
        if online == self._online:
            return False

        self._online = online
        logger.info("connectivity.changed", online=online)
        for listener in self._listeners:
            await listener(online)
        return True

    async def probe(self) -> bool:
        """Check reachability of the probe URL and record the result."""
        if not self.probe_url:
            return self._online

        try:
            async with httpx.AsyncClient(timeout=self.probe_timeout) as client:
                await client.head(self.probe_url)
            reachable = True
        except httpx.HTTPError as e:
            logger.debug("connectivity.probe_failed", url=self.probe_url, error=str(e))
            reachable = False

        await self.set_online(reachable)
        return reachable
