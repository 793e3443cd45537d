"""Background reachability probe for the remote catalog."""

from __future__ import annotations

import asyncio
import contextlib

import httpx

from offline_search.config import ConnectivitySettings
from offline_search.logging import logger


class ConnectivityMonitor:
    """Keeps :attr:`is_reachable` current by probing ``probe_url`` periodically.

    Any HTTP response counts as reachable; only transport errors (DNS,
    refused connections, timeouts) mark the remote as unreachable.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: ConnectivitySettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or ConnectivitySettings()
        self._reachable = False
        self._task: asyncio.Task[None] | None = None
        self._stopping: asyncio.Task[None] | None = None

    @property
    def is_reachable(self) -> bool:
        return self._reachable

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._monitor())
        logger.info("connectivity_monitor_started", probe_url=str(self._settings.probe_url))

    def stop(self) -> None:
        """Request cancellation of the loop; :meth:`aclose` waits for it to unwind."""

        if self._task is None:
            return
        self._task.cancel()
        self._stopping, self._task = self._task, None
        logger.info("connectivity_monitor_stopped")

    async def aclose(self) -> None:
        self.stop()
        task, self._stopping = self._stopping, None
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def probe(self) -> bool:
        try:
            await self._client.head(
                str(self._settings.probe_url),
                timeout=self._settings.timeout_seconds,
            )
        except httpx.TransportError as exc:
            self._update(False, error=str(exc))
        else:
            self._update(True)
        return self._reachable

    async def _monitor(self) -> None:
        while True:
            try:
                await self.probe()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("connectivity_check_failed")
            await asyncio.sleep(self._settings.interval_seconds)

    def _update(self, reachable: bool, error: str | None = None) -> None:
        if reachable != self._reachable:
            logger.info("connectivity_changed", reachable=reachable, error=error)
        self._reachable = reachable


__all__ = ["ConnectivityMonitor"]
