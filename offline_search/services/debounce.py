"""Turn a stream of search-box edits into settled queries."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator
from typing import Callable

from offline_search.logging import logger
from offline_search.services.exceptions import InvalidQuery

_CLOSED = object()
_NOTHING = object()


class Debouncer:
    """Quiet-period debounce followed by consecutive-duplicate suppression.

    Edits arrive through :meth:`push` (or :meth:`feed`). :meth:`settled`
    yields a value once no newer edit has arrived for ``quiet_period``
    seconds. Empty settled values are not yielded; ``on_idle`` is called
    for them instead.
    """

    def __init__(
        self,
        quiet_period: float = 0.5,
        on_idle: Callable[[], None] | None = None,
    ) -> None:
        if quiet_period < 0:
            raise ValueError("quiet_period must not be negative")
        self.quiet_period = quiet_period
        self._on_idle = on_idle
        self._queue: asyncio.Queue[object] = asyncio.Queue()

    def push(self, text: str) -> None:
        if not isinstance(text, str):
            raise InvalidQuery(f"query must be a string, got {type(text).__name__}")
        self._queue.put_nowait(text)

    def close(self) -> None:
        self._queue.put_nowait(_CLOSED)

    async def feed(self, source: AsyncIterable[str]) -> None:
        try:
            async for text in source:
                self.push(text)
        finally:
            self.close()

    async def settled(self) -> AsyncIterator[str]:
        last: object = _NOTHING
        pending: object = _NOTHING
        while True:
            if pending is _NOTHING:
                item = await self._queue.get()
            else:
                try:
                    item = await asyncio.wait_for(self._queue.get(), self.quiet_period)
                except asyncio.TimeoutError:
                    item = _NOTHING

            if item is _NOTHING or item is _CLOSED:
                if pending is not _NOTHING and pending != last:
                    last = pending
                    if pending:
                        logger.debug("query_settled", query=pending)
                        yield pending  # type: ignore[misc]
                    else:
                        self._signal_idle()
                pending = _NOTHING
                if item is _CLOSED:
                    return
                continue

            # A newer edit supersedes the pending one.
            pending = item

    def _signal_idle(self) -> None:
        logger.debug("query_cleared")
        if self._on_idle is not None:
            self._on_idle()


__all__ = ["Debouncer"]
