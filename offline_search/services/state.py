"""Single-writer holder for the published search state."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Callable

from offline_search.domain.models import ResultState
from offline_search.logging import logger

StateListener = Callable[[ResultState], None]


class ResultStateStore:
    """Holds the current ``ResultState`` and notifies subscribers on change.

    Only the orchestrator calls :meth:`publish`; everything else reads
    :attr:`current` or subscribes.
    """

    def __init__(self, initial: ResultState | None = None) -> None:
        self._current = initial or ResultState.idle()
        self._listeners: list[StateListener] = []
        self._queues: set[asyncio.Queue[ResultState]] = set()

    @property
    def current(self) -> ResultState:
        return self._current

    def publish(self, state: ResultState) -> None:
        self._current = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("state_listener_failed", state=state.kind)
        for queue in self._queues:
            queue.put_nowait(state)

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    async def updates(self) -> AsyncIterator[ResultState]:
        """Yield the current state, then every state published afterwards."""

        queue: asyncio.Queue[ResultState] = asyncio.Queue()
        queue.put_nowait(self._current)
        self._queues.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.discard(queue)


__all__ = ["ResultStateStore", "StateListener"]
