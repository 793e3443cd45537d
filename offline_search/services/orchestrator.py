"""Cache-first search orchestration.

Every settled query goes through the same pipeline: publish ``loading``,
show whatever the local cache holds, then (when online) fetch from the
network, persist the fresh batch and publish it. A network result never
replaces a cached display with an error or with an empty list.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable
from typing import Protocol

from offline_search.domain.models import ResultState, UserRecord
from offline_search.logging import logger
from offline_search.services.cache import CacheReader, CacheUpsertEngine
from offline_search.services.cancellation import CancellationToken
from offline_search.services.exceptions import (
    CacheWriteFailure,
    InvalidQuery,
    SearchCancelled,
)
from offline_search.services.state import ResultStateStore


class RemoteFetcher(Protocol):
    async def fetch(self, query: str) -> list[UserRecord]: ...


class ConnectivitySignal(Protocol):
    @property
    def is_reachable(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...


class SearchOrchestrator:
    def __init__(
        self,
        *,
        cache_reader: CacheReader,
        fetcher: RemoteFetcher,
        upsert_engine: CacheUpsertEngine,
        connectivity: ConnectivitySignal,
        state_store: ResultStateStore | None = None,
    ) -> None:
        self._cache_reader = cache_reader
        self._fetcher = fetcher
        self._upsert_engine = upsert_engine
        self._connectivity = connectivity
        self.state_store = state_store or ResultStateStore()
        self._token: CancellationToken | None = None
        self._last_query: str | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ResultState:
        return self.state_store.current

    @property
    def last_query(self) -> str | None:
        return self._last_query

    def search(self, query: str) -> asyncio.Task[None] | None:
        """Supersede any running search and start a new one for ``query``."""

        if not isinstance(query, str):
            raise InvalidQuery(f"query must be a string, got {type(query).__name__}")
        if not query:
            self.reset()
            return None

        self._cancel_current()
        token = CancellationToken(label=query)
        self._token = token
        self._last_query = query
        self.state_store.publish(ResultState.loading())

        task = asyncio.get_running_loop().create_task(self._run_search(query, token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def refresh(self) -> asyncio.Task[None] | None:
        """Run the last query again, e.g. after a failure."""

        if not self._last_query:
            return None
        return self.search(self._last_query)

    def reset(self) -> None:
        self._cancel_current()
        self.state_store.publish(ResultState.idle())

    async def run(self, queries: AsyncIterable[str]) -> None:
        async for query in queries:
            self.search(query)

    async def join(self) -> None:
        """Wait for every spawned search task, superseded ones included."""

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def aclose(self) -> None:
        self._cancel_current()
        await self.join()

    def _cancel_current(self) -> None:
        if self._token is not None and not self._token.cancelled:
            logger.debug("search_superseded", query=self._token.label)
            self._token.cancel()

    def _publish(self, token: CancellationToken, state: ResultState) -> None:
        token.raise_if_cancelled()
        self.state_store.publish(state)

    async def _run_search(self, query: str, token: CancellationToken) -> None:
        try:
            await self._reconcile(query, token)
        except SearchCancelled:
            logger.debug("search_task_abandoned", query=query)

    async def _reconcile(self, query: str, token: CancellationToken) -> None:
        token.raise_if_cancelled()
        cached: list[UserRecord] = []
        try:
            cached = await self._cache_reader.read(query)
        except Exception as exc:
            logger.warning("cache_read_failed", query=query, error=str(exc))

        token.raise_if_cancelled()
        if cached:
            self._publish(token, ResultState.cached(cached))

        if not self._connectivity.is_reachable:
            logger.info("search_offline", query=query, cached=len(cached))
            if not cached:
                self._publish(token, ResultState.empty())
            return

        try:
            fetched = await self._fetcher.fetch(query)
        except Exception as exc:
            token.raise_if_cancelled()
            if self.state.is_loading:
                logger.warning("search_failed", query=query, error=str(exc))
                self._publish(token, ResultState.failed(exc))
            else:
                logger.info("search_failure_hidden_by_cache", query=query, error=str(exc))
            return

        token.raise_if_cancelled()
        if not fetched:
            if self.state.is_loading:
                self._publish(token, ResultState.empty())
            return

        try:
            await self._upsert_engine.upsert(fetched, query, token)
        except CacheWriteFailure as exc:
            logger.warning("search_results_not_persisted", query=query, error=str(exc))

        self._publish(token, ResultState.resolved(fetched))
        logger.info("search_resolved", query=query, results=len(fetched))


__all__ = ["ConnectivitySignal", "RemoteFetcher", "SearchOrchestrator"]
