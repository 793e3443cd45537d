"""Application entrypoint: a line-oriented search box on stdin/stdout."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterable, AsyncIterator

import httpx

from offline_search.config import get_settings
from offline_search.db.session import Database
from offline_search.domain.models import ResultState
from offline_search.logging import configure_logging, logger
from offline_search.services.cache import CacheReader, CacheUpsertEngine
from offline_search.services.connectivity import ConnectivityMonitor
from offline_search.services.debounce import Debouncer
from offline_search.services.github import GitHubUserFetcher
from offline_search.services.orchestrator import SearchOrchestrator


def render_state(state: ResultState) -> str:
    if state.kind == "idle":
        return "Enter a query to begin"
    if state.kind == "loading":
        return "Searching..."
    if state.kind == "empty":
        return "No results found"
    if state.kind == "failed":
        return f"Error: {state.error}"

    lines = [f"  {record.login} (#{record.id})" for record in state.records]
    if state.kind == "cached":
        lines.append("Updating...")
    return "\n".join(lines)


async def _stdin_lines() -> AsyncIterator[str]:
    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            return
        yield line.rstrip("\r\n")


async def main(edits: AsyncIterable[str] | None = None) -> None:
    settings = get_settings()
    configure_logging(settings.log_level, environment=settings.environment)

    database = Database(settings=settings)
    await database.create_schema()

    async with httpx.AsyncClient() as http_client:
        connectivity = ConnectivityMonitor(http_client, settings.connectivity)
        orchestrator = SearchOrchestrator(
            cache_reader=CacheReader(database),
            fetcher=GitHubUserFetcher(http_client, settings.github),
            upsert_engine=CacheUpsertEngine(database),
            connectivity=connectivity,
        )
        orchestrator.state_store.add_listener(lambda state: print(render_state(state), flush=True))
        debouncer = Debouncer(
            settings.debounce.quiet_period_seconds,
            on_idle=orchestrator.reset,
        )

        connectivity.start()
        logger.info("search_client_starting", debounce_seconds=settings.debounce.quiet_period_seconds)
        feeder = asyncio.create_task(debouncer.feed(edits if edits is not None else _stdin_lines()))
        try:
            await orchestrator.run(debouncer.settled())
            await feeder
            await orchestrator.join()
        finally:
            if not feeder.done():
                feeder.cancel()
            await connectivity.aclose()
            await orchestrator.aclose()
            await database.dispose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
