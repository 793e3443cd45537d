"""Tests for the GitHub user search client."""

from __future__ import annotations

import httpx
import pytest
from pydantic import SecretStr

from offline_search.config import GitHubSettings
from offline_search.domain.models import UserRecord
from offline_search.services.exceptions import NetworkFailure
from offline_search.services.github import GITHUB_ACCEPT, GitHubUserFetcher


def _settings(**overrides) -> GitHubSettings:
    defaults = {"base_url": "https://api.github.test", "retry_base_delay": 0}
    defaults.update(overrides)
    return GitHubSettings(**defaults)


@pytest.mark.asyncio
async def test_fetch_parses_items_and_sends_headers():
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/search/users"
        assert request.url.params["q"] == "octo cat"
        assert request.url.params["per_page"] == "30"
        assert request.headers["Accept"] == GITHUB_ACCEPT
        assert "Authorization" not in request.headers
        return httpx.Response(
            200,
            json={
                "total_count": 2,
                "incomplete_results": False,
                "items": [
                    {"id": 583231, "login": "octocat", "avatar_url": "https://a.test/1", "type": "User"},
                    {"id": 2, "login": "doe"},
                ],
            },
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        fetcher = GitHubUserFetcher(client, settings=_settings())
        users = await fetcher.fetch("octo cat")

    assert users == [
        UserRecord(id=583231, login="octocat", avatar_url="https://a.test/1"),
        UserRecord(id=2, login="doe"),
    ]


@pytest.mark.asyncio
async def test_fetch_uses_bearer_token():
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer ghp_secret"
        return httpx.Response(200, json={"items": []})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        fetcher = GitHubUserFetcher(client, settings=_settings(api_token=SecretStr("ghp_secret")))
        assert await fetcher.fetch("octocat") == []


@pytest.mark.asyncio
async def test_empty_query_skips_request():
    async def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        fetcher = GitHubUserFetcher(client, settings=_settings())
        assert await fetcher.fetch("") == []


@pytest.mark.asyncio
async def test_client_error_is_not_retried():
    calls = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(422, json={"message": "Validation Failed"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        fetcher = GitHubUserFetcher(client, settings=_settings())
        with pytest.raises(NetworkFailure) as excinfo:
            await fetcher.fetch("octocat")

    assert excinfo.value.status_code == 422
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_server_error_is_retried():
    calls = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json={"items": [{"id": 1, "login": "octocat"}]})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        fetcher = GitHubUserFetcher(client, settings=_settings())
        users = await fetcher.fetch("octocat")

    assert [user.login for user in users] == ["octocat"]
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_transport_error_becomes_network_failure():
    calls = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        fetcher = GitHubUserFetcher(client, settings=_settings(max_attempts=2))
        with pytest.raises(NetworkFailure):
            await fetcher.fetch("octocat")

    assert len(calls) == 2


@pytest.mark.asyncio
async def test_malformed_payload_becomes_network_failure():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": [{"login": "no-id"}]})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        fetcher = GitHubUserFetcher(client, settings=_settings())
        with pytest.raises(NetworkFailure):
            await fetcher.fetch("octocat")


@pytest.mark.asyncio
async def test_unexpected_success_status_is_rejected():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        fetcher = GitHubUserFetcher(client, settings=_settings())
        with pytest.raises(NetworkFailure) as excinfo:
            await fetcher.fetch("octocat")

    assert excinfo.value.status_code == 204
