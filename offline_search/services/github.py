"""GitHub user search client used as the remote source of truth."""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ValidationError

from offline_search.config import GitHubSettings
from offline_search.domain.models import UserRecord
from offline_search.logging import logger
from offline_search.services.exceptions import NetworkFailure
from offline_search.utils.retry import retry_async

GITHUB_ACCEPT = "application/vnd.github.v3+json"


class _SearchUsersPayload(BaseModel):
    items: list[UserRecord]


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


class GitHubUserFetcher:
    """Fetch users matching a query from ``GET /search/users``."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: GitHubSettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or GitHubSettings()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": GITHUB_ACCEPT}
        token = self._settings.api_token
        if token is not None:
            headers["Authorization"] = f"Bearer {token.get_secret_value()}"
        return headers

    def _search_url(self) -> str:
        return f"{str(self._settings.base_url).rstrip('/')}/search/users"

    async def fetch(self, query: str) -> list[UserRecord]:
        if not query:
            return []

        params = {"q": query, "per_page": str(self._settings.per_page)}

        async def _request() -> httpx.Response:
            response = await self._client.get(
                self._search_url(),
                params=params,
                headers=self._headers(),
                timeout=self._settings.request_timeout_seconds,
            )
            response.raise_for_status()
            return response

        try:
            response = await retry_async(
                _request,
                max_attempts=self._settings.max_attempts,
                base_delay=self._settings.retry_base_delay,
                retry_on=(httpx.HTTPStatusError, httpx.TransportError),
                should_retry=_is_transient,
                logger=logger,
                operation_name="github_search_users",
            )
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            detail = exc.response.text[:500]
            raise NetworkFailure(
                f"GitHub search failed ({status_code}): {detail}", status_code=status_code
            ) from exc
        except httpx.RequestError as exc:
            raise NetworkFailure(f"GitHub search failed: {exc}") from exc

        if response.status_code != 200:
            raise NetworkFailure(
                f"GitHub search returned unexpected status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = _SearchUsersPayload.model_validate_json(response.content)
        except ValidationError as exc:
            raise NetworkFailure(f"GitHub search returned a malformed payload: {exc}") from exc

        logger.debug("github_search_fetched", query=query, results=len(payload.items))
        return payload.items


__all__ = ["GITHUB_ACCEPT", "GitHubUserFetcher"]
