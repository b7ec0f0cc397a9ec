"""Web search providers used to harvest top-ranked pages for a cluster."""
from __future__ import annotations

import logging
import os
import time
from typing import Any, List, Sequence

import requests
from pydantic import BaseModel, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .schemas import SearchResult

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; KeywordClusterBot/1.0)"


class SearchConfigurationError(RuntimeError):
    """Raised when no search provider has credentials configured."""


class SearchProviderError(RuntimeError):
    """Raised when a provider request fails or returns nothing usable."""


class OrganicResult(BaseModel):
    link: str | None = None
    title: str | None = None
    snippet: str | None = None


class SearchPayload(BaseModel):
    organic_results: List[OrganicResult] = []


def _search_timeout() -> float:
    default_timeout = 15.0
    raw = os.getenv("SEARCH_TIMEOUT")
    if not raw:
        return default_timeout
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid SEARCH_TIMEOUT value %s; falling back to %s", raw, default_timeout)
        return default_timeout
    return value if value > 0 else default_timeout


@retry(
    reraise=True,
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
)
def _get(url: str, params: dict[str, Any]) -> requests.Response:
    return requests.get(
        url,
        params=params,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        timeout=_search_timeout(),
    )


class SearchProvider:
    """A Google-results API reachable with a single API key."""

    name = "search"
    endpoint = ""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def params(self, query: str, limit: int) -> dict[str, Any]:
        return {"engine": "google", "hl": "en", "gl": "us", "q": query, "api_key": self.api_key}

    def search(self, query: str, limit: int) -> list[SearchResult]:
        logger.info("[%s] query=%s key_len=%d", self.name, query, len(self.api_key))
        start = time.perf_counter()
        try:
            response = _get(self.endpoint, self.params(query, limit))
        except requests.RequestException as exc:
            raise SearchProviderError(f"{self.name} request failed: {exc}") from exc

        if not response.ok:
            raise SearchProviderError(f"{self.name} HTTP {response.status_code}")
        try:
            payload = SearchPayload.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise SearchProviderError(f"{self.name} returned a malformed payload: {exc}") from exc

        results = [
            SearchResult(url=item.link, title=item.title, snippet=item.snippet or "")
            for item in payload.organic_results[: limit * 2]
            if item.link and item.title
        ]
        if not results:
            raise SearchProviderError(f"{self.name} returned no results")
        logger.info(
            "[%s] %d results for %s in %.2fs",
            self.name,
            len(results),
            query,
            time.perf_counter() - start,
        )
        return results


class SearchApiProvider(SearchProvider):
    name = "searchapi.io"
    endpoint = "https://www.searchapi.io/api/v1/search"


class SerpApiProvider(SearchProvider):
    name = "serpapi"
    endpoint = "https://serpapi.com/search.json"

    def params(self, query: str, limit: int) -> dict[str, Any]:
        params = super().params(query, limit)
        params["num"] = max(3, limit)
        return params


def configured_providers() -> list[SearchProvider]:
    """Return providers with credentials, primary first."""

    providers: list[SearchProvider] = []
    searchapi_key = os.getenv("SEARCHAPI_API_KEY", "").strip()
    if searchapi_key:
        providers.append(SearchApiProvider(searchapi_key))
    serpapi_key = os.getenv("SERPAPI_KEY", "").strip()
    if serpapi_key:
        providers.append(SerpApiProvider(serpapi_key))
    return providers


def search_top_results(
    query: str,
    limit: int = 3,
    providers: Sequence[SearchProvider] | None = None,
) -> list[SearchResult]:
    """Query providers in order until one returns results.

    Raises ``SearchConfigurationError`` when no provider is configured and
    the last ``SearchProviderError`` when every provider fails.
    """

    chain = list(configured_providers() if providers is None else providers)
    if not chain:
        raise SearchConfigurationError("No search provider configured")

    last_error: SearchProviderError | None = None
    for provider in chain:
        try:
            return provider.search(query, limit)
        except SearchProviderError as exc:
            logger.warning("Search provider %s failed for %s: %s", provider.name, query, exc)
            last_error = exc
    assert last_error is not None
    raise last_error
