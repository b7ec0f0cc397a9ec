from types import SimpleNamespace

import pytest

from keyword_clusters import search
from keyword_clusters.search import (
    SearchApiProvider,
    SearchConfigurationError,
    SearchProviderError,
    SerpApiProvider,
    configured_providers,
    search_top_results,
)


def _response(payload=None, status_code=200, invalid_json=False):
    def _json():
        if invalid_json:
            raise ValueError("not json")
        return payload

    return SimpleNamespace(status_code=status_code, ok=200 <= status_code < 300, json=_json)


ORGANIC = {
    "organic_results": [
        {"link": "https://a.com", "title": "A", "snippet": "first"},
        {"link": "https://b.com", "title": "B"},
        {"link": None, "title": "No link"},
        {"link": "https://c.com", "title": ""},
        {"link": "https://d.com", "title": "D"},
        {"link": "https://e.com", "title": "E"},
        {"link": "https://f.com", "title": "F"},
        {"link": "https://g.com", "title": "G"},
    ]
}


@pytest.fixture(autouse=True)
def clear_provider_env(monkeypatch):
    monkeypatch.delenv("SEARCHAPI_API_KEY", raising=False)
    monkeypatch.delenv("SERPAPI_KEY", raising=False)


def test_configured_providers_follow_fallback_order(monkeypatch):
    monkeypatch.setenv("SEARCHAPI_API_KEY", "primary")
    monkeypatch.setenv("SERPAPI_KEY", " secondary ")

    providers = configured_providers()

    assert [type(provider) for provider in providers] == [SearchApiProvider, SerpApiProvider]
    assert providers[1].api_key == "secondary"


def test_search_without_providers_raises_configuration_error():
    with pytest.raises(SearchConfigurationError):
        search_top_results("pizza")


def test_provider_maps_and_filters_organic_results(monkeypatch):
    calls = []

    def fake_get(url, params=None, headers=None, timeout=None):
        calls.append((url, params))
        return _response(ORGANIC)

    monkeypatch.setattr(search.requests, "get", fake_get)

    results = SearchApiProvider("key").search("pizza", 3)

    # limit * 2 raw results are considered before filtering.
    assert [result.url for result in results] == ["https://a.com", "https://b.com", "https://d.com", "https://e.com"]
    assert results[0].snippet == "first"
    assert results[1].snippet == ""
    assert calls[0][0] == "https://www.searchapi.io/api/v1/search"
    assert calls[0][1]["q"] == "pizza"
    assert "num" not in calls[0][1]


def test_serpapi_requests_at_least_three_results(monkeypatch):
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        captured.update(params)
        return _response(ORGANIC)

    monkeypatch.setattr(search.requests, "get", fake_get)

    SerpApiProvider("key").search("pizza", 1)

    assert captured["num"] == 3


@pytest.mark.parametrize(
    "response",
    [
        _response(status_code=500),
        _response(invalid_json=True),
        _response({"organic_results": "oops"}),
        _response({"organic_results": []}),
    ],
)
def test_provider_failures_raise_provider_error(monkeypatch, response):
    monkeypatch.setattr(search.requests, "get", lambda *args, **kwargs: response)

    with pytest.raises(SearchProviderError):
        SearchApiProvider("key").search("pizza", 3)


def test_search_falls_back_to_secondary_provider(monkeypatch):
    monkeypatch.setenv("SEARCHAPI_API_KEY", "primary")
    monkeypatch.setenv("SERPAPI_KEY", "secondary")

    def fake_get(url, params=None, headers=None, timeout=None):
        if "searchapi.io" in url:
            return _response(status_code=429)
        return _response({"organic_results": [{"link": "https://serp.com", "title": "Serp"}]})

    monkeypatch.setattr(search.requests, "get", fake_get)

    results = search_top_results("pizza")

    assert [result.url for result in results] == ["https://serp.com"]


def test_search_reraises_when_all_providers_fail(monkeypatch):
    monkeypatch.setenv("SEARCHAPI_API_KEY", "primary")
    monkeypatch.setenv("SERPAPI_KEY", "secondary")
    monkeypatch.setattr(search.requests, "get", lambda *args, **kwargs: _response(status_code=503))

    with pytest.raises(SearchProviderError) as excinfo:
        search_top_results("pizza")

    assert "serpapi" in str(excinfo.value)
