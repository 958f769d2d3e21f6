"""News Search Client — request shape and failure mapping over httpx.MockTransport.

Invariants:
    - API key travels in the X-Api-Key header
    - Timeouts, network errors, 429 and malformed bodies raise SearchError
    - A missing key raises ConfigurationMissingError before any request
"""

import httpx
import pytest

from nostr_oracle.core.errors import ConfigurationMissingError, SearchError
from nostr_oracle.infrastructure.news_search import NewsSearchClient, parse_articles

PAYLOAD = {
    "status": "ok",
    "articles": [
        {
            "title": "ECB raises rates",
            "description": "The ECB raised rates to 4%",
            "url": "https://news.example/ecb",
            "source": {"name": "Reuters"},
            "publishedAt": "2026-10-17T08:00:00Z",
        },
        {"title": "no url", "source": {"name": "X"}},
    ],
}


def _client(handler, api_key="k123"):
    http = httpx.AsyncClient(
        base_url="https://newsapi.example/v2", transport=httpx.MockTransport(handler),
    )
    return NewsSearchClient(api_key, http_client=http, page_size=5)


async def test_search_sends_query_and_parses():
    seen = {}

    def handler(request):
        seen["request"] = request
        return httpx.Response(200, json=PAYLOAD)

    articles = await _client(handler).search("ecb rates")

    request = seen["request"]
    assert request.url.path == "/v2/everything"
    assert request.url.params["q"] == "ecb rates"
    assert request.url.params["pageSize"] == "5"
    assert request.headers["X-Api-Key"] == "k123"
    assert "k123" not in str(request.url)
    assert len(articles) == 1
    assert articles[0].source == "Reuters"
    assert articles[0].published_at.year == 2026


async def test_missing_key_never_calls_out():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(ConfigurationMissingError) as exc:
        await _client(handler, api_key=None).search("anything")
    assert exc.value.setting == "NEWSAPI_KEY"


async def test_rate_limit():
    with pytest.raises(SearchError) as exc:
        await _client(lambda r: httpx.Response(429, json={})).search("q")
    assert exc.value.reason == "quota"


async def test_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(SearchError) as exc:
        await _client(handler).search("q")
    assert exc.value.reason == "timeout"


async def test_network_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(SearchError) as exc:
        await _client(handler).search("q")
    assert exc.value.reason == "network"


async def test_api_error_body():
    body = {"status": "error", "code": "apiKeyInvalid", "message": "bad key"}
    with pytest.raises(SearchError) as exc:
        await _client(lambda r: httpx.Response(401, json=body)).search("q")
    assert exc.value.reason == "apiKeyInvalid"


async def test_non_json_body():
    with pytest.raises(SearchError) as exc:
        await _client(lambda r: httpx.Response(200, text="<html>")).search("q")
    assert exc.value.reason == "malformed"


def test_parse_tolerates_bad_dates():
    payload = {"status": "ok", "articles": [{"url": "https://x", "publishedAt": "yesterday"}]}
    assert parse_articles(payload)[0].published_at is None
