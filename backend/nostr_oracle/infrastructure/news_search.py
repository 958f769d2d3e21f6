"""News Search Client — NewsAPI `everything` endpoint over httpx.

Invariants:
    - search() returns Articles or raises SearchError, never httpx exceptions
    - Missing API key raises ConfigurationMissingError without a request
    - Every request bounded by the client timeout (uniform outbound timeout)
    - Articles without a URL are skipped; unparseable publish dates become None

Design Decisions:
    - One shared AsyncClient per process (connection reuse), closed by OracleContext
    - API key sent as X-Api-Key header, never in the query string (keeps it out of logs)
    - No retries: the scorer has a deterministic fallback score
"""

import logging
from datetime import datetime

import httpx

from nostr_oracle.core.errors import ConfigurationMissingError, SearchError
from nostr_oracle.core.verification_types import Article

logger = logging.getLogger(__name__)


def _parse_published_at(value) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_articles(payload: dict) -> list[Article]:
    """Map a NewsAPI response body to Articles. Raises SearchError if malformed."""
    if not isinstance(payload, dict):
        raise SearchError("response is not a JSON object", "malformed")
    if payload.get("status") != "ok":
        raise SearchError(
            payload.get("message") or "unknown error",
            payload.get("code") or "api_error",
        )
    raw_articles = payload.get("articles")
    if not isinstance(raw_articles, list):
        raise SearchError("response missing articles list", "malformed")

    articles = []
    for item in raw_articles:
        if not isinstance(item, dict) or not item.get("url"):
            continue
        source = item.get("source") or {}
        articles.append(Article(
            title=item.get("title") or "",
            source=(source.get("name") if isinstance(source, dict) else None) or "",
            url=item["url"],
            description=item.get("description") or "",
            published_at=_parse_published_at(item.get("publishedAt")),
        ))
    return articles


class NewsSearchClient:
    """Async NewsAPI client."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://newsapi.org/v2",
        page_size: int = 5,
        timeout_seconds: float = 8.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.page_size = page_size
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
        )

    async def search(self, query: str) -> list[Article]:
        if not self.api_key:
            raise ConfigurationMissingError("NEWSAPI_KEY")
        try:
            resp = await self._client.get(
                "/everything",
                params={
                    "q": query,
                    "sortBy": "publishedAt",
                    "pageSize": self.page_size,
                    "language": "en",
                },
                headers={"X-Api-Key": self.api_key},
            )
        except httpx.TimeoutException as e:
            raise SearchError(str(e) or "request timed out", "timeout") from e
        except httpx.HTTPError as e:
            raise SearchError(str(e) or type(e).__name__, "network") from e

        if resp.status_code == 429:
            raise SearchError("rate limit exceeded", "quota")
        try:
            payload = resp.json()
        except ValueError as e:
            raise SearchError(f"invalid JSON (status {resp.status_code})", "malformed") from e
        articles = parse_articles(payload)
        logger.debug(f"News search returned {len(articles)} articles for {query!r}")
        return articles

    async def close(self) -> None:
        await self._client.aclose()
