"""Test doubles for external collaborators (search, model, lightning, live clients).

Invariants:
    - Fakes record every call so tests can assert on traffic
    - No fake performs IO
"""

from datetime import datetime, timedelta, timezone

from nostr_oracle.core.domain_types import ExtractionMethod
from nostr_oracle.core.errors import RewardError, SearchError
from nostr_oracle.core.verification_types import Article

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def article(title="", source="Reuters", url=None, description="", age_days=0.5):
    return Article(
        title=title,
        source=source,
        url=url or f"https://example.com/{abs(hash((title, source)))}",
        description=description,
        published_at=NOW - timedelta(days=age_days),
    )


class FakeSearch:
    """Returns canned articles (or raises a SearchError)."""

    def __init__(self, articles=None, error: str | None = None):
        self.articles = list(articles or [])
        self.error = error
        self.queries: list[str] = []

    async def search(self, query):
        self.queries.append(query)
        if self.error:
            raise SearchError(self.error, "network")
        return list(self.articles)


class _TextBlock:
    type = "text"

    def __init__(self, text):
        self.text = text


class _Usage:
    input_tokens = 10
    output_tokens = 5


class FakeMessage:
    def __init__(self, text):
        self.content = [_TextBlock(text)]
        self.usage = _Usage()


class FakeAnthropic:
    """Stands in for ResilientAnthropicClient.create_message."""

    def __init__(self, reply: str | None = None, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def create_message(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return FakeMessage(self.reply)


class FailingLightning:
    mode = "broken"

    async def create_invoice(self, amount_sats, description):
        raise RewardError("node offline")


class FakeConnection:
    """LiveConnection that records frames."""

    def __init__(self, client_id, fail=False):
        self.client_id = client_id
        self.fail = fail
        self.frames: list[tuple[str, dict]] = []

    async def send(self, event, payload):
        if self.fail:
            raise ConnectionError("socket closed")
        self.frames.append((event, payload))

    def events(self):
        return [e for e, _ in self.frames]


class FakePublisher:
    def __init__(self):
        self.events: list[dict] = []

    async def publish(self, event):
        self.events.append(event)
        return 1


class FixedClaims:
    """Extraction strategy returning a preset claim list."""

    def __init__(self, claims, method=None):
        self.claims = list(claims)
        self.method = method or ExtractionMethod.AI

    async def extract(self, text):
        return list(self.claims)


STRONG_CLAIM = "Inflation slowed to three percent in September"
STRONG_OUTLETS = ("Reuters", "Associated Press", "BBC News", "Bloomberg", "NPR")


def strong_coverage(claim=STRONG_CLAIM):
    """Articles that score a general claim at 100."""
    return [article(title=claim, source=s) for s in STRONG_OUTLETS]


def build_oracle(db=None):
    """OracleContext with no provider credentials, no relays and a FakeSearch."""
    from nostr_oracle.config import Settings
    from nostr_oracle.services.context import OracleContext

    settings = Settings(
        _env_file=None, relays="", anthropic_api_key="sk-ant-placeholder", newsapi_key="",
    )
    oracle = OracleContext.build(settings, db)
    oracle.pipeline.scorer.search = FakeSearch()
    return oracle
