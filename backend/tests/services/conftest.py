"""Service test fixtures — pipeline stages wired over in-memory SQLite.

Invariants:
    - Stages are real; only search, model and payment collaborators are faked
    - Clocks are fixed (NOW) so scores and timestamps are deterministic
"""

import pytest

from fakes import NOW, FakeConnection, FakePublisher, FakeSearch, FixedClaims

from nostr_oracle.core.domain_types import Topic
from nostr_oracle.infrastructure.lightning import MockLightningBackend
from nostr_oracle.infrastructure.nostr_signer import NostrSigner
from nostr_oracle.services.broadcaster import Broadcaster
from nostr_oracle.services.claim_cache import ClaimCache, DatabaseCacheTier
from nostr_oracle.services.claim_extractor import ClaimExtractor, PatternClaimStrategy
from nostr_oracle.services.credibility_scorer import CredibilityScorer
from nostr_oracle.services.result_store import ResultStore
from nostr_oracle.services.reward_trigger import RewardTrigger
from nostr_oracle.services.verification_pipeline import VerificationPipeline

TEST_SECRET = "11" * 32


@pytest.fixture
def signer():
    return NostrSigner(TEST_SECRET)


@pytest.fixture
def broadcaster():
    return Broadcaster(send_timeout=1.0, clock=lambda: NOW)


@pytest.fixture
def store(db_manager):
    return ResultStore(db_manager, recent_limit=20)


@pytest.fixture
def cache(db_manager):
    return ClaimCache(durable=DatabaseCacheTier(db_manager))


@pytest.fixture
def reward(signer):
    return RewardTrigger(
        backend=MockLightningBackend(),
        signer=signer,
        address="oracle@example.com",
        base_amount_sats=1000,
        threshold=80,
        relays=["wss://relay.example"],
        timeout_seconds=1.0,
        clock=lambda: 1_700_000_000,
    )


@pytest.fixture
def search():
    return FakeSearch()


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def make_pipeline(search, cache, store, broadcaster, reward, signer, publisher):
    """Factory: pipeline with fixed claims (or pattern extraction when claims is None)."""

    def _make(claims=None):
        strategy = PatternClaimStrategy() if claims is None else FixedClaims(claims)
        return VerificationPipeline(
            extractor=ClaimExtractor([strategy]),
            scorer=CredibilityScorer(search, timeout_seconds=1.0, clock=lambda: NOW),
            cache=cache,
            store=store,
            broadcaster=broadcaster,
            reward=reward,
            signer=signer,
            publisher=publisher,
            clock=lambda: NOW,
        )

    return _make


@pytest.fixture
async def subscriber(broadcaster):
    """Live connection subscribed to every topic."""
    conn = FakeConnection("watcher")
    await broadcaster.connect(conn)
    broadcaster.subscribe(conn.client_id, [t.value for t in Topic])
    return conn


@pytest.fixture
async def broken_db():
    """Session manager over a database with no tables: every query fails."""
    from sqlalchemy.ext.asyncio import create_async_engine
    from nostr_oracle.infrastructure.database import DatabaseSessionManager

    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    yield DatabaseSessionManager.from_engine(engine)
    await engine.dispose()
