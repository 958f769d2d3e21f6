"""Oracle Context — owns every long-lived collaborator and background loop.

Invariants:
    - Exactly one context per running app (built in the FastAPI lifespan)
    - start() launches the admission ticker, the cache maintenance loop and, when
      relays are configured, the relay listener; shutdown() stops all of them and
      closes every client it opened
    - Missing provider credentials degrade to fallbacks, never fail startup
    - A failed cache sweep is logged and never ends the maintenance loop

Design Decisions:
    - Explicit object over module globals: tests build isolated contexts with
      in-memory databases and fake collaborators
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from nostr_oracle.config import Settings
from nostr_oracle.core.admission_gate import AdmissionGate
from nostr_oracle.infrastructure.anthropic_client import ResilientAnthropicClient
from nostr_oracle.infrastructure.database import DatabaseSessionManager
from nostr_oracle.infrastructure.lightning import MockLightningBackend
from nostr_oracle.infrastructure.news_search import NewsSearchClient
from nostr_oracle.infrastructure.nostr_relay import RelayListener
from nostr_oracle.infrastructure.nostr_signer import NostrSigner
from nostr_oracle.services.broadcaster import Broadcaster
from nostr_oracle.services.claim_cache import ClaimCache, DatabaseCacheTier
from nostr_oracle.services.claim_extractor import ClaimExtractor
from nostr_oracle.services.credibility_scorer import CredibilityScorer
from nostr_oracle.services.event_intake import EventIntake
from nostr_oracle.services.result_store import ResultStore
from nostr_oracle.services.reward_trigger import RewardTrigger
from nostr_oracle.services.verification_pipeline import VerificationPipeline

logger = logging.getLogger(__name__)


@dataclass
class OracleContext:
    settings: Settings
    db: DatabaseSessionManager | None
    broadcaster: Broadcaster
    cache: ClaimCache
    store: ResultStore
    reward: RewardTrigger
    pipeline: VerificationPipeline
    intake: EventIntake
    relay: RelayListener | None = None
    anthropic: ResilientAnthropicClient | None = None
    search: NewsSearchClient | None = None
    started_at: float = field(default_factory=time.monotonic)
    _tasks: list[asyncio.Task] = field(default_factory=list)

    @classmethod
    def build(
        cls, settings: Settings, db: DatabaseSessionManager | None = None,
    ) -> "OracleContext":
        timeout = settings.outbound_timeout_seconds
        anthropic = None
        if settings.anthropic_configured:
            anthropic = ResilientAnthropicClient(
                api_key=settings.anthropic_api_key,
                max_retries=settings.anthropic_max_retries,
                base_delay_ms=settings.anthropic_base_delay_ms,
                max_delay_ms=settings.anthropic_max_delay_ms,
                timeout_seconds=timeout,
            )
        search = NewsSearchClient(
            api_key=settings.newsapi_key if settings.newsapi_configured else None,
            base_url=settings.newsapi_base_url,
            page_size=settings.newsapi_page_size,
            timeout_seconds=timeout,
        )
        signer = NostrSigner(settings.nostr_priv_key)
        broadcaster = Broadcaster(
            send_timeout=timeout, preview_chars=settings.raw_event_preview_chars,
        )
        cache = ClaimCache(durable=DatabaseCacheTier(db) if db is not None else None)
        store = ResultStore(db, recent_limit=settings.recent_results_limit)
        reward = RewardTrigger(
            backend=MockLightningBackend(),
            signer=signer,
            address=settings.lightning_address,
            base_amount_sats=settings.zap_amount_sats,
            threshold=settings.zap_threshold,
            relays=settings.relay_urls,
            timeout_seconds=timeout,
        )
        pipeline = VerificationPipeline(
            extractor=ClaimExtractor.from_settings(settings, anthropic),
            scorer=CredibilityScorer(search, timeout_seconds=timeout),
            cache=cache,
            store=store,
            broadcaster=broadcaster,
            reward=reward,
            signer=signer,
        )
        intake = EventIntake(
            pipeline=pipeline,
            broadcaster=broadcaster,
            store=store,
            gate=AdmissionGate(settings.admission_interval_seconds, time.monotonic()),
            poll_seconds=settings.admission_poll_seconds,
        )
        relay = None
        if settings.relay_urls:
            relay = RelayListener(settings.relay_urls, intake.on_event, send_timeout=timeout)
            pipeline.publisher = relay
        return cls(
            settings=settings,
            db=db,
            broadcaster=broadcaster,
            cache=cache,
            store=store,
            reward=reward,
            pipeline=pipeline,
            intake=intake,
            relay=relay,
            anthropic=anthropic,
            search=search,
        )

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    def start(self, listen: bool = True) -> None:
        self._tasks.append(asyncio.create_task(self.intake.run_ticker()))
        self._tasks.append(asyncio.create_task(self._cache_maintenance()))
        if listen and self.relay is not None:
            self.relay.start()
        logger.info(
            f"Oracle started ({len(self.settings.relay_urls)} relays, "
            f"extraction={'ai' if self.anthropic else 'regex'})",
        )

    async def sweep_cache(self) -> int:
        """One maintenance pass; a failed sweep is logged and retried next interval."""
        try:
            return await self.cache.purge_stale(self.settings.cache_max_age_days)
        except Exception as e:
            logger.error(f"Cache sweep failed: {e}", exc_info=True)
            return 0

    async def _cache_maintenance(self) -> None:
        while True:
            await self.sweep_cache()
            await asyncio.sleep(self.settings.cache_cleanup_interval_seconds)

    async def shutdown(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        if self.relay is not None:
            await self.relay.stop()
        await self.intake.drain()
        if self.anthropic is not None:
            await self.anthropic.close()
        if self.search is not None:
            await self.search.close()
        logger.info("Oracle stopped")
