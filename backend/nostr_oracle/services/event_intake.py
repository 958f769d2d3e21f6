"""Event Intake — relay notes → live preview, archive, admission gate → pipeline.

Invariants:
    - Every incoming note is previewed on nostr_events and archived, admitted or not
    - At most one pipeline run in flight; while it runs the gate is not polled, so
      newer notes keep coalescing and the admission timestamp stays put
    - Pipeline failures are logged and never stop intake

Design Decisions:
    - The gate is polled inline on arrival and by run_ticker() every poll_seconds,
      so a quiet stream still drains its last pending note
    - Monotonic clock for the gate (immune to wall-clock jumps)
"""

import asyncio
import logging
import time
from typing import Callable

from nostr_oracle.core.admission_gate import AdmissionGate
from nostr_oracle.core.verification_types import IncomingEvent
from nostr_oracle.services.broadcaster import Broadcaster
from nostr_oracle.services.result_store import ResultStore
from nostr_oracle.services.verification_pipeline import VerificationPipeline

logger = logging.getLogger(__name__)


class EventIntake:
    """Rate-limited bridge from the relay stream to the pipeline."""

    def __init__(
        self,
        pipeline: VerificationPipeline,
        broadcaster: Broadcaster,
        store: ResultStore,
        gate: AdmissionGate[IncomingEvent],
        clock: Callable[[], float] = time.monotonic,
        poll_seconds: float = 10.0,
    ):
        self.pipeline = pipeline
        self.broadcaster = broadcaster
        self.store = store
        self.gate = gate
        self.clock = clock
        self.poll_seconds = poll_seconds
        self._current: asyncio.Task | None = None

    @property
    def busy(self) -> bool:
        return self._current is not None and not self._current.done()

    async def on_event(self, event: IncomingEvent) -> asyncio.Task | None:
        await self.broadcaster.publish_nostr_event(event)
        await self.store.save_event(event)
        if self.busy:
            self.gate.enqueue(event)
            return None
        return self._start(self.gate.offer(event, self.clock()))

    def tick(self) -> asyncio.Task | None:
        """Admit the newest pending note if allowed; returns the started run."""
        if self.busy:
            return None
        return self._start(self.gate.poll(self.clock()))

    def _start(self, admission) -> asyncio.Task | None:
        if admission is None:
            return None
        if admission.dropped:
            logger.info(
                f"Coalesced {admission.dropped} pending events",
                extra={"dropped": admission.dropped, "event_id": admission.item.id},
            )
        self._current = asyncio.create_task(self._run(admission.item))
        return self._current

    async def _run(self, event: IncomingEvent) -> None:
        try:
            await self.pipeline.verify(event.content, event_id=event.id, author_pubkey=event.pubkey)
        except Exception as e:
            logger.error(
                f"Pipeline run failed: {e}", extra={"event_id": event.id}, exc_info=True,
            )

    async def run_ticker(self) -> None:
        while True:
            await asyncio.sleep(self.poll_seconds)
            self.tick()

    async def drain(self) -> None:
        """Wait for the in-flight run (shutdown, tests)."""
        if self._current is not None:
            await asyncio.gather(self._current, return_exceptions=True)
