"""Admission Gate — coalescing, interval-spaced admission of incoming events.

Invariants:
    - At most one admission per `interval_seconds`
    - The first window opens `interval_seconds` after the gate is created
    - Admission takes the most recently enqueued event and discards the rest
      (last-one-wins); the pending queue is empty after every admission
    - No event is admitted twice
    - Pure state machine: the caller supplies `now` (monotonic seconds)

Design Decisions:
    - Backlog is dropped, not processed: only the freshest content matters for live
      scoring, and the pipeline is far slower than the relay firehose
    - enqueue() never admits and offer() = enqueue + poll: callers that must not start
      a run (one already in flight) enqueue only and poll later
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Admission(Generic[T]):
    """The admitted item plus how many older pending items were discarded."""
    item: T
    dropped: int


class AdmissionGate(Generic[T]):
    """Coalescing queue with a minimum spacing between admissions."""

    def __init__(self, interval_seconds: float, started_at: float):
        self.interval_seconds = interval_seconds
        self._pending: list[T] = []
        self._last_admitted_at = started_at

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def last_admitted_at(self) -> float:
        return self._last_admitted_at

    def enqueue(self, item: T) -> None:
        self._pending.append(item)

    def offer(self, item: T, now: float) -> Admission[T] | None:
        """Enqueue, then admit at once if the window is open."""
        self.enqueue(item)
        return self.poll(now)

    def is_open(self, now: float) -> bool:
        return now - self._last_admitted_at >= self.interval_seconds

    def poll(self, now: float) -> Admission[T] | None:
        """Admit the newest pending item if the interval has elapsed."""
        if not self._pending or not self.is_open(now):
            return None
        item = self._pending[-1]
        dropped = len(self._pending) - 1
        self._pending.clear()
        self._last_admitted_at = now
        return Admission(item=item, dropped=dropped)
