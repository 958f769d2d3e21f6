"""Event Intake — preview/archive of every note, coalesced admission, one run at a time.

Invariants:
    - Five notes inside one window → one run, for the newest note
    - While a run is in flight nothing is admitted and the window does not reset
    - Pipeline failures never escape the intake
"""

import asyncio

from sqlalchemy import func, select

from nostr_oracle.core.admission_gate import AdmissionGate
from nostr_oracle.core.verification_types import IncomingEvent
from nostr_oracle.models.nostr_event import NostrEvent
from nostr_oracle.services.event_intake import EventIntake


class RecordingPipeline:
    def __init__(self, gate: asyncio.Event | None = None, fail: bool = False):
        self.calls: list[tuple] = []
        self.release = gate
        self.fail = fail

    async def verify(self, content, event_id=None, author_pubkey=None):
        self.calls.append((content, event_id, author_pubkey))
        if self.release is not None:
            await self.release.wait()
        if self.fail:
            raise RuntimeError("pipeline exploded")


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _note(i):
    return IncomingEvent(id=f"ev{i}", pubkey=f"pk{i}", content=f"note {i}", kind=1, created_at=i)


def _intake(pipeline, broadcaster, store, clock):
    return EventIntake(
        pipeline=pipeline,
        broadcaster=broadcaster,
        store=store,
        gate=AdmissionGate(30, started_at=0),
        clock=clock,
        poll_seconds=10,
    )


async def test_burst_admits_only_newest(broadcaster, store, subscriber):
    pipeline, clock = RecordingPipeline(), Clock()
    intake = _intake(pipeline, broadcaster, store, clock)

    for i in range(5):
        assert await intake.on_event(_note(i)) is None

    clock.now = 30
    task = intake.tick()
    await task

    assert pipeline.calls == [("note 4", "ev4", "pk4")]
    assert intake.gate.pending_count == 0
    assert subscriber.events().count("nostr_event") == 5


async def test_every_note_archived(db_manager, broadcaster, store):
    intake = _intake(RecordingPipeline(), broadcaster, store, Clock())
    for i in range(3):
        await intake.on_event(_note(i))
    async with db_manager.session() as session:
        count = await session.scalar(select(func.count()).select_from(NostrEvent))
    assert count == 3


async def test_on_event_admits_when_window_open(broadcaster, store):
    pipeline, clock = RecordingPipeline(), Clock()
    intake = _intake(pipeline, broadcaster, store, clock)
    clock.now = 31
    task = await intake.on_event(_note(1))
    await task
    assert pipeline.calls == [("note 1", "ev1", "pk1")]


async def test_no_overlap_while_run_in_flight(broadcaster, store):
    release = asyncio.Event()
    pipeline, clock = RecordingPipeline(release), Clock()
    intake = _intake(pipeline, broadcaster, store, clock)

    clock.now = 30
    first = await intake.on_event(_note(0))
    await asyncio.sleep(0)
    assert intake.busy

    clock.now = 100
    assert await intake.on_event(_note(1)) is None
    assert await intake.on_event(_note(2)) is None
    assert intake.tick() is None
    assert intake.gate.pending_count == 2
    assert intake.gate.last_admitted_at == 30

    release.set()
    await first
    second = intake.tick()
    await second

    assert [c[1] for c in pipeline.calls] == ["ev0", "ev2"]


async def test_pipeline_failure_is_contained(broadcaster, store):
    pipeline, clock = RecordingPipeline(fail=True), Clock()
    intake = _intake(pipeline, broadcaster, store, clock)
    clock.now = 30
    task = await intake.on_event(_note(0))
    await task
    assert task.exception() is None
    assert not intake.busy
