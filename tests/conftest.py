"""Shared fixtures for scanwatch tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from scanwatch.core.coordinator import Coordinator
from scanwatch.models.identity import AgentIdentity, WatchedEntity
from scanwatch.store import MemoryIdentityStore

ALPHA_KEY = "key-alpha-0001"
BETA_KEY = "key-beta-0002"


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.fired = True
        self.callback()


class TimerRecorder:
    """Timer factory that never fires on its own."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, delay, callback) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def live(self) -> list[FakeTimer]:
        return [t for t in self.timers if not (t.cancelled or t.fired)]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> TimerRecorder:
    return TimerRecorder()


@pytest.fixture
def store(clock: FakeClock) -> MemoryIdentityStore:
    return MemoryIdentityStore(
        agents=[
            AgentIdentity(name="AlphaAgent", api_key=ALPHA_KEY),
            AgentIdentity(name="BetaAgent", api_key=BETA_KEY),
        ],
        watched=[
            WatchedEntity(name="Notch", added_by="test"),
            WatchedEntity(name="alice", added_by="test"),
        ],
        clock=clock,
    )


@pytest.fixture
def coordinator(store: MemoryIdentityStore, clock: FakeClock, timers: TimerRecorder) -> Coordinator:
    return Coordinator(
        store,
        window_seconds=15,
        debounce_seconds=3,
        active_within_seconds=30,
        clock=clock,
        timer_factory=timers,
    )


@pytest.fixture
def claiming_coordinator(store: MemoryIdentityStore, clock: FakeClock, timers: TimerRecorder) -> Coordinator:
    """A coordinator that discards unconsumed results after 30 seconds."""
    return Coordinator(
        store,
        window_seconds=15,
        debounce_seconds=3,
        claim_seconds=30,
        active_within_seconds=30,
        clock=clock,
        timer_factory=timers,
    )


@pytest.fixture
def store_file(tmp_path: Path) -> Path:
    """Write a small YAML identity store and return its path."""
    path = tmp_path / "scanwatch-db.yaml"
    path.write_text(
        "agents:\n"
        "  - name: AlphaAgent\n"
        f"    api_key: {ALPHA_KEY}\n"
        "watched:\n"
        "  - name: Notch\n"
        "    added_by: admin\n",
        encoding="utf-8",
    )
    return path
