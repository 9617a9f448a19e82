"""Scan session state machine.

IDLE -> COLLECTING on open. When the window deadline passes, a session that
gathered sightings moves to PENDING and holds its result until a consuming
read; one that gathered nothing drops straight back to IDLE. With a claim
window configured, a PENDING result that is not consumed in time is
discarded. ``reset`` returns any state to IDLE.

The session is not thread-safe; the coordinator serializes access to it.
"""

from __future__ import annotations

from typing import Optional

from ..models.scan import SessionState
from .sightings import SightingSet


class ScanSession:
    def __init__(self, max_sightings: Optional[int] = None) -> None:
        self.state = SessionState.IDLE
        self.target: Optional[str] = None
        self.deadline: Optional[float] = None
        self.generation = 0
        self.sightings = SightingSet(limit=max_sightings)

    @property
    def active(self) -> bool:
        return self.state is SessionState.COLLECTING

    @property
    def locked(self) -> bool:
        return self.state is not SessionState.IDLE

    @property
    def ready(self) -> bool:
        if self.state is SessionState.PENDING:
            return True
        return self.state is SessionState.COLLECTING and len(self.sightings) > 0

    def is_due(self, now: float) -> bool:
        return self.deadline is not None and now >= self.deadline

    def is_targeted(self, agent_name: Optional[str]) -> bool:
        if not self.active:
            return False
        if self.target is None:
            return True
        return bool(agent_name) and agent_name.strip().casefold() == self.target.casefold()

    def open(self, target: Optional[str], now: float, window: float) -> int:
        """Start a collection window. Returns the new generation number."""
        self.generation += 1
        self.state = SessionState.COLLECTING
        self.target = target
        self.deadline = now + window
        self.sightings.clear()
        return self.generation

    def expire(self, claim_window: Optional[float] = None) -> SessionState:
        """Apply the deadline transition and return the resulting state.

        The claim deadline counts from the collection deadline, not from when
        expiry is observed. Without a claim window PENDING has no deadline.
        """
        if self.state is SessionState.COLLECTING:
            if len(self.sightings) > 0:
                self.state = SessionState.PENDING
                self.deadline = None if claim_window is None else self.deadline + claim_window
            else:
                self.reset()
        elif self.state is SessionState.PENDING:
            self.reset()
        return self.state

    def reset(self) -> None:
        self.state = SessionState.IDLE
        self.target = None
        self.deadline = None
        self.sightings.clear()
