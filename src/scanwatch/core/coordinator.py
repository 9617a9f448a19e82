"""Scan coordinator: the operations agents and the requester call.

Agents cannot be pushed to, so they poll ``poll_for_work`` and upload names
with ``ingest_observations``. The requester opens a window with
``request_scan`` and polls ``read_results`` until ``scanReady``.

All state lives in one ``ScanSession`` behind one lock. The close timer takes
the same lock and runs the same deadline routine that every operation runs
first against the clock, so reads never observe a half-closed window.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from typing import Any, Callable, Optional

from pydantic import ValidationError

from ..models.identity import AgentIdentity
from ..models.scan import (
    IngestResult,
    ObservationBatch,
    PollResult,
    ScanSnapshot,
    ScanTicket,
    SessionState,
)
from ..store.base import IdentityStore
from ..utils.sanitize import mask_credential
from .aggregator import aggregate
from .errors import InvalidPayload, ScanLocked, ScanThrottled, Unauthorized
from .session import ScanSession

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], Any]


def start_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class Coordinator:
    def __init__(
        self,
        store: IdentityStore,
        window_seconds: float = 15,
        debounce_seconds: float = 3,
        claim_seconds: Optional[float] = None,
        max_sightings: Optional[int] = 10000,
        active_within_seconds: float = 30,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: TimerFactory = start_timer,
    ):
        self.store = store
        self.window_seconds = window_seconds
        self.debounce_seconds = debounce_seconds
        self.claim_seconds = claim_seconds
        self.active_within_seconds = active_within_seconds
        self._clock = clock
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._session = ScanSession(max_sightings=max_sightings)
        self._timer: Any = None
        self._timer_token: Optional[object] = None
        self._last_request_at: Optional[float] = None

    @property
    def session(self) -> ScanSession:
        return self._session

    # -- agent-facing ---------------------------------------------------

    def poll_for_work(self, credential: Optional[str], agent_name: Optional[str] = None) -> PollResult:
        """Tell a polling agent whether it should collect right now."""
        with self._lock:
            identity = self._authenticate(credential, "heartbeat")
            self._advance(self._clock())
            name = agent_name or identity.name
            return PollResult(is_targeted=self._session.is_targeted(name))

    def ingest_observations(self, credential: Optional[str], players: object) -> IngestResult:
        """Merge names reported by an agent into the sighting set.

        Accepted in any session state; a new window clears the set when it
        opens. Once the set holds ``max_sightings`` entries, new spellings are
        ignored until it is cleared.
        """
        with self._lock:
            identity = self._authenticate(credential, "tablist")
            try:
                batch = ObservationBatch.model_validate({"players": players})
            except ValidationError as e:
                logger.warning("Invalid players payload from %s: %s", identity.name, type(players).__name__)
                raise InvalidPayload("players must be a list of names") from e

            self._advance(self._clock())
            sightings = self._session.sightings
            added = sightings.add(batch.players)
            logger.info(
                "Received %d names (%d new) from %s",
                len(batch.players),
                added,
                identity.name,
            )
            if sightings.full:
                logger.warning("Sighting set is full (%d names); ignoring new names", sightings.limit)
            return IngestResult(accepted=True, new_sightings=added)

    # -- requester-facing -----------------------------------------------

    def request_scan(self, target: Optional[str] = None) -> ScanTicket:
        """Open a collection window, optionally restricted to one agent."""
        with self._lock:
            now = self._clock()
            self._advance(now)
            session = self._session

            if session.locked:
                logger.warning("Scan request rejected: session %s is locked", session.generation)
                raise ScanLocked("Scan already in progress. Please wait.")
            if (
                self._last_request_at is not None
                and now - self._last_request_at < self.debounce_seconds
            ):
                logger.warning("Scan request rejected: throttled")
                raise ScanThrottled("Scans requested too often. Please wait.")

            self._last_request_at = now
            target = target.strip() if target else None
            session.open(target or None, now, self.window_seconds)
            self._schedule()

            logger.info(
                "Scan %d opened for %.0fs. Target: %s",
                session.generation,
                self.window_seconds,
                session.target or "ALL AGENTS",
            )
            return ScanTicket(
                accepted=True,
                target=session.target,
                window_seconds=self.window_seconds,
            )

    def read_results(self, peek: bool = False) -> ScanSnapshot:
        """Aggregate the current sightings.

        A consuming read of a ready result resets the session after the
        snapshot is built; a read that is not ready leaves everything as is.
        """
        with self._lock:
            self._advance(self._clock())
            snapshot = self._snapshot()

            if not peek and snapshot.scan_ready:
                logger.info(
                    "Scan %d consumed - Scanned: %d, Matched: %d",
                    self._session.generation,
                    snapshot.total_seen,
                    len(snapshot.watched_online),
                )
                self._session.reset()
                self._schedule()
            return snapshot

    def shutdown(self) -> None:
        with self._lock:
            self._cancel_timer()

    # -- internals --------------------------------------------------------

    def _authenticate(self, credential: Optional[str], operation: str) -> AgentIdentity:
        if not credential:
            logger.warning("%s rejected: missing API key", operation)
            raise Unauthorized("Missing API Key", missing=True)

        identity = self.store.resolve_credential(credential)
        if identity is None:
            logger.warning("%s rejected: unknown API key %s", operation, mask_credential(credential))
            raise Unauthorized("Invalid API Key")

        self.store.record_contact(identity)
        return identity

    def _snapshot(self) -> ScanSnapshot:
        session = self._session
        watched = self.store.get_watched_names()
        online = aggregate(session.sightings, watched)
        logger.debug(
            "Scan results - Scanned: %d (%d distinct), Watched: %d, Matched: %d",
            len(session.sightings),
            session.sightings.distinct_count(),
            len(watched),
            len(online),
        )
        return ScanSnapshot(
            watched_online=online,
            total_seen=len(session.sightings),
            scan_ready=session.ready,
            active_agents=self.store.get_contacted_within(self.active_within_seconds),
            state=session.state,
            target=session.target,
        )

    def _advance(self, now: float) -> None:
        """Apply every deadline transition that is due at ``now``."""
        session = self._session
        changed = False
        while session.is_due(now):
            before = session.state
            after = session.expire(self.claim_seconds)
            changed = True
            if before is SessionState.COLLECTING and after is SessionState.PENDING:
                logger.info(
                    "Scan %d window closed with %d sightings; awaiting consumption",
                    session.generation,
                    len(session.sightings),
                )
            elif before is SessionState.COLLECTING:
                logger.info("Scan %d window closed with no sightings", session.generation)
            else:
                logger.warning("Scan %d result was never consumed; discarded", session.generation)
        if changed:
            self._schedule()

    def _schedule(self) -> None:
        """(Re)arm the timer for the session deadline, cancelling any previous one."""
        self._cancel_timer()
        deadline = self._session.deadline
        if deadline is None:
            return
        delay = max(0.0, deadline - self._clock())
        token = object()
        self._timer_token = token
        self._timer = self._timer_factory(delay, functools.partial(self._on_timer, token))

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._timer_token = None

    def _on_timer(self, token: object) -> None:
        with self._lock:
            if token is not self._timer_token:
                return
            self._timer = None
            self._timer_token = None
            self._advance(self._clock())
            if self._timer_token is None and self._session.deadline is not None:
                # Fired early relative to the clock; try again at the deadline.
                self._schedule()


def build_coordinator(config: dict, store: IdentityStore, **kwargs: Any) -> Coordinator:
    """Create a coordinator from an effective config dict."""
    scan = config.get("scan", {})
    agents = config.get("agents", {})
    return Coordinator(
        store,
        window_seconds=scan.get("window_seconds", 15),
        debounce_seconds=scan.get("debounce_seconds", 3),
        claim_seconds=scan.get("claim_seconds"),
        max_sightings=scan.get("max_sightings", 10000),
        active_within_seconds=agents.get("active_within_seconds", 30),
        **kwargs,
    )
