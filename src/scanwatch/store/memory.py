"""In-process identity store."""

from __future__ import annotations

import threading
import time
from typing import Callable, Iterable, Optional

from ..models.identity import AgentIdentity, WatchedEntity


class DuplicateCredential(ValueError):
    pass


class MemoryIdentityStore:
    def __init__(
        self,
        agents: Iterable[AgentIdentity] = (),
        watched: Iterable[WatchedEntity] = (),
        clock: Callable[[], float] = time.time,
    ):
        self._clock = clock
        self._lock = threading.Lock()
        self._agents: dict[str, AgentIdentity] = {}
        self._watched: list[WatchedEntity] = []
        for agent in agents:
            self.add_agent(agent)
        for entity in watched:
            self._add_watched(entity)

    def add_agent(self, agent: AgentIdentity) -> AgentIdentity:
        with self._lock:
            if agent.api_key in self._agents:
                raise DuplicateCredential(f"Credential already assigned to {self._agents[agent.api_key].name}")
            self._agents[agent.api_key] = agent
        return agent

    def agents(self) -> list[AgentIdentity]:
        with self._lock:
            return list(self._agents.values())

    def resolve_credential(self, credential: str) -> Optional[AgentIdentity]:
        with self._lock:
            return self._agents.get(credential)

    def record_contact(self, identity: AgentIdentity) -> None:
        with self._lock:
            identity.last_seen = self._clock()

    def get_contacted_within(self, seconds: float) -> list[str]:
        threshold = self._clock() - seconds
        with self._lock:
            return [
                agent.name
                for agent in self._agents.values()
                if agent.last_seen is not None and agent.last_seen > threshold
            ]

    def get_watched_names(self) -> list[str]:
        with self._lock:
            return [entity.name for entity in self._watched]

    def watched(self) -> list[WatchedEntity]:
        with self._lock:
            return list(self._watched)

    def add_watched(self, name: str, added_by: str = "") -> bool:
        """Add a watched name. Returns False if it is already watched (any case)."""
        return self._add_watched(WatchedEntity(name=name.strip(), added_by=added_by))

    def _add_watched(self, entity: WatchedEntity) -> bool:
        if not entity.name:
            raise ValueError("Watched name must not be empty")
        key = entity.name.casefold()
        with self._lock:
            if any(existing.name.casefold() == key for existing in self._watched):
                return False
            self._watched.append(entity)
        return True
