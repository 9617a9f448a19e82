"""YAML-file identity store.

File layout::

    agents:
      - name: SomeAgent
        api_key: 5f0c...
    watched:
      - name: Notch
        added_by: cli

Contact times are kept in memory only.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Callable

import yaml
from pydantic import ValidationError

from ..models.identity import AgentIdentity, WatchedEntity
from .memory import MemoryIdentityStore

logger = logging.getLogger(__name__)


class StoreError(Exception):
    pass


class YamlIdentityStore(MemoryIdentityStore):
    def __init__(self, path: Path, clock: Callable[[], float] = time.time):
        self.path = Path(path)
        agents, watched = self._load()
        super().__init__(agents=agents, watched=watched, clock=clock)
        logger.info(
            "Identity store loaded from %s: %d agents, %d watched",
            self.path,
            len(agents),
            len(watched),
        )

    def _load(self) -> tuple[list[AgentIdentity], list[WatchedEntity]]:
        if not self.path.exists():
            return [], []
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8-sig")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot read identity store {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Identity store {self.path} must be a mapping")

        try:
            agents = [AgentIdentity(**entry) for entry in data.get("agents") or []]
            watched = [WatchedEntity(**entry) for entry in data.get("watched") or []]
        except (TypeError, ValidationError) as e:
            raise StoreError(f"Malformed identity store {self.path}: {e}") from e

        keys = [agent.api_key for agent in agents]
        if len(keys) != len(set(keys)):
            raise StoreError(f"Identity store {self.path} assigns one credential to several agents")
        return agents, watched

    def save(self) -> Path:
        """Write the store atomically (temp file, then replace)."""
        data = {
            "agents": [agent.model_dump(exclude={"last_seen"}) for agent in self.agents()],
            "watched": [entity.model_dump() for entity in self.watched()],
        }
        content = yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(tmp_path, self.path)
        return self.path

    def add_watched(self, name: str, added_by: str = "") -> bool:
        added = super().add_watched(name, added_by)
        if added:
            self.save()
        return added
