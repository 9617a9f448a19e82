"""Scan coordination wire models.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SessionState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    PENDING = "pending"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PollResult(WireModel):
    is_targeted: bool


class IngestResult(WireModel):
    accepted: bool = True
    new_sightings: int = 0


class ScanTicket(WireModel):
    accepted: bool
    target: Optional[str] = None
    window_seconds: float = 0


class ScanSnapshot(WireModel):
    watched_online: list[str] = []
    total_seen: int = 0
    scan_ready: bool = False
    active_agents: list[str] = []
    state: SessionState = SessionState.IDLE
    target: Optional[str] = None


class ObservationBatch(BaseModel):
    players: list[str]


class ScanRequestBody(WireModel):
    target_user: Optional[str] = None
