"""Identity store data models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class AgentIdentity(BaseModel):
    name: str
    api_key: str
    last_seen: Optional[float] = None


class WatchedEntity(BaseModel):
    name: str
    added_by: str = ""
