"""Identity store interface consumed by the coordinator."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ..models.identity import AgentIdentity


@runtime_checkable
class IdentityStore(Protocol):
    """Protocol that all identity stores must implement."""

    def resolve_credential(self, credential: str) -> Optional[AgentIdentity]: ...

    def record_contact(self, identity: AgentIdentity) -> None: ...

    def get_watched_names(self) -> list[str]: ...

    def get_contacted_within(self, seconds: float) -> list[str]: ...
