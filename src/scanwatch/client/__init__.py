"""Requester and agent HTTP clients."""

from .requester import AgentClient, AgentUnauthorized, ClientError, ScanClient, ScanRejected, ScanTimeout

__all__ = [
    "AgentClient",
    "AgentUnauthorized",
    "ClientError",
    "ScanClient",
    "ScanRejected",
    "ScanTimeout",
]
