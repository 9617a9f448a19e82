"""HTTP clients for the requester and for agents.

The requester side owns the wait loop: the coordinator never blocks for a
scan window, so ``run_scan`` peeks at a fixed interval until the result is
ready or its own deadline passes.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

import httpx

from ..models.scan import PollResult, ScanSnapshot, ScanTicket, SessionState
from ..utils.sanitize import sanitize_error


class ClientError(Exception):
    pass


class ScanRejected(ClientError):
    """The coordinator refused the scan (locked or throttled)."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class ScanTimeout(ClientError):
    pass


class AgentUnauthorized(ClientError):
    pass


def _error_message(response: httpx.Response) -> str:
    try:
        return str(response.json().get("error") or response.text)
    except ValueError:
        return response.text


class ScanClient:
    def __init__(
        self,
        base_url: str,
        poll_interval: float = 2,
        timeout: float = 30,
        request_timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.request_timeout = request_timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.request_timeout,
            transport=self.transport,
        )

    async def request_scan(self, target: Optional[str] = None) -> ScanTicket:
        body = {"targetUser": target} if target else {}
        async with self._client() as client:
            response = await client.post("/scan-request", json=body)
        if response.status_code in (409, 429):
            raise ScanRejected(_error_message(response), response.status_code)
        response.raise_for_status()
        return ScanTicket.model_validate(response.json())

    async def fetch_results(self, peek: bool = False) -> ScanSnapshot:
        params = {"peek": "1"} if peek else None
        async with self._client() as client:
            response = await client.get("/scan-results", params=params)
        response.raise_for_status()
        return ScanSnapshot.model_validate(response.json())

    async def wait_for_results(self) -> ScanSnapshot:
        """Peek until the scan is ready, then consume it.

        A consuming read that comes back not ready means the result went away
        between the two reads; the loop carries on and reports it from the
        next peek.
        """
        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            snapshot = await self.fetch_results(peek=True)
            if snapshot.scan_ready:
                consumed = await self.fetch_results(peek=False)
                if consumed.scan_ready:
                    return consumed
                continue
            if snapshot.state is SessionState.IDLE:
                raise ScanTimeout("Scan window closed without a result")
            await asyncio.sleep(self.poll_interval)
        raise ScanTimeout(f"Scan timeout after {self.timeout}s")

    async def run_scan(self, target: Optional[str] = None) -> ScanSnapshot:
        try:
            await self.request_scan(target)
            return await self.wait_for_results()
        except httpx.HTTPError as e:
            raise ClientError(sanitize_error(str(e))) from e


class AgentClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        request_timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.request_timeout = request_timeout
        self.transport = transport

    async def _post(self, path: str, body: dict) -> dict:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.request_timeout,
            transport=self.transport,
            headers={"X-API-Key": self.api_key},
        ) as client:
            response = await client.post(path, json=body)
        if response.status_code in (401, 403):
            raise AgentUnauthorized(_error_message(response))
        response.raise_for_status()
        return response.json()

    async def heartbeat(self, username: Optional[str] = None) -> bool:
        """Return True when the coordinator wants this agent to collect."""
        body = {"username": username} if username else {}
        data = await self._post("/heartbeat", body)
        return PollResult.model_validate(data).is_targeted

    async def submit(self, players: list[str]) -> dict:
        return await self._post("/tablist", {"players": players})
