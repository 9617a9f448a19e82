"""Coordinator error taxonomy.

Every error carries the HTTP status the API layer answers with.
"""

from __future__ import annotations


class CoordinatorError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(CoordinatorError):
    """Credential missing (401) or not resolvable to an agent (403)."""

    def __init__(self, message: str, missing: bool = False):
        super().__init__(message)
        self.missing = missing
        self.status_code = 401 if missing else 403


class InvalidPayload(CoordinatorError):
    status_code = 400


class Conflict(CoordinatorError):
    """A scan request was refused; the caller should back off and retry later."""

    status_code = 409


class ScanLocked(Conflict):
    status_code = 409


class ScanThrottled(Conflict):
    status_code = 429
