"""Credential redaction for log lines and error messages."""

from __future__ import annotations

import re
from typing import Optional


def mask_credential(credential: Optional[str]) -> str:
    """Return a log-safe form of an agent credential."""
    if not credential:
        return "<none>"
    if len(credential) <= 8:
        return "****"
    return f"{credential[:4]}****{credential[-2:]}"


def sanitize_error(message: str) -> str:
    """Sanitize error messages to prevent credential leakage."""
    if not message:
        return message

    sanitized = message
    sanitized = re.sub(r"(?i)x-api-key:\s*\S+", "X-API-Key: [REDACTED]", sanitized)
    sanitized = re.sub(r"Bearer\s+\S+", "Bearer [REDACTED]", sanitized)
    sanitized = re.sub(r"Authorization:\s*\S+", "Authorization: [REDACTED]", sanitized)
    sanitized = re.sub(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "[REDACTED_KEY]",
        sanitized,
        flags=re.IGNORECASE,
    )
    return sanitized
