"""Debug utilities for request/response events.

nela-agi v0.1.0
"""

from __future__ import annotations

import re
from typing import Any, Callable

from .types import BinaryPayload, MultipartField

EventCallback = Callable[[dict[str, Any]], None]

# Headers whose values must never reach debug output
_SECRET_HEADERS = ("auth-key", "authorization")


def sanitize_for_debug(data: Any) -> Any:
    """Sanitize data for debug output, replacing binary payloads and base64 strings with summaries."""
    if isinstance(data, BinaryPayload):
        return f"<{data.content_type}:{len(data.data)} bytes>"
    if isinstance(data, MultipartField):
        return {data.name: sanitize_for_debug(data.value)}
    if isinstance(data, dict):
        return {k: sanitize_for_debug(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [sanitize_for_debug(item) for item in data]
    if isinstance(data, (bytes, bytearray)):
        return f"<binary:{len(data)} bytes>"
    if isinstance(data, str) and len(data) > 100:
        if re.match(r'^[A-Za-z0-9+/=]+$', data[:100]):
            return f"<base64:{len(data)} bytes>"
    return data


def sanitize_headers(headers: dict[str, str]) -> dict[str, str]:
    """Sanitize headers for debug output, masking auth keys."""
    result = {}
    for k, v in headers.items():
        if k.lower() in _SECRET_HEADERS:
            result[k] = "***"
        else:
            result[k] = v
    return result


def mask_token(token: str) -> str:
    """Mask a secret, keeping only the first and last 4 characters."""
    if not token:
        return "(empty)"
    if len(token) <= 8:
        return token[:2] + "***"
    return f"{token[:4]}...{token[-4:]}"
