"""Helpers for turning HTTP error responses into short log-friendly text."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import requests

LOGGER = logging.getLogger(__name__)

__all__ = ["extract_error", "is_success"]


def is_success(status: int) -> bool:
    return 200 <= status < 300


def extract_error(resp: Optional[requests.Response]) -> Optional[str]:
    """Return a compact error string (``error``/``detail``/``message``) if present."""

    if resp is None:
        return None
    data = _safe_json(resp)
    if isinstance(data, dict):
        parts = _collect_error_parts(data)
        if parts:
            return " | ".join(parts)
    return _extract_error_text(resp)


def _safe_json(resp: requests.Response) -> Optional[Any]:
    try:
        return resp.json()
    except (ValueError, requests.exceptions.JSONDecodeError) as exc:
        LOGGER.debug(
            "Failed to decode JSON from %s: %s", getattr(resp, "url", "?"), exc
        )
        return None


def _extract_error_text(resp: requests.Response) -> Optional[str]:
    """Best-effort plain-text extraction when JSON parsing fails."""

    text = getattr(resp, "text", "")
    if not isinstance(text, str):
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    return (trimmed[:297] + "...") if len(trimmed) > 300 else trimmed


def _collect_error_parts(data: dict) -> List[str]:
    parts: List[str] = []
    for key in ("error", "detail", "message"):
        value = data.get(key)
        if value:
            parts.append(str(value))
    return parts
