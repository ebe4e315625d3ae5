"""Contract-safe helpers for mapping API JSON payloads into models."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from dateutil import parser as date_parser


def parse_timestamp(raw: Any, *, required: bool = False) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware UTC datetime."""
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str) and raw.strip():
        try:
            parsed = date_parser.isoparse(raw.strip())
        except (TypeError, ValueError):
            if required:
                raise ValueError(f"Invalid timestamp: {raw!r}")
            return None
    else:
        if required:
            raise ValueError("Missing required timestamp")
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    """Serialize an aware datetime the way the API expects it (UTC, `Z` suffix)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def pick_text(value: Any, *, required: bool = False, field_name: str = "field") -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    if required:
        raise ValueError(f"Missing required textual field: {field_name}")
    return None


def pick_float(value: Any, *, default: float | None = None) -> float | None:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    return default


def pick_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def drop_unset(payload: dict[str, Any]) -> dict[str, Any]:
    """Remove keys whose value was never provided."""
    return {key: value for key, value in payload.items() if value is not None}
