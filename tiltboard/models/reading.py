"""Hydrometer reading models mapped from the fermentation API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from tiltboard.models.parsing import (
    drop_unset,
    format_timestamp,
    parse_timestamp,
    pick_float,
    pick_int,
    pick_text,
)
from tiltboard.models.tilt import TiltColor

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class ReadingSnapshot:
    """Latest reading embedded in brew and hydrometer payloads."""

    color: str
    temperature_f: float
    gravity: float
    recorded_at: datetime
    rssi: int | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ReadingSnapshot":
        return cls(
            color=pick_text(payload.get("color")) or "",
            temperature_f=_required_float(payload, "temperatureF"),
            gravity=_required_float(payload, "gravity"),
            recorded_at=parse_timestamp(payload.get("recordedAt"), required=True),
            rssi=pick_int(payload.get("rssi")),
        )


@dataclass(frozen=True, slots=True)
class Reading:
    """A single immutable gravity/temperature measurement."""

    id: str
    hydrometer_id: str
    recorded_at: datetime
    gravity: float
    temperature_f: float
    color: str
    brew_id: str | None = None
    rssi: int | None = None
    created_at: datetime | None = None

    @property
    def tilt_color(self) -> TiltColor | None:
        return TiltColor.parse(self.color)

    @property
    def timestamp_ms(self) -> int:
        return (self.recorded_at - _EPOCH) // timedelta(milliseconds=1)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Reading":
        return cls(
            id=pick_text(payload.get("id"), required=True, field_name="id"),
            hydrometer_id=pick_text(payload.get("hydrometerId"), required=True, field_name="hydrometerId"),
            brew_id=pick_text(payload.get("brewId")),
            recorded_at=parse_timestamp(payload.get("recordedAt"), required=True),
            gravity=_required_float(payload, "gravity"),
            temperature_f=_required_float(payload, "temperatureF"),
            color=pick_text(payload.get("color")) or "",
            rssi=pick_int(payload.get("rssi")),
            created_at=parse_timestamp(payload.get("createdAt")),
        )


@dataclass(frozen=True, slots=True)
class ReadingsQuery:
    """Filter parameters accepted by `GET /readings`."""

    brew_id: str | None = None
    hydrometer_id: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    limit: int | None = None

    def to_params(self) -> dict[str, Any]:
        return drop_unset(
            {
                "brew_id": self.brew_id,
                "hydrometer_id": self.hydrometer_id,
                "since": format_timestamp(self.since) if self.since else None,
                "until": format_timestamp(self.until) if self.until else None,
                "limit": self.limit if self.limit else None,
            }
        )


def _required_float(payload: dict[str, Any], key: str) -> float:
    value = pick_float(payload.get(key))
    if value is None:
        raise ValueError(f"Missing required numeric field: {key}")
    return value
