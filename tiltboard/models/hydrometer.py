"""Hydrometer registration models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from tiltboard.models.parsing import drop_unset, parse_timestamp, pick_float, pick_text
from tiltboard.models.reading import ReadingSnapshot
from tiltboard.models.tilt import TiltColor


@dataclass(slots=True)
class Hydrometer:
    """A registered Tilt device; calibration offsets are applied upstream."""

    id: str
    color: TiltColor
    name: str | None = None
    temp_offset_f: float = 0.0
    gravity_offset: float = 0.0
    created_at: datetime | None = None
    latest_reading: ReadingSnapshot | None = None

    @property
    def display_name(self) -> str:
        return self.name or f"{self.color.value} Tilt"

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Hydrometer":
        latest = payload.get("latestReading")
        return cls(
            id=pick_text(payload.get("id"), required=True, field_name="id"),
            color=TiltColor(payload.get("color")),
            name=pick_text(payload.get("name")),
            temp_offset_f=pick_float(payload.get("tempOffsetF"), default=0.0),
            gravity_offset=pick_float(payload.get("gravityOffset"), default=0.0),
            created_at=parse_timestamp(payload.get("createdAt")),
            latest_reading=ReadingSnapshot.from_payload(latest) if isinstance(latest, dict) else None,
        )


@dataclass(slots=True)
class HydrometerCreate:
    color: TiltColor
    name: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return drop_unset({"color": self.color.value, "name": self.name})


@dataclass(slots=True)
class HydrometerUpdate:
    name: str | None = None
    temp_offset_f: float | None = None
    gravity_offset: float | None = None

    def to_payload(self) -> dict[str, Any]:
        return drop_unset(
            {
                "name": self.name,
                "tempOffsetF": self.temp_offset_f,
                "gravityOffset": self.gravity_offset,
            }
        )
