"""Brew models aligned to the fermentation API contract."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import enum
from typing import Any

from tiltboard.models.parsing import drop_unset, format_timestamp, parse_timestamp, pick_float, pick_text
from tiltboard.models.reading import ReadingSnapshot


class BrewStatus(str, enum.Enum):
    """Status values must stay compatible with the API enum."""

    ACTIVE = "Active"
    COMPLETED = "Completed"
    ARCHIVED = "Archived"


@dataclass(slots=True)
class Brew:
    """A fermentation batch bound to one hydrometer."""

    id: str
    name: str
    hydrometer_id: str
    status: BrewStatus = BrewStatus.ACTIVE
    style: str | None = None
    og: float | None = None
    fg: float | None = None
    target_fg: float | None = None
    abv: float | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    latest_reading: ReadingSnapshot | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Brew":
        latest = payload.get("latestReading")
        return cls(
            id=pick_text(payload.get("id"), required=True, field_name="id"),
            name=pick_text(payload.get("name"), required=True, field_name="name"),
            hydrometer_id=pick_text(payload.get("hydrometerId"), required=True, field_name="hydrometerId"),
            status=BrewStatus(payload.get("status") or BrewStatus.ACTIVE.value),
            style=pick_text(payload.get("style")),
            og=pick_float(payload.get("og")),
            fg=pick_float(payload.get("fg")),
            target_fg=pick_float(payload.get("targetFg")),
            abv=pick_float(payload.get("abv")),
            start_date=parse_timestamp(payload.get("startDate")),
            end_date=parse_timestamp(payload.get("endDate")),
            notes=pick_text(payload.get("notes")),
            created_at=parse_timestamp(payload.get("createdAt")),
            updated_at=parse_timestamp(payload.get("updatedAt")),
            latest_reading=ReadingSnapshot.from_payload(latest) if isinstance(latest, dict) else None,
        )


@dataclass(slots=True)
class BrewCreate:
    name: str
    hydrometer_id: str
    style: str | None = None
    og: float | None = None
    target_fg: float | None = None
    notes: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return drop_unset(
            {
                "name": self.name,
                "hydrometerId": self.hydrometer_id,
                "style": self.style,
                "og": self.og,
                "targetFg": self.target_fg,
                "notes": self.notes,
            }
        )


@dataclass(slots=True)
class BrewUpdate:
    """Partial update; unset fields are left untouched by the API."""

    name: str | None = None
    style: str | None = None
    og: float | None = None
    fg: float | None = None
    target_fg: float | None = None
    abv: float | None = None
    status: BrewStatus | None = None
    notes: str | None = None
    end_date: datetime | None = None

    def to_payload(self) -> dict[str, Any]:
        return drop_unset(
            {
                "name": self.name,
                "style": self.style,
                "og": self.og,
                "fg": self.fg,
                "targetFg": self.target_fg,
                "abv": self.abv,
                "status": self.status.value if self.status else None,
                "notes": self.notes,
                "endDate": format_timestamp(self.end_date) if self.end_date else None,
            }
        )
