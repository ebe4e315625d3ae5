"""Chart and table shaping for reading collections."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import enum
from math import ceil
from typing import Callable, Iterable, Sequence
from zoneinfo import ZoneInfo

from tiltboard.config.settings import settings
from tiltboard.models.reading import Reading
from tiltboard.services.readings.windows import TimeRange

DEFAULT_PAGE_SIZE = 25


class SeriesKey(str, enum.Enum):
    """Which identity a chart groups readings by."""

    BREW = "brew"
    HYDROMETER = "hydrometer"
    COLOR = "color"


def series_key(reading: Reading, by: SeriesKey = SeriesKey.BREW) -> str:
    """Brew id if present, else hydrometer id, else color label."""
    if by == SeriesKey.BREW and reading.brew_id:
        return reading.brew_id
    if by in (SeriesKey.BREW, SeriesKey.HYDROMETER) and reading.hydrometer_id:
        return reading.hydrometer_id
    return reading.color


@dataclass(slots=True)
class TimeBucket:
    """All series values recorded at one exact timestamp."""

    time: str
    timestamp: int
    values: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {"time": self.time, "timestamp": self.timestamp, **self.values}


@dataclass(frozen=True, slots=True)
class SeriesPoint:
    time: str
    timestamp: int
    gravity: float
    temperature: float


@dataclass(frozen=True, slots=True)
class ReadingsPage:
    rows: list[Reading]
    page: int
    page_size: int
    total_pages: int
    total_count: int

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages - 1


def sort_readings(readings: Iterable[Reading], *, descending: bool = False) -> list[Reading]:
    """Order by timestamp; equal timestamps fall back to reading id, then input position."""
    indexed = list(enumerate(readings))
    indexed.sort(key=lambda item: (item[1].recorded_at, item[1].id, item[0]), reverse=descending)
    return [reading for _, reading in indexed]


def format_time_label(moment: datetime, time_range: TimeRange | str = TimeRange.LAST_24H, *, tz: str | None = None) -> str:
    """`HH:MM` for the 24h range, `Mon D HH:MM` for longer ranges."""
    local = moment.astimezone(ZoneInfo(tz or getattr(settings, "DISPLAY_TIMEZONE", "UTC")))
    if TimeRange.parse(time_range) == TimeRange.LAST_24H:
        return local.strftime("%H:%M")
    return f"{local:%b} {local.day} {local:%H:%M}"


def aggregate_by_time(
    readings: Iterable[Reading],
    *,
    key: SeriesKey | Callable[[Reading], str] = SeriesKey.BREW,
    value: Callable[[Reading], float] = lambda reading: reading.gravity,
    time_range: TimeRange | str = TimeRange.LAST_24H,
    tz: str | None = None,
) -> list[TimeBucket]:
    """Group readings into exact-timestamp buckets for multi-series charts.

    No merging window is applied: readings a millisecond apart land in
    separate buckets. A later reading for the same series and timestamp
    overwrites the earlier value.
    """
    key_fn = key if callable(key) else (lambda r: series_key(r, SeriesKey(key)))

    buckets: dict[int, TimeBucket] = {}
    for reading in readings:
        stamp = reading.timestamp_ms
        bucket = buckets.get(stamp)
        if bucket is None:
            bucket = TimeBucket(time=format_time_label(reading.recorded_at, time_range, tz=tz), timestamp=stamp)
            buckets[stamp] = bucket
        bucket.values[key_fn(reading)] = value(reading)

    return [buckets[stamp] for stamp in sorted(buckets)]


def series_keys(readings: Iterable[Reading], *, key: SeriesKey | Callable[[Reading], str] = SeriesKey.BREW) -> list[str]:
    """Distinct series keys in first-seen order."""
    key_fn = key if callable(key) else (lambda r: series_key(r, SeriesKey(key)))
    seen: dict[str, None] = {}
    for reading in readings:
        seen.setdefault(key_fn(reading), None)
    return list(seen)


def single_series(
    readings: Iterable[Reading],
    *,
    time_range: TimeRange | str = TimeRange.LAST_7D,
    tz: str | None = None,
) -> list[SeriesPoint]:
    return [
        SeriesPoint(
            time=format_time_label(reading.recorded_at, time_range, tz=tz),
            timestamp=reading.timestamp_ms,
            gravity=reading.gravity,
            temperature=reading.temperature_f,
        )
        for reading in sort_readings(readings)
    ]


def paginate(readings: Sequence[Reading], page: int = 0, *, page_size: int | None = None) -> ReadingsPage:
    """Slice the newest-first reading list into fixed-size pages.

    `page` is zero-based and clamped into the valid range.
    """
    size = max(int(page_size or getattr(settings, "READINGS_PAGE_SIZE", DEFAULT_PAGE_SIZE)), 1)
    ordered = sort_readings(readings, descending=True)
    total_pages = max(1, ceil(len(ordered) / size))
    current = max(0, min(page, total_pages - 1))
    start = current * size
    return ReadingsPage(
        rows=ordered[start:start + size],
        page=current,
        page_size=size,
        total_pages=total_pages,
        total_count=len(ordered),
    )
