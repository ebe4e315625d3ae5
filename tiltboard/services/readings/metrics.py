"""Fermentation metrics derived from a brew's reading history.

Everything here is recomputed from the current reading snapshot on every
call. `time_since_last_reading` depends on the wall clock, so callers pass
`now` explicitly (or let it default to the current time) instead of
storing the result.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import enum
import math
from typing import Callable, Sequence

from dateutil.relativedelta import relativedelta

from tiltboard.config.settings import settings
from tiltboard.models.reading import Reading
from tiltboard.services.readings.aggregator import sort_readings

# Standard homebrew approximation: ABV = (OG - FG) * 131.25
ABV_FACTOR = 131.25
DEFAULT_TREND_THRESHOLD_F = 0.5
TREND_SAMPLE_SIZE = 3


class TemperatureTrend(str, enum.Enum):
    UP = "up"
    DOWN = "down"
    STEADY = "steady"
    INSUFFICIENT_DATA = "insufficient-data"


@dataclass(frozen=True, slots=True)
class FermentationMetrics:
    """Transient summary for one brew; never persisted."""

    current_gravity: float
    latest_temperature_f: float
    attenuation: float | None
    estimated_abv: float | None
    temperature_trend: TemperatureTrend
    last_reading_at: datetime
    time_since_last_reading: str
    reading_count: int


def _has_usable_og(og: float | None) -> bool:
    return og is not None and og > 1.0


def apparent_attenuation(og: float | None, gravity: float) -> float | None:
    """Percentage of the gravity drop achieved so far; None without a usable OG."""
    if not _has_usable_og(og):
        return None
    return ((og - gravity) / (og - 1.0)) * 100


def estimated_abv(og: float | None, gravity: float) -> float | None:
    if not _has_usable_og(og):
        return None
    return (og - gravity) * ABV_FACTOR


def temperature_trend(
    readings: Sequence[Reading],
    *,
    threshold: float | None = None,
    report_insufficient: bool | None = None,
) -> TemperatureTrend:
    """Compare the newest temperature against the third-newest."""
    if threshold is None:
        threshold = getattr(settings, "TREND_THRESHOLD_F", DEFAULT_TREND_THRESHOLD_F)
    if report_insufficient is None:
        report_insufficient = getattr(settings, "TREND_REPORT_INSUFFICIENT", False)

    if len(readings) < TREND_SAMPLE_SIZE:
        return TemperatureTrend.INSUFFICIENT_DATA if report_insufficient else TemperatureTrend.STEADY

    recent = sort_readings(readings, descending=True)[:TREND_SAMPLE_SIZE]
    diff = recent[0].temperature_f - recent[2].temperature_f
    if diff > threshold:
        return TemperatureTrend.UP
    if diff < -threshold:
        return TemperatureTrend.DOWN
    return TemperatureTrend.STEADY


def derive_metrics(
    readings: Sequence[Reading],
    og: float | None = None,
    *,
    now: datetime | None = None,
    now_provider: Callable[..., datetime] = datetime.now,
) -> FermentationMetrics | None:
    """Summarize a brew's readings; None when there is nothing to summarize."""
    if not readings:
        return None

    ordered = sort_readings(readings, descending=True)
    latest = ordered[0]
    current = now or now_provider(UTC)

    return FermentationMetrics(
        current_gravity=latest.gravity,
        latest_temperature_f=latest.temperature_f,
        attenuation=apparent_attenuation(og, latest.gravity),
        estimated_abv=estimated_abv(og, latest.gravity),
        temperature_trend=temperature_trend(ordered),
        last_reading_at=latest.recorded_at,
        time_since_last_reading=humanize_since(latest.recorded_at, current),
        reading_count=len(ordered),
    )


_MINUTES_IN_DAY = 1440
_MINUTES_IN_ALMOST_TWO_DAYS = 2520
_MINUTES_IN_MONTH = 43200
_MINUTES_IN_TWO_MONTHS = 86400


def humanize_since(then: datetime, now: datetime) -> str:
    """Relative wording such as "5 minutes ago" or "about 2 hours ago"."""
    if then.tzinfo is None:
        then = then.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    future = then > now
    earlier, later = (now, then) if future else (then, now)
    minutes = _round_half_up((later - earlier).total_seconds() / 60)

    if minutes < 2:
        phrase = "less than a minute" if minutes == 0 else "1 minute"
    elif minutes < 45:
        phrase = f"{minutes} minutes"
    elif minutes < 90:
        phrase = "about 1 hour"
    elif minutes < _MINUTES_IN_DAY:
        phrase = f"about {_round_half_up(minutes / 60)} hours"
    elif minutes < _MINUTES_IN_ALMOST_TWO_DAYS:
        phrase = "1 day"
    elif minutes < _MINUTES_IN_MONTH:
        phrase = f"{_round_half_up(minutes / _MINUTES_IN_DAY)} days"
    elif minutes < _MINUTES_IN_TWO_MONTHS:
        months = _round_half_up(minutes / _MINUTES_IN_MONTH)
        phrase = f"about {months} month" if months == 1 else f"about {months} months"
    else:
        delta = relativedelta(later, earlier)
        months = delta.years * 12 + delta.months
        if months < 12:
            phrase = f"{_round_half_up(minutes / _MINUTES_IN_MONTH)} months"
        else:
            years, remainder = divmod(months, 12)
            if remainder < 3:
                phrase = f"about {_plural(years, 'year')}"
            elif remainder < 9:
                phrase = f"over {_plural(years, 'year')}"
            else:
                phrase = f"almost {_plural(years + 1, 'year')}"

    return f"in {phrase}" if future else f"{phrase} ago"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
