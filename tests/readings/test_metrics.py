from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from tiltboard.models.reading import Reading
from tiltboard.services.readings.metrics import (
    TemperatureTrend,
    apparent_attenuation,
    derive_metrics,
    estimated_abv,
    humanize_since,
    temperature_trend,
)

BASE = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


def _series(gravities: list[float], temperatures: list[float]) -> list[Reading]:
    """Readings one hour apart, oldest first."""
    return [
        Reading(
            id=f"r{index}",
            hydrometer_id="hydro-1",
            brew_id="brew-1",
            recorded_at=BASE + timedelta(hours=index),
            gravity=gravity,
            temperature_f=temperature,
            color="Red",
        )
        for index, (gravity, temperature) in enumerate(zip(gravities, temperatures))
    ]


def test_attenuation_and_abv_formulas() -> None:
    assert apparent_attenuation(1.050, 1.010) == pytest.approx(80.0)
    assert estimated_abv(1.050, 1.010) == pytest.approx(5.25)
    assert apparent_attenuation(1.060, 1.060) == pytest.approx(0.0)


@pytest.mark.parametrize("og", [None, 1.0, 0.998])
def test_attenuation_and_abv_unavailable_without_usable_og(og: float | None) -> None:
    assert apparent_attenuation(og, 1.010) is None
    assert estimated_abv(og, 1.010) is None


def test_derive_metrics_for_active_fermentation() -> None:
    readings = _series([1.020, 1.018, 1.015], [68.0, 68.2, 69.0])
    now = BASE + timedelta(hours=2, minutes=5)

    metrics = derive_metrics(list(reversed(readings)), 1.060, now=now)

    assert metrics is not None
    assert metrics.current_gravity == 1.015
    assert metrics.latest_temperature_f == 69.0
    assert metrics.attenuation == pytest.approx(75.0)
    assert round(metrics.estimated_abv, 1) == 5.9
    assert metrics.temperature_trend == TemperatureTrend.UP
    assert metrics.last_reading_at == BASE + timedelta(hours=2)
    assert metrics.time_since_last_reading == "5 minutes ago"
    assert metrics.reading_count == 3


def test_derive_metrics_without_og_reports_unavailable_values() -> None:
    metrics = derive_metrics(_series([1.030], [66.0]), None, now=BASE)

    assert metrics is not None
    assert metrics.attenuation is None
    assert metrics.estimated_abv is None
    assert metrics.temperature_trend == TemperatureTrend.STEADY


def test_derive_metrics_empty_history_is_none() -> None:
    assert derive_metrics([], 1.050, now=BASE) is None


def test_time_since_is_recomputed_from_now_on_every_call() -> None:
    readings = _series([1.040], [67.0])

    first = derive_metrics(readings, 1.050, now=BASE + timedelta(minutes=10))
    later = derive_metrics(readings, 1.050, now=BASE + timedelta(hours=3))

    assert first.time_since_last_reading == "10 minutes ago"
    assert later.time_since_last_reading == "about 3 hours ago"


def test_temperature_trend_thresholds() -> None:
    assert temperature_trend(_series([1.0] * 3, [70.0, 69.8, 69.0])) == TemperatureTrend.DOWN
    assert temperature_trend(_series([1.0] * 3, [68.0, 68.9, 68.5])) == TemperatureTrend.STEADY
    assert temperature_trend(_series([1.0] * 3, [68.0, 60.0, 68.6])) == TemperatureTrend.UP
    # Only the three newest readings count.
    assert temperature_trend(_series([1.0] * 4, [50.0, 68.0, 68.1, 68.2])) == TemperatureTrend.STEADY


def test_temperature_trend_with_sparse_data() -> None:
    readings = _series([1.040, 1.038], [60.0, 70.0])

    assert temperature_trend(readings) == TemperatureTrend.STEADY
    assert temperature_trend(readings, report_insufficient=True) == TemperatureTrend.INSUFFICIENT_DATA
    assert temperature_trend([]) == TemperatureTrend.STEADY


@pytest.mark.parametrize(
    ("delta", "expected"),
    [
        (timedelta(seconds=20), "less than a minute ago"),
        (timedelta(seconds=70), "1 minute ago"),
        (timedelta(minutes=44), "44 minutes ago"),
        (timedelta(minutes=60), "about 1 hour ago"),
        (timedelta(hours=5), "about 5 hours ago"),
        (timedelta(hours=25), "1 day ago"),
        (timedelta(days=3), "3 days ago"),
        (timedelta(days=40), "about 1 month ago"),
        (timedelta(days=120), "4 months ago"),
        # Halves round up.
        (timedelta(seconds=150), "3 minutes ago"),
        (timedelta(minutes=150), "about 3 hours ago"),
        (timedelta(hours=108), "5 days ago"),
    ],
)
def test_humanize_since_wording(delta: timedelta, expected: str) -> None:
    assert humanize_since(BASE - delta, BASE) == expected


def test_humanize_since_years_and_future() -> None:
    assert humanize_since(datetime(2025, 1, 1, tzinfo=UTC), datetime(2026, 2, 5, tzinfo=UTC)) == "about 1 year ago"
    assert humanize_since(datetime(2023, 1, 1, tzinfo=UTC), datetime(2026, 6, 1, tzinfo=UTC)) == "over 3 years ago"
    assert humanize_since(BASE + timedelta(minutes=5), BASE) == "in 5 minutes"
