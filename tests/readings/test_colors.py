from __future__ import annotations

from datetime import UTC, datetime, timedelta

from tiltboard.models.reading import Reading
from tiltboard.services.readings.aggregator import SeriesKey
from tiltboard.services.readings.colors import (
    DEFAULT_SERIES_COLOR,
    FALLBACK_PALETTE,
    TILT_COLOR_MAP,
    assign_colors,
    color_hex,
)
from tiltboard.models.tilt import TiltColor

BASE = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


def _reading(index: int, color: str, *, brew_id: str | None = None, hydrometer_id: str = "hydro-1") -> Reading:
    return Reading(
        id=f"r{index}",
        hydrometer_id=hydrometer_id,
        brew_id=brew_id,
        recorded_at=BASE + timedelta(minutes=index),
        gravity=1.040,
        temperature_f=68.0,
        color=color,
    )


def test_canonical_colors_and_fallback_rotation_by_first_sight() -> None:
    readings = [
        _reading(0, "Red"),
        _reading(1, "Unknown1"),
        _reading(2, "Unknown2"),
        _reading(3, "Red"),
    ]

    colors = assign_colors(readings, key=lambda reading: reading.color)

    assert dict(colors) == {
        "Red": TILT_COLOR_MAP[TiltColor.RED].hex,
        "Unknown1": FALLBACK_PALETTE[0],
        "Unknown2": FALLBACK_PALETTE[1],
    }


def test_series_keyed_by_brew_reuse_first_assignment() -> None:
    readings = [
        _reading(0, "Blue", brew_id="brew-a"),
        _reading(1, "Mystery", brew_id="brew-b"),
        _reading(2, "Green", brew_id="brew-a"),
        _reading(3, "Mystery", brew_id=None, hydrometer_id="hydro-7"),
    ]

    colors = assign_colors(readings, key=SeriesKey.BREW)

    assert colors["brew-a"] == "#1971C2"
    assert colors["brew-b"] == FALLBACK_PALETTE[0]
    assert colors["hydro-7"] == FALLBACK_PALETTE[1]


def test_unassigned_key_falls_back_to_neutral_gray() -> None:
    colors = assign_colors([_reading(0, "Red", brew_id="brew-a")])

    assert colors["never-seen"] == DEFAULT_SERIES_COLOR
    assert "never-seen" not in colors
    assert assign_colors([]) == {}


def test_fallback_rotation_wraps_around_palette() -> None:
    readings = [_reading(index, f"Custom{index}") for index in range(len(FALLBACK_PALETTE) + 1)]

    colors = assign_colors(readings, key=lambda reading: reading.color)

    assert colors[f"Custom{len(FALLBACK_PALETTE)}"] == FALLBACK_PALETTE[0]


def test_stable_fallback_ignores_scan_order() -> None:
    first = _reading(0, "Mystery", brew_id="brew-x")
    second = _reading(1, "Mystery", brew_id="brew-y")

    forward = assign_colors([first, second], stable_fallback=True)
    backward = assign_colors([second, first], stable_fallback=True)

    assert forward["brew-x"] == backward["brew-x"]
    assert forward["brew-y"] == backward["brew-y"]
    assert forward["brew-x"] in FALLBACK_PALETTE


def test_color_hex_lookup() -> None:
    assert color_hex("Pink") == "#D6336C"
    assert color_hex("Teal") == DEFAULT_SERIES_COLOR
    assert color_hex(None) == DEFAULT_SERIES_COLOR
