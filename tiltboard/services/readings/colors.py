"""Display colors for hydrometers and chart series."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
from typing import Callable, Iterable

from tiltboard.models.reading import Reading
from tiltboard.models.tilt import TiltColor
from tiltboard.services.readings.aggregator import SeriesKey, series_key


@dataclass(frozen=True, slots=True)
class TiltColorInfo:
    hex: str
    display_name: str
    bg_light: str


TILT_COLOR_MAP: dict[TiltColor, TiltColorInfo] = {
    TiltColor.RED: TiltColorInfo(hex="#E03131", display_name="Red", bg_light="#FFF5F5"),
    TiltColor.GREEN: TiltColorInfo(hex="#2F9E44", display_name="Green", bg_light="#EBFBEE"),
    TiltColor.BLACK: TiltColorInfo(hex="#495057", display_name="Black", bg_light="#F8F9FA"),
    TiltColor.PURPLE: TiltColorInfo(hex="#7048E8", display_name="Purple", bg_light="#F3F0FF"),
    TiltColor.ORANGE: TiltColorInfo(hex="#E8590C", display_name="Orange", bg_light="#FFF4E6"),
    TiltColor.BLUE: TiltColorInfo(hex="#1971C2", display_name="Blue", bg_light="#E7F5FF"),
    TiltColor.YELLOW: TiltColorInfo(hex="#F08C00", display_name="Yellow", bg_light="#FFF9DB"),
    TiltColor.PINK: TiltColorInfo(hex="#D6336C", display_name="Pink", bg_light="#FFF0F6"),
}

FALLBACK_PALETTE: tuple[str, ...] = (
    "#E03131",
    "#1971C2",
    "#2F9E44",
    "#7048E8",
    "#E8590C",
    "#D6336C",
    "#F08C00",
    "#495057",
)

DEFAULT_SERIES_COLOR = "#868E96"


def color_hex(label: str | None) -> str:
    """Canonical hex for a Tilt color label, neutral gray otherwise."""
    color = TiltColor.parse(label)
    if color is None:
        return DEFAULT_SERIES_COLOR
    return TILT_COLOR_MAP[color].hex


class SeriesColors(dict):
    """Series key -> hex mapping; keys never assigned resolve to neutral gray."""

    def __missing__(self, key: str) -> str:
        return DEFAULT_SERIES_COLOR


def _stable_fallback(key: str) -> str:
    digest = hashlib.sha1(key.encode("utf-8")).digest()
    return FALLBACK_PALETTE[int.from_bytes(digest[:4], "big") % len(FALLBACK_PALETTE)]


def assign_colors(
    readings: Iterable[Reading],
    *,
    key: SeriesKey | Callable[[Reading], str] = SeriesKey.BREW,
    stable_fallback: bool = False,
) -> SeriesColors:
    """Give each series a color the first time it shows up in `readings`.

    Series whose reading carries a canonical Tilt color use that color.
    Others draw from the fallback palette in rotation, so their color depends
    on scan order unless `stable_fallback` hashes the series key instead.
    """
    key_fn = key if callable(key) else (lambda r: series_key(r, SeriesKey(key)))

    colors = SeriesColors()
    fallback_index = 0
    for reading in readings:
        series = key_fn(reading)
        if series in colors:
            continue

        tilt_color = TiltColor.parse(reading.color)
        if tilt_color is not None:
            colors[series] = TILT_COLOR_MAP[tilt_color].hex
        elif stable_fallback:
            colors[series] = _stable_fallback(series)
        else:
            colors[series] = FALLBACK_PALETTE[fallback_index % len(FALLBACK_PALETTE)]
            fallback_index += 1
    return colors
