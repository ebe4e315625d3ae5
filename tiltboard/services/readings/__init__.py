"""Pure computations over fetched reading collections."""

from tiltboard.services.readings.aggregator import (
    ReadingsPage,
    SeriesKey,
    SeriesPoint,
    TimeBucket,
    aggregate_by_time,
    paginate,
    single_series,
    sort_readings,
)
from tiltboard.services.readings.colors import DEFAULT_SERIES_COLOR, SeriesColors, assign_colors, color_hex
from tiltboard.services.readings.metrics import (
    FermentationMetrics,
    TemperatureTrend,
    apparent_attenuation,
    derive_metrics,
    estimated_abv,
    temperature_trend,
)
from tiltboard.services.readings.windows import TimeRange, TimeWindow, resolve_window

__all__ = [
    "ReadingsPage",
    "SeriesKey",
    "SeriesPoint",
    "TimeBucket",
    "aggregate_by_time",
    "paginate",
    "single_series",
    "sort_readings",
    "DEFAULT_SERIES_COLOR",
    "SeriesColors",
    "assign_colors",
    "color_hex",
    "FermentationMetrics",
    "TemperatureTrend",
    "apparent_attenuation",
    "derive_metrics",
    "estimated_abv",
    "temperature_trend",
    "TimeRange",
    "TimeWindow",
    "resolve_window",
]
