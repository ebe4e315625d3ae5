"""Dashboard view models assembled from API data and the readings core."""

from __future__ import annotations

from dataclasses import asdict
from datetime import UTC, datetime
import logging
from typing import Any, Callable

from tiltboard.clients.contracts import FetchResult
from tiltboard.models.brew import Brew, BrewStatus
from tiltboard.models.reading import Reading, ReadingsQuery
from tiltboard.models.parsing import format_timestamp
from tiltboard.services.brews import build_finish_update, build_status_update, hydrometer_options
from tiltboard.services.readings.aggregator import (
    SeriesKey,
    aggregate_by_time,
    paginate,
    series_keys,
    single_series,
)
from tiltboard.services.readings.colors import assign_colors, color_hex
from tiltboard.services.readings.metrics import FermentationMetrics, derive_metrics
from tiltboard.services.readings.windows import TimeRange, resolve_window

logger = logging.getLogger(__name__)

SERIES_LABEL_LENGTH = 8


class UpstreamError(RuntimeError):
    """The fermentation API call behind a view failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _unwrap(result: FetchResult[Any], what: str) -> Any:
    if result.failed:
        logger.warning("Fetching %s failed (%s): %s", what, result.status_code, result.error)
        raise UpstreamError(f"Failed to fetch {what}: {result.error}", status_code=result.status_code)
    return result.data


class DashboardService:
    """Builds JSON-ready payloads for each dashboard screen."""

    def __init__(self, client: Any, *, now_provider: Callable[..., datetime] = datetime.now) -> None:
        self._client = client
        self._now_provider = now_provider

    def _now(self) -> datetime:
        return self._now_provider(UTC)

    async def overview(self) -> dict[str, Any]:
        active_brews = _unwrap(await self._client.list_brews(BrewStatus.ACTIVE), "active brews") or []
        hydrometers = _unwrap(await self._client.list_hydrometers(), "hydrometers") or []
        latest = _unwrap(await self._client.list_readings(ReadingsQuery(limit=1)), "latest reading") or []

        latest_reading = latest[0] if latest else None
        return {
            "active_brews": len(active_brews),
            "hydrometers": len(hydrometers),
            "latest_reading": _reading_dict(latest_reading) if latest_reading else None,
        }

    async def recent_readings_chart(self) -> dict[str, Any]:
        """Gravity of every brew (or unassigned hydrometer) over the last day."""
        window = resolve_window(TimeRange.LAST_24H, self._now())
        readings: list[Reading] = _unwrap(await self._client.list_readings(window.to_query()), "recent readings") or []
        buckets = aggregate_by_time(readings, key=SeriesKey.BREW, time_range=TimeRange.LAST_24H)
        colors = assign_colors(readings, key=SeriesKey.BREW)
        return {
            "since": format_timestamp(window.since) if window.since else None,
            "data": [bucket.to_dict() for bucket in buckets],
            "series": [
                {"key": key, "label": key[:SERIES_LABEL_LENGTH], "color": colors[key]}
                for key in series_keys(readings, key=SeriesKey.BREW)
            ],
        }

    async def brew_stats(self, brew_id: str) -> dict[str, Any]:
        brew: Brew = _unwrap(await self._client.get_brew(brew_id), f"brew {brew_id}")
        readings = _unwrap(await self._client.list_readings(ReadingsQuery(brew_id=brew_id)), "brew readings") or []
        metrics = derive_metrics(readings, brew.og, now=self._now())
        return {"brew_id": brew.id, "stats": _metrics_dict(metrics) if metrics else None}

    async def brew_chart(self, brew_id: str, time_range: str | TimeRange = TimeRange.LAST_7D) -> dict[str, Any]:
        selector = TimeRange.parse(time_range)
        brew: Brew = _unwrap(await self._client.get_brew(brew_id), f"brew {brew_id}")
        window = resolve_window(selector, self._now())
        readings = _unwrap(
            await self._client.list_readings(window.to_query(brew_id=brew_id)),
            "brew readings",
        ) or []
        return {
            "brew_id": brew.id,
            "range": selector.value,
            "since": format_timestamp(window.since) if window.since else None,
            "target_fg": brew.target_fg,
            "points": [asdict(point) for point in single_series(readings, time_range=selector)],
        }

    async def brew_readings(self, brew_id: str, page: int = 0) -> dict[str, Any]:
        readings = _unwrap(await self._client.list_readings(ReadingsQuery(brew_id=brew_id)), "brew readings") or []
        result = paginate(readings, page)
        return {
            "brew_id": brew_id,
            "page": result.page,
            "page_size": result.page_size,
            "total_pages": result.total_pages,
            "total_count": result.total_count,
            "has_previous": result.has_previous,
            "has_next": result.has_next,
            "rows": [_reading_dict(reading) for reading in result.rows],
        }

    async def finish_brew(self, brew_id: str) -> dict[str, Any]:
        brew: Brew = _unwrap(await self._client.get_brew(brew_id), f"brew {brew_id}")
        readings = _unwrap(await self._client.list_readings(ReadingsQuery(brew_id=brew_id)), "brew readings") or []
        update = build_finish_update(brew, readings, now=self._now())
        updated: Brew = _unwrap(await self._client.update_brew(brew_id, update), f"finished brew {brew_id}")
        logger.info("Finished brew %s with FG %.3f, ABV %s", brew_id, update.fg, update.abv)
        return _brew_dict(updated)

    async def change_status(self, brew_id: str, status: str | BrewStatus) -> dict[str, Any]:
        target = BrewStatus(status)
        brew: Brew = _unwrap(await self._client.get_brew(brew_id), f"brew {brew_id}")
        update = build_status_update(brew, target, now=self._now())
        updated: Brew = _unwrap(await self._client.update_brew(brew_id, update), f"updated brew {brew_id}")
        return _brew_dict(updated)

    async def new_brew_options(self) -> dict[str, Any]:
        hydrometers = _unwrap(await self._client.list_hydrometers(), "hydrometers") or []
        brews = _unwrap(await self._client.list_brews(BrewStatus.ACTIVE), "active brews") or []
        return {
            "hydrometers": [
                {
                    "id": option.hydrometer.id,
                    "name": option.hydrometer.display_name,
                    "color": option.hydrometer.color.value,
                    "hex": color_hex(option.hydrometer.color.value),
                    "selectable": option.selectable,
                    "active_brew": option.active_brew_name,
                }
                for option in hydrometer_options(hydrometers, brews)
            ]
        }


def _reading_dict(reading: Reading) -> dict[str, Any]:
    return {
        "id": reading.id,
        "brew_id": reading.brew_id,
        "hydrometer_id": reading.hydrometer_id,
        "color": reading.color,
        "gravity": reading.gravity,
        "temperature_f": reading.temperature_f,
        "rssi": reading.rssi,
        "recorded_at": format_timestamp(reading.recorded_at),
    }


def _metrics_dict(metrics: FermentationMetrics) -> dict[str, Any]:
    return {
        "current_gravity": metrics.current_gravity,
        "latest_temperature_f": metrics.latest_temperature_f,
        "attenuation": metrics.attenuation,
        "estimated_abv": metrics.estimated_abv,
        "temperature_trend": metrics.temperature_trend.value,
        "last_reading_at": format_timestamp(metrics.last_reading_at),
        "time_since_last_reading": metrics.time_since_last_reading,
        "reading_count": metrics.reading_count,
    }


def _brew_dict(brew: Brew) -> dict[str, Any]:
    return {
        "id": brew.id,
        "name": brew.name,
        "status": brew.status.value,
        "og": brew.og,
        "fg": brew.fg,
        "target_fg": brew.target_fg,
        "abv": brew.abv,
        "end_date": format_timestamp(brew.end_date) if brew.end_date else None,
        "hydrometer_id": brew.hydrometer_id,
    }
