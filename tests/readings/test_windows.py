from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from tiltboard.services.readings.windows import TimeRange, TimeWindow, resolve_window

NOW = datetime(2026, 3, 8, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("selector", "hours"),
    [("24h", 24), ("7d", 168), ("30d", 720), (TimeRange.LAST_7D, 168)],
)
def test_resolve_window_sets_lower_bound_only(selector: str, hours: int) -> None:
    window = resolve_window(selector, NOW)

    assert window.since == NOW - timedelta(hours=hours)
    assert window.until is None


def test_all_time_has_no_bounds() -> None:
    window = resolve_window("all", NOW)

    assert window == TimeWindow()
    assert window.to_query(brew_id="brew-1").to_params() == {"brew_id": "brew-1"}


def test_unknown_selector_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown time range"):
        resolve_window("90d", NOW)


def test_naive_now_is_treated_as_utc() -> None:
    window = resolve_window("24h", datetime(2026, 3, 8, 12, 0))

    assert window.since == datetime(2026, 3, 7, 12, 0, tzinfo=UTC)


def test_window_serializes_into_reading_query() -> None:
    query = resolve_window("24h", NOW).to_query(brew_id="brew-1", limit=500)

    assert query.to_params() == {
        "brew_id": "brew-1",
        "since": "2026-03-07T12:00:00Z",
        "limit": 500,
    }


def test_window_contains() -> None:
    window = resolve_window("24h", NOW)

    assert window.contains(NOW - timedelta(hours=1))
    assert window.contains(NOW - timedelta(hours=24))
    assert not window.contains(NOW - timedelta(hours=25))
    assert TimeWindow().contains(datetime(2000, 1, 1, tzinfo=UTC))
