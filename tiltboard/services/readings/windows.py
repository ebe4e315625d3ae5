"""Time-range selectors for reading queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
import enum

from tiltboard.models.reading import ReadingsQuery


class TimeRange(str, enum.Enum):
    """Range selector values offered by the charts."""

    LAST_24H = "24h"
    LAST_7D = "7d"
    LAST_30D = "30d"
    ALL = "all"

    @classmethod
    def parse(cls, raw: "str | TimeRange") -> "TimeRange":
        if isinstance(raw, TimeRange):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            allowed = ", ".join(item.value for item in cls)
            raise ValueError(f"Unknown time range {raw!r}; expected one of: {allowed}")


RANGE_HOURS: dict[TimeRange, int | None] = {
    TimeRange.LAST_24H: 24,
    TimeRange.LAST_7D: 168,
    TimeRange.LAST_30D: 720,
    TimeRange.ALL: None,
}


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Concrete bounds for a reading query; `None` means unbounded."""

    since: datetime | None = None
    until: datetime | None = None

    def contains(self, moment: datetime) -> bool:
        if self.since is not None and moment < self.since:
            return False
        if self.until is not None and moment > self.until:
            return False
        return True

    def to_query(
        self,
        *,
        brew_id: str | None = None,
        hydrometer_id: str | None = None,
        limit: int | None = None,
    ) -> ReadingsQuery:
        return ReadingsQuery(
            brew_id=brew_id,
            hydrometer_id=hydrometer_id,
            since=self.since,
            until=self.until,
            limit=limit,
        )


def resolve_window(time_range: str | TimeRange, now: datetime | None = None) -> TimeWindow:
    """Translate a range selector into a lower bound relative to `now`.

    Requests always run "from since to now", so no upper bound is set.
    """
    selector = TimeRange.parse(time_range)
    hours = RANGE_HOURS[selector]
    if hours is None:
        return TimeWindow()

    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return TimeWindow(since=now - timedelta(hours=hours))
