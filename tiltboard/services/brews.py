"""Brew lifecycle rules applied before updates are sent to the API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import logging
from typing import Iterable, Sequence

from tiltboard.models.brew import Brew, BrewStatus, BrewUpdate
from tiltboard.models.hydrometer import Hydrometer
from tiltboard.models.reading import Reading
from tiltboard.services.readings.aggregator import sort_readings
from tiltboard.services.readings.metrics import estimated_abv

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[BrewStatus, frozenset[BrewStatus]] = {
    BrewStatus.ACTIVE: frozenset({BrewStatus.COMPLETED, BrewStatus.ARCHIVED}),
    BrewStatus.COMPLETED: frozenset({BrewStatus.ARCHIVED}),
    BrewStatus.ARCHIVED: frozenset(),
}


def can_transition(current: BrewStatus, target: BrewStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def build_status_update(brew: Brew, target: BrewStatus, *, now: datetime | None = None) -> BrewUpdate:
    """Validate a status change; closing an active brew stamps its end date."""
    if not can_transition(brew.status, target):
        raise ValueError(f"Cannot move brew {brew.id} from {brew.status.value} to {target.value}")

    update = BrewUpdate(status=target)
    if brew.status == BrewStatus.ACTIVE and brew.end_date is None:
        update.end_date = now or datetime.now(UTC)
    return update


def build_finish_update(brew: Brew, readings: Sequence[Reading], *, now: datetime | None = None) -> BrewUpdate:
    """Complete a brew, snapshotting the newest gravity as FG.

    ABV is only filled in when the brew has a usable OG, rounded to one
    decimal place the way it is stored.
    """
    if not can_transition(brew.status, BrewStatus.COMPLETED):
        raise ValueError(f"Cannot finish brew {brew.id} with status {brew.status.value}")

    if readings:
        final_gravity = sort_readings(readings, descending=True)[0].gravity
    elif brew.latest_reading is not None:
        final_gravity = brew.latest_reading.gravity
    else:
        raise ValueError(f"Cannot finish brew {brew.id} without any readings")

    abv = estimated_abv(brew.og, final_gravity)
    return BrewUpdate(
        fg=final_gravity,
        abv=round(abv, 1) if abv is not None else None,
        status=BrewStatus.COMPLETED,
        end_date=now or datetime.now(UTC),
    )


@dataclass(frozen=True, slots=True)
class HydrometerOption:
    """A hydrometer offered on the new-brew form."""

    hydrometer: Hydrometer
    active_brew_name: str | None = None

    @property
    def selectable(self) -> bool:
        return self.active_brew_name is None


def hydrometer_options(hydrometers: Iterable[Hydrometer], brews: Iterable[Brew]) -> list[HydrometerOption]:
    """Mark hydrometers already bound to an active brew as unavailable.

    The API enforces one active brew per hydrometer; this only keeps the
    form from offering a choice that would be rejected.
    """
    active_by_hydrometer: dict[str, str] = {}
    for brew in brews:
        if brew.status != BrewStatus.ACTIVE:
            continue
        if brew.hydrometer_id in active_by_hydrometer:
            logger.warning(
                "Hydrometer %s is referenced by more than one active brew (%s, %s)",
                brew.hydrometer_id,
                active_by_hydrometer[brew.hydrometer_id],
                brew.name,
            )
            continue
        active_by_hydrometer[brew.hydrometer_id] = brew.name

    return [
        HydrometerOption(hydrometer=hydrometer, active_brew_name=active_by_hydrometer.get(hydrometer.id))
        for hydrometer in hydrometers
    ]
