"""API data models"""

from tiltboard.models.brew import Brew, BrewCreate, BrewStatus, BrewUpdate
from tiltboard.models.hydrometer import Hydrometer, HydrometerCreate, HydrometerUpdate
from tiltboard.models.reading import Reading, ReadingSnapshot, ReadingsQuery
from tiltboard.models.tilt import ALL_TILT_COLORS, TiltColor

__all__ = [
    "Brew",
    "BrewCreate",
    "BrewStatus",
    "BrewUpdate",
    "Hydrometer",
    "HydrometerCreate",
    "HydrometerUpdate",
    "Reading",
    "ReadingSnapshot",
    "ReadingsQuery",
    "TiltColor",
    "ALL_TILT_COLORS",
]
