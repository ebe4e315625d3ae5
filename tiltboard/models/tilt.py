"""Tilt hydrometer color identities."""

import enum


class TiltColor(str, enum.Enum):
    """Housing colors; each identifies one physical Tilt device."""

    RED = "Red"
    GREEN = "Green"
    BLACK = "Black"
    PURPLE = "Purple"
    ORANGE = "Orange"
    BLUE = "Blue"
    YELLOW = "Yellow"
    PINK = "Pink"

    @classmethod
    def parse(cls, label: str | None) -> "TiltColor | None":
        """Return the color for a label, or None for unknown labels."""
        if not label:
            return None
        try:
            return cls(label)
        except ValueError:
            return None


ALL_TILT_COLORS = tuple(TiltColor)
