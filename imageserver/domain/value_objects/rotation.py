"""
RotationAngle value object

Clockwise display rotation of a page, reduced to one of the four
quadrant angles.
"""
from __future__ import annotations

from enum import IntEnum

from imageserver.domain.exceptions import ParseError


class RotationAngle(IntEnum):
    """Clockwise page rotation in degrees."""
    NONE = 0
    CLOCKWISE_90 = 90
    HALF_TURN = 180
    CLOCKWISE_270 = 270

    @classmethod
    def normalize(cls, degrees: int) -> "RotationAngle":
        """
        Reduce a raw ``/Rotate`` value to a quadrant angle.

        Values outside ``[0, 360)`` are reduced modulo 360, so ``-90`` becomes
        270 and ``450`` becomes 90.

        Raises:
            ParseError: If the value is not a whole multiple of 90.
        """
        try:
            value = int(degrees)
        except (TypeError, ValueError) as exc:
            raise ParseError(f"Page rotation is not an integer: {degrees!r}", exc) from exc
        if value % 90 != 0:
            raise ParseError(f"Page rotation must be a multiple of 90, got {value}")
        return cls(value % 360)

    @property
    def quadrants(self) -> int:
        """Number of clockwise quarter turns (0-3)."""
        return self.value // 90

    @property
    def swaps_dimensions(self) -> bool:
        return self in (RotationAngle.CLOCKWISE_90, RotationAngle.CLOCKWISE_270)
