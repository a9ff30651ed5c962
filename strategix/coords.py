"""Integer map coordinates and precise real coordinates."""

from __future__ import annotations

import math
from dataclasses import dataclass


def _is_scalar(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float))


def _length(x, y) -> float:
    return math.sqrt(x * x + y * y)


@dataclass(frozen=True, order=True)
class MapCoord:
    """Coordinate of a map cell: column ``x`` and row ``y``."""

    x: int = 0
    y: int = 0

    def __add__(self, other):
        if not isinstance(other, MapCoord):
            return NotImplemented
        return MapCoord(self.x + other.x, self.y + other.y)

    def __sub__(self, other):
        if not isinstance(other, MapCoord):
            return NotImplemented
        return MapCoord(self.x - other.x, self.y - other.y)

    def __mul__(self, value):
        if not _is_scalar(value):
            return NotImplemented
        return MapCoord(int(self.x * value), int(self.y * value))

    __rmul__ = __mul__

    def length(self) -> float:
        """Euclidean length of the vector."""
        return _length(self.x, self.y)

    def norm(self) -> MapCoord:
        """Vector of the same direction with unit length, truncated to integers."""
        size = self.length()
        return MapCoord(int(self.x / size), int(self.y / size))

    def to_real(self) -> RealCoord:
        """Precise coordinate of the centre of this cell."""
        return RealCoord(0.5 + self.x, 0.5 + self.y)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True, order=True)
class RealCoord:
    """Precise coordinate used by entities."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other):
        if not isinstance(other, RealCoord):
            return NotImplemented
        return RealCoord(float(self.x + other.x), float(self.y + other.y))

    def __sub__(self, other):
        if not isinstance(other, RealCoord):
            return NotImplemented
        return RealCoord(float(self.x - other.x), float(self.y - other.y))

    def __mul__(self, value):
        if not _is_scalar(value):
            return NotImplemented
        return RealCoord(float(self.x * value), float(self.y * value))

    __rmul__ = __mul__

    def length(self) -> float:
        """Euclidean length of the vector."""
        return _length(self.x, self.y)

    def norm(self) -> RealCoord:
        """Vector of the same direction with unit length."""
        size = self.length()
        return RealCoord(float(self.x / size), float(self.y / size))

    def to_map(self) -> MapCoord:
        """Cell coordinate, truncating towards zero."""
        return MapCoord(int(self.x), int(self.y))

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"