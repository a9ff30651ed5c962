"""A* path search over the map."""

from __future__ import annotations

import heapq
import itertools
import math
from dataclasses import dataclass

from .coords import MapCoord
from .gamemap import Map

MAX_CHECKED_TILES = 256
EPSILON = 4
STRAIGHT = 10
DIAGONAL = int(STRAIGHT * math.sqrt(2))

# Odd indices are straight steps, even ones diagonal.
_AROUND = (
    MapCoord(-1, 1), MapCoord(0, 1), MapCoord(1, 1),
    MapCoord(-1, 0), MapCoord(1, -1), MapCoord(1, 0),
    MapCoord(-1, -1), MapCoord(0, -1),
)


class MapPath:
    """Sequence of cells to walk, without the starting one."""

    def __init__(self, is_whole: bool = True) -> None:
        self.is_whole = is_whole
        self._points: list[MapCoord] = []

    def __len__(self) -> int:
        return len(self._points)

    def take_next(self) -> MapCoord:
        """Remove and return the next cell to walk to."""
        return self._points.pop()

    def add_point(self, coord: MapCoord) -> None:
        """Put ``coord`` in front of the remaining path."""
        self._points.append(coord)


@dataclass(eq=False)
class _PricedCell:
    coord: MapCoord
    parent: _PricedCell | None
    g: int
    h: int

    @property
    def f(self) -> int:
        return self.g + self.h


def _distance(a: MapCoord, b: MapCoord) -> int:
    return (abs(a.x - b.x) + abs(a.y - b.y)) * EPSILON


class PathFinder:
    """Finds paths on one map."""

    def __init__(self, game_map: Map) -> None:
        self.map = game_map

    def find_path(self, start: MapCoord, till: MapCoord, radius: float = 0.0) -> MapPath:
        """Path to within ``radius`` of ``till``, or to the closest reachable cell."""
        if (start - till).length() <= radius:
            return MapPath()

        order = itertools.count()
        closest = _PricedCell(start, None, 0, _distance(start, till))
        opened = {start: closest}
        heap = [(closest.f, next(order), closest)]
        closed: dict[MapCoord, _PricedCell] = {}
        found = False
        checked = 0

        while checked < MAX_CHECKED_TILES and opened:
            price, _, current = heapq.heappop(heap)
            if opened.get(current.coord) is not current or current.f != price:
                continue
            checked += 1
            del opened[current.coord]
            closed[current.coord] = current

            if (current.coord - till).length() <= radius:
                closest = current
                found = True
                break

            current_quality = self.map.cell(current.coord).terrain.quality
            for index, offset in enumerate(_AROUND):
                coord = current.coord + offset
                if coord in closed or not self.is_accessible(coord):
                    continue
                quality = 0.5 * (current_quality + self.map.cell(coord).terrain.quality)
                step = STRAIGHT if index % 2 else DIAGONAL
                next_g = int(current.g + step / quality)

                known = opened.get(coord)
                if known is None:
                    neighbour = _PricedCell(coord, current, next_g, _distance(coord, till))
                    if neighbour.h < closest.h:
                        closest = neighbour
                    opened[coord] = neighbour
                    heapq.heappush(heap, (neighbour.f, next(order), neighbour))
                elif known.g > next_g:
                    known.parent = current
                    known.g = next_g
                    heapq.heappush(heap, (known.f, next(order), known))

        return self._way(closest, found)

    def is_accessible(self, coord: MapCoord) -> bool:
        if not self.map.is_cell(coord):
            return False
        cell = self.map.cell(coord)
        return cell.terrain.quality > 0 and cell.object is None

    @staticmethod
    def _way(cell: _PricedCell, found: bool) -> MapPath:
        path = MapPath(found)
        while cell.parent is not None:
            path.add_point(cell.coord)
            cell = cell.parent
        return path