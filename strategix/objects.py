"""Objects that occupy map cells: player entities and resource mines."""

from __future__ import annotations

import copy
from dataclasses import dataclass

from .coords import MapCoord, RealCoord


@dataclass(eq=False)
class MapObject:
    """An object on the map with a globally unique id and a type name."""

    id: int
    name: str
    coord: RealCoord

    def __post_init__(self) -> None:
        if isinstance(self.coord, MapCoord):
            self.coord = self.coord.to_real()

    def clone(self) -> MapObject:
        """Independent copy of this object."""
        return copy.copy(self)


@dataclass(eq=False)
class MapEntity(MapObject):
    """An entity owned by the player at ``owner_spot``."""

    owner_spot: int
    hp: int = 0
    max_hp: int = 1

    def set_max_hp(self, hp: int) -> None:
        """Set both current and maximum hit points."""
        self.hp = self.max_hp = hp


@dataclass(eq=False)
class MapMine(MapObject):
    """A mine holding an amount of one resource."""

    amount: int

    def pick_resource(self, amount: int) -> int:
        """Take up to ``amount`` from the mine and return what was taken."""
        if self.amount > amount:
            self.amount -= amount
            return amount
        remain = self.amount
        self.amount = 0
        return remain