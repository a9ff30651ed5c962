"""Server side state of one player in a running game."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from .coords import MapCoord
from .gamemap import Map, Terrain
from .info import TechTree
from .messages import (
    EntityMessage,
    MineAmountMessage,
    ObjectRemovedMessage,
    PlayerMessage,
    PlayerType,
    ResourcesMessage,
)
from .objects import MapMine, MapObject
from .pathfinding import MapPath, PathFinder
from .resources import Resources

if TYPE_CHECKING:
    from .entitykernel import EntityKernel


def _ring(centre: MapCoord, r: int) -> Iterator[MapCoord]:
    """Cells on the border of the square of half side ``r`` around ``centre``."""
    sides = (
        (MapCoord(-r, -r), MapCoord(1, 0)),
        (MapCoord(-r + 1, r), MapCoord(1, 0)),
        (MapCoord(-r, -r + 1), MapCoord(0, 1)),
        (MapCoord(r, -r), MapCoord(0, 1)),
    )
    for offset, step in sides:
        coord = centre + offset
        for _ in range(2 * r):
            yield coord
            coord = coord + step


class PlayerKernel:
    """A player taking part in a game, with its entities and resources."""

    def __init__(
        self,
        game,
        player_id: int,
        player_message: PlayerMessage,
        game_map: Map,
        tech_tree: TechTree,
        resources: Resources,
    ) -> None:
        self.game = game
        self.id = player_id
        self.type: PlayerType = player_message.type
        self.spot = player_message.spot
        self.name = player_message.name
        self.race = player_message.race
        self.map = game_map
        self.tech_tree = tech_tree
        self.resources = resources
        self.entities: dict[int, EntityKernel] = {}
        self._path_finder = PathFinder(game_map)

    def entity(self, entity_id: int) -> EntityKernel | None:
        """The owned entity with this id, or None."""
        return self.entities.get(entity_id)

    def terrain(self, coord: MapCoord) -> Terrain:
        return self.map.cell(coord).terrain

    def map_object(self, coord: MapCoord) -> MapObject | None:
        return self.map.cell(coord).object

    def set_map_object(self, coord: MapCoord, obj: MapObject | None) -> None:
        """Put ``obj`` into the cell as it is, keeping its id."""
        self.map.cell(coord).object = obj

    def mine(self, coord: MapCoord) -> MapMine | None:
        obj = self.map_object(coord)
        return obj if isinstance(obj, MapMine) else None

    def entity_added(self, entity: EntityKernel) -> None:
        """Take ownership of ``entity`` and announce it."""
        self.entities[entity.id] = entity
        self.game.send_all(EntityMessage(self.spot, entity.id, entity.max_hp))

    def entity_removed(self, entity_id: int) -> None:
        """Forget the entity and clear its cell."""
        entity = self.entities.pop(entity_id)
        self._object_removed(entity_id, entity.map_coord)

    def add_resource(self, name: str, amount: int) -> None:
        """Add ``amount`` of resource ``name`` to the player's stock."""
        self.resources.add(name, amount)
        if self.type == PlayerType.HUMAN:
            self.game.send_one(ResourcesMessage(self.resources.copy()), self.id)

    def find_collector(self, coord: MapCoord) -> EntityKernel | None:
        """A building that accepts collected resources."""
        return next((e for e in self.entities.values() if e.info.kind == "building"), None)

    def find_mine(self, coord: MapCoord, resource_name: str, square_radius: int) -> MapMine | None:
        """Nearest mine of ``resource_name`` in squares of growing size around ``coord``."""
        if square_radius == 0:
            return self.mine(coord)

        for r in range(1, square_radius):
            for cell_coord in _ring(coord, r):
                if not self.map.is_cell(cell_coord):
                    continue
                obj = self.map.cell(cell_coord).object
                if isinstance(obj, MapMine) and obj.name == resource_name:
                    return obj
        return None

    def find_path(self, start: MapCoord, till: MapCoord, radius: float) -> MapPath:
        return self._path_finder.find_path(start, till, radius)

    def pick_resource(self, mine: MapMine, amount: int) -> int:
        """Take up to ``amount`` from ``mine``, removing it once empty."""
        picked = mine.pick_resource(amount)
        self.game.send_all(MineAmountMessage(mine.id, mine.amount))
        if not mine.amount:
            self._object_removed(mine.id, mine.coord.to_map())
        return picked

    def _object_removed(self, object_id: int, coord: MapCoord) -> None:
        self.map.change_object(self.map.cell(coord), None)
        self.game.send_all(ObjectRemovedMessage(object_id))