"""Entity features: health, movement, attacking and resource collection."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .coords import MapCoord, RealCoord
from .info import AttackFeatureInfo, CollectFeatureInfo, HealthFeatureInfo, MoveFeatureInfo
from .messages import HpMessage
from .objects import MapMine
from .pathfinding import MapPath

if TYPE_CHECKING:
    from .entitykernel import EntityKernel

log = logging.getLogger(__name__)

MINE_SELECTION_RADIUS = 10


class Feature(ABC):
    """One ability of an entity, driven by the entity's ticks."""

    def __init__(self, info, entity: EntityKernel) -> None:
        self.info = info
        self.entity = entity

    @abstractmethod
    def tick(self, seconds: float) -> None:
        """Advance the feature by ``seconds`` of game time."""

    def stop(self) -> None:
        """Called when the feature stops being the entity's active task."""

    def completed(self, done: bool) -> None:
        """Called when a movement started by this feature has finished."""


class FeatureHealth(Feature):
    """Hit points of an entity."""

    info: HealthFeatureInfo

    def __init__(self, info: HealthFeatureInfo, entity: EntityKernel) -> None:
        super().__init__(info, entity)
        self.hp = info.hp

    @property
    def max_hp(self) -> int:
        return self.info.hp

    def tick(self, seconds: float) -> None:
        # Recovery over time is not applied.
        pass

    def change_hp(self, delta: int) -> bool:
        """Change hit points by ``delta``; return False once the entity is destroyed."""
        if self.hp == 0:
            return False  # already destroyed

        self.hp += delta
        if self.hp <= 0:
            self.hp = 0
            self.entity.game.remove_entity(self.entity.id)
        elif self.hp > self.info.hp:
            self.hp = self.info.hp
        self.entity.game.send_all(HpMessage(self.entity.id, self.hp))
        return self.hp != 0


class FeatureMove(Feature):
    """Walking along a path to a cell or towards another entity."""

    info: MoveFeatureInfo

    def __init__(self, info: MoveFeatureInfo, entity: EntityKernel) -> None:
        super().__init__(info, entity)
        self.target: EntityKernel | None = None
        self.coord = MapCoord()
        self.radius = 0.0
        self.mover: Feature | None = None
        self.speed = info.speed
        self.distance = 0.0
        self.terrain_quality = 0.0
        self.direction = RealCoord()
        self.next = entity.coord
        self.path: MapPath | None = None

    def move_to_entity(self, target: EntityKernel, radius: float, mover: Feature | None) -> None:
        """Pursue ``target`` until within ``radius`` of it."""
        self.target = target
        self.move(target.map_coord, radius, mover)

    def move(self, coord: MapCoord, radius: float, mover: Feature | None) -> None:
        """Walk to within ``radius`` of ``coord``; ``mover`` is told when done."""
        self.coord = coord
        self.radius = radius
        self.mover = mover

        self._rebuild_path()
        self.distance = 0.0
        self.terrain_quality = 0.0

        self.entity.assign_task(self)

    def tick(self, seconds: float) -> None:
        self.distance -= seconds * self.speed * self.terrain_quality
        is_stop = self.distance <= 0 and not self._next_point()

        if self.distance > 0:
            new_coord = self.next - self.direction * self.distance
        else:
            new_coord = self.next
        self.entity.set_coord(new_coord)

        if is_stop:
            self.entity.assign_task(None)
            if self.mover is not None:
                self.mover.completed(self.path.is_whole)

    def stop(self) -> None:
        self.target = None

    def _next_point(self) -> bool:
        if not self.path:
            return False

        self._rebuild_path()
        if not self.path:
            return False

        self.next = self.path.take_next().to_real()
        if not self.entity.set_map_coord(self.next.to_map()):
            raise RuntimeError("The first point of the new path is occupied.")

        current = self.entity.coord
        player = self.entity.player
        delta = self.next - current
        size = delta.length()
        self.direction = delta.norm() if size else RealCoord()
        self.distance += size
        self.terrain_quality = 0.5 * (
            player.terrain(current.to_map()).quality + player.terrain(self.next.to_map()).quality
        )
        return True

    def _rebuild_path(self) -> None:
        target_coord = self.target.map_coord if self.target is not None else self.coord
        self.path = self.entity.player.find_path(self.entity.map_coord, target_coord, self.radius)
        if self.distance > 0:
            # still moving to the current cell, so keep it as the first point
            self.path.add_point(self.entity.map_coord)


class FeatureAttack(Feature):
    """Hitting another player's entity, pursuing it when out of reach."""

    info: AttackFeatureInfo

    def __init__(self, info: AttackFeatureInfo, entity: EntityKernel) -> None:
        super().__init__(info, entity)
        self.target: EntityKernel | None = None
        self._moving_target: EntityKernel | None = None
        self.hit_progress = 0.0

    def attack(self, target_id: int) -> bool:
        """Start attacking the entity ``target_id``; False if that is not possible."""
        self.target = self.entity.game.entity(target_id)
        if self.target is None:
            return False

        if self.target.player is self.entity.player:
            log.error("Attacking own units is not supported yet.")
            self.target = None
            return False

        self.hit_progress = 1.0  # first hit is instant when near the target
        self.entity.assign_task(self)
        return True

    def tick(self, seconds: float) -> None:
        if self.hit_progress < 1:
            self.hit_progress += seconds * self.info.speed
            return

        target = self.target
        if target is None or target.hp == 0:
            self.entity.assign_task(None)
            return

        if (self.entity.map_coord - target.map_coord).length() > self.info.radius:
            self.entity.feature(FeatureMove).move_to_entity(target, self.info.radius, self)
            return

        self.hit_progress -= 1
        if not target.feature(FeatureHealth).change_hp(-self.info.damage):
            self.entity.assign_task(None)  # target destroyed

    def stop(self) -> None:
        self._moving_target = self.target
        self.target = None

    def completed(self, done: bool) -> None:
        if not done:
            return
        moving = self._moving_target
        if moving is not None and self.entity.game.entity(moving.id) is moving:
            self.target = moving
            self.entity.assign_task(self)


class FeatureCollect(Feature):
    """Carrying resources from mines to a collector building."""

    info: CollectFeatureInfo

    def __init__(self, info: CollectFeatureInfo, entity: EntityKernel) -> None:
        super().__init__(info, entity)
        self.coord = MapCoord()
        self.resource_name = ""
        self.capacity = 0
        self.load = 0
        self.moving_to_collector = False

    def collect(self, coord: MapCoord, resource_name: str) -> bool:
        """Start collecting ``resource_name`` near ``coord``; False if it cannot be carried."""
        if resource_name not in self.info.capacities:
            return False

        if self.resource_name != resource_name:
            self.resource_name = resource_name
            self.capacity = self.info.capacities[resource_name]
            self.load = 0  # throw out the current resource
        self._collect(coord)
        return True

    def tick(self, seconds: float) -> None:
        mine = self._select_mine()
        if mine is not None:
            piece = min(int(seconds * self.info.speed), self.capacity - self.load)
            self.load += self.entity.player.pick_resource(mine, piece)

    def completed(self, done: bool) -> None:
        if not done:
            return

        if self.moving_to_collector:
            self.entity.player.add_resource(self.resource_name, self.load)
            self.load = 0
            self._collect(self.coord)  # back to the resource
            return

        if self._select_mine() is not None:
            self.entity.assign_task(self)

    def _collect(self, coord: MapCoord) -> None:
        self.entity.feature(FeatureMove).move(coord, self.info.radius, self)
        self.coord = coord
        self.moving_to_collector = False

    def _move_to_collector(self) -> None:
        collector = self.entity.player.find_collector(self.entity.coord.to_map())
        if collector is not None:
            self.entity.feature(FeatureMove).move(collector.coord.to_map(), self.info.radius, self)
            self.moving_to_collector = True

    def _select_mine(self) -> MapMine | None:
        if self.load < self.capacity:
            player = self.entity.player
            mine = player.mine(self.coord)
            if mine is not None:
                return mine

            mine = player.find_mine(self.entity.coord.to_map(), self.resource_name, MINE_SELECTION_RADIUS)
            if mine is not None:
                self._collect(mine.coord.to_map())  # change the current mine
            return None
        self._move_to_collector()
        return None