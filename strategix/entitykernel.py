"""Server side state of one entity and the features it owns."""

from __future__ import annotations

import logging
from typing import TypeVar

from .coords import MapCoord, RealCoord
from .features import Feature, FeatureAttack, FeatureCollect, FeatureHealth, FeatureMove
from .info import EntityInfo, FeatureInfo
from .messages import (
    AttackMessage,
    CollectMessage,
    CommandMessage,
    MapMoveMessage,
    MoveMessage,
    RealMoveMessage,
)

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Feature)

_FEATURE_TYPES: dict[str, type[Feature]] = {
    "move": FeatureMove,
    "collect": FeatureCollect,
    "health": FeatureHealth,
    "attack": FeatureAttack,
}


class FeatureMissingError(LookupError):
    """Raised when an entity lacks the requested feature."""


class EntityKernel:
    """An entity in a running game."""

    def __init__(self, game, player, entity_id: int, info: EntityInfo, coord: RealCoord) -> None:
        if isinstance(coord, MapCoord):
            coord = coord.to_real()
        self.game = game
        self.player = player
        self.id = entity_id
        self.info = info
        self.coord = coord
        self.map_coord = coord.to_map()
        self._features: dict[type[Feature], Feature] = {}
        self.task: Feature | None = None
        self.passive_tasks: list[Feature] = []

        for name, feature_info in info.feature_infos.items():
            self._add_feature(name, feature_info)

    @property
    def max_hp(self) -> int:
        return self.feature(FeatureHealth).max_hp

    @property
    def hp(self) -> int:
        return self.feature(FeatureHealth).hp

    def receive_message(self, message: CommandMessage) -> None:
        """Carry out a player command."""
        if isinstance(message, MoveMessage):
            self.feature(FeatureMove).move(message.coord, 0, None)
        elif isinstance(message, CollectMessage):
            self.feature(FeatureCollect).collect(message.coord, message.resource_name)
        elif isinstance(message, AttackMessage):
            self.feature(FeatureAttack).attack(message.target_id)
        else:
            raise ValueError(f"Unable to handle message with type: {message.message_type.name}")

    def set_coord(self, coord: RealCoord) -> None:
        """Set the precise coordinate and announce it."""
        self.coord = coord
        self.game.send_all(RealMoveMessage(self.id, coord))

    def set_map_coord(self, coord: MapCoord) -> bool:
        """Move the entity's map object to ``coord``; False if the cell is taken."""
        if self.map_coord != coord:
            current = self.player.map_object(self.map_coord)
            occupant = self.player.map_object(coord)
            if occupant is not None:
                return current is occupant

            self.player.set_map_object(coord, current)
            self.player.set_map_object(self.map_coord, None)

            self.game.send_all(MapMoveMessage(self.id, self.map_coord, coord))
            self.map_coord = coord
        return True

    def tick(self, seconds: float) -> None:
        for feature in self.passive_tasks:
            feature.tick(seconds)
        if self.task is not None:
            self.task.tick(seconds)

    def assign_task(self, feature: Feature | None) -> None:
        """Replace the single active task, stopping the previous one."""
        if self.task is not None:
            self.task.stop()
        self.task = feature

    def assign_passive_task(self, feature: Feature) -> None:
        """Add a routine that runs on every tick alongside the active task."""
        self.passive_tasks.append(feature)

    def feature(self, feature_type: type[F]) -> F:
        """The feature of the given type."""
        try:
            return self._features[feature_type]  # type: ignore[return-value]
        except KeyError:
            raise FeatureMissingError(f"{self.info.name} has no feature {feature_type.__name__}") from None

    def _add_feature(self, name: str, feature_info: FeatureInfo) -> None:
        feature_type = _FEATURE_TYPES.get(name)
        if feature_type is None:
            log.error("Unable to handle feature %s", name)
            return
        self._features[feature_type] = feature_type(feature_info, self)