"""Game representation on the client: players, entities and event hooks."""

from __future__ import annotations

import dataclasses
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from .coords import MapCoord, RealCoord
from .messages import (
    AttackMessage,
    CollectMessage,
    EntityMessage,
    Message,
    MessageType,
    MoveMessage,
    PlayerMessage,
    PlayerType,
)
from .resources import Resources

log = logging.getLogger(__name__)

Send = Callable[[Message], Any]


class Entity(ABC):
    """Client slot of one entity; subclasses react to its changes."""

    def __init__(self, message: EntityMessage, send: Send) -> None:
        self.message = message
        self._send = send

    @property
    def id(self) -> int:
        return self.message.id

    @property
    def max_hp(self) -> int:
        return self.message.max_hp

    def move(self, coord: MapCoord) -> None:
        """Order the entity to walk to ``coord``."""
        self._send(MoveMessage(self.id, coord))

    def collect(self, coord: MapCoord, resource_name: str) -> None:
        """Order the entity to collect ``resource_name`` near ``coord``."""
        self._send(CollectMessage(self.id, coord, resource_name))

    def attack(self, target_id: int) -> None:
        """Order the entity to attack ``target_id``."""
        self._send(AttackMessage(self.id, target_id))

    @abstractmethod
    def moved(self, coord: RealCoord) -> None:
        """The precise coordinate changed."""

    def map_moved(self, start: MapCoord, end: MapCoord) -> None:
        """The entity moved from one map cell to another."""

    def hp_changed(self, hp: int) -> None:
        """Hit points changed."""


class Player:
    """Client view of one player."""

    def __init__(self, message: PlayerMessage) -> None:
        self.message = message

    @property
    def name(self) -> str:
        return self.message.name

    @property
    def spot(self) -> int:
        return self.message.spot

    @property
    def type(self) -> PlayerType:
        return self.message.type


def _move_ends(message: Message) -> tuple[MapCoord, MapCoord]:
    # the source and destination cells are the last two fields of a map move
    start, end = dataclasses.fields(message)[-2:]
    return getattr(message, start.name), getattr(message, end.name)


class Game(ABC):
    """Receives game messages and turns them into hook calls."""

    def __init__(self, resources_context: list[str], send: Send) -> None:
        self.resources_context = resources_context
        self.send = send
        self.registered_players: dict[int, PlayerMessage] = {}
        self.players: dict[int, Player] = {}
        self.entities: dict[int, Entity] = {}

    def entity(self, entity_id: int) -> Entity:
        """The entity with this id; KeyError if unknown."""
        return self.entities[entity_id]

    def receive_message(self, message: Message) -> None:
        """Handle one game related message."""
        message_type = message.message_type
        if message_type == MessageType.PLAYER:
            log.debug("player added: %s%s", message.spot, "*" if message.type == PlayerType.SELF else "")
            self.registered_players[message.spot] = message
        elif message_type == MessageType.MAP:
            log.debug("map received")
            self.on_map_received(message.map)
        elif message_type == MessageType.START:
            log.debug("game started")
            self.on_game_started()
        elif message_type == MessageType.ENTITY:
            log.debug("entity added: %s", message.id)
            entity = self.on_entity_added(message)
            self.entities[entity.id] = entity
        elif message_type == MessageType.RESOURCES:
            log.debug("resources updated")
            self.on_resources_changed(message.resources)
        elif message_type == MessageType.MINE_AMOUNT:
            log.debug("mine info updated: %s = %s", message.id, message.amount)
            self.on_mine_amount_changed(message.id, message.amount)
        elif message_type == MessageType.OBJECT_REMOVED:
            log.debug("object removed: %s", message.id)
            self.on_object_removed(message.id)
        elif message_type == MessageType.MOVE:
            log.debug("entity move started: %s", message.id)
            start, end = _move_ends(message)
            self.entities[message.id].map_moved(start, end)
        elif message_type == MessageType.REAL_MOVE:
            log.debug("entity move finished: %s", message.id)
            self.entities[message.id].moved(message.coord)
        elif message_type == MessageType.HP:
            log.debug("entity hp: %s = %s", message.id, message.hp)
            self.entities[message.id].hp_changed(message.hp)
        else:
            log.error("Unable to handle message: %s", message_type.name)

    def on_map_received(self, game_map) -> None:
        """Prepare the map view; creates the registered players."""
        for message in self.registered_players.values():
            player = self.on_player_added(message)
            self.players[player.spot] = player
        self.registered_players.clear()

    @abstractmethod
    def on_game_started(self) -> None:
        """Show the game screen."""

    @abstractmethod
    def on_player_added(self, message: PlayerMessage) -> Player:
        """Create a player slot."""

    @abstractmethod
    def on_entity_added(self, message: EntityMessage) -> Entity:
        """Create an entity slot."""

    def on_resources_changed(self, resources: Resources) -> None:
        """The player's resources changed."""

    def on_mine_amount_changed(self, object_id: int, amount: int) -> None:
        """The amount left in a mine changed."""

    @abstractmethod
    def on_object_removed(self, object_id: int) -> None:
        """An object left the map."""