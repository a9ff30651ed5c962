"""Server side state of one game: map, players and entities."""

from __future__ import annotations

import dataclasses
import logging
import random
from pathlib import Path
from typing import Protocol

from .config import Config
from .coords import MapCoord
from .entitykernel import EntityKernel
from .gamemap import Map
from .messages import (
    CommandMessage,
    EmptyMessage,
    MapMessage,
    Message,
    MessageType,
    PlayerMessage,
    PlayerType,
)
from .objects import MapEntity
from .playerkernel import PlayerKernel

log = logging.getLogger(__name__)


class GameError(Exception):
    """Raised for requests a game cannot carry out."""


class Messenger(Protocol):
    """Delivers messages to players and hands out player ids."""

    def send_one(self, message: Message, player_id: int) -> None:
        """Send ``message`` to one player."""

    def send_all(self, message: Message) -> None:
        """Send ``message`` to every player."""

    def next_player_id(self) -> int:
        """A fresh player id."""


class GameKernel:
    """One game running on the server."""

    def __init__(self, map_name: str, config: Config, messenger: Messenger) -> None:
        if not config.maps_path:
            raise GameError("Configuration should be loaded before adding game.")
        self.config = config
        self.messenger = messenger
        self.map = Map.from_file(Path(config.maps_path) / f"{map_name}.map")
        self.spot_ids: dict[int, int] = {}
        self.planned_players: list[PlayerMessage] = []
        self.joined_players: set[int] = set()
        self.players: dict[int, PlayerKernel] = {}
        self.entities: dict[int, EntityKernel] = {}
        self.removed_entities: list[int] = []

    def entity(self, entity_id: int) -> EntityKernel | None:
        return self.entities.get(entity_id)

    def send_one(self, message: Message, player_id: int) -> None:
        self.messenger.send_one(message, player_id)

    def send_all(self, message: Message) -> None:
        self.messenger.send_all(message)

    def receive_message(self, message: Message, player_id: int) -> None:
        """Handle a message sent by the player ``player_id``."""
        message_type = message.message_type
        if message_type == MessageType.PLAYER:
            self._add_player(message, player_id)
        elif message_type == MessageType.JOIN:
            self._handle_join(player_id)
        elif isinstance(message, CommandMessage):
            entity = self.entities.get(message.id)
            if entity is None:
                raise GameError(f"Entity with id {message.id} does not exist.")
            entity.receive_message(message)
        else:
            raise GameError(f"Unknown message: {message_type.name}")

    def tick(self, seconds: float) -> None:
        """Advance every entity, then drop those removed during the tick."""
        for entity in list(self.entities.values()):
            entity.tick(seconds)

        removed, self.removed_entities = self.removed_entities, []
        for entity_id in removed:
            entity = self.entities.pop(entity_id, None)
            if entity is None:
                raise GameError(f"Trying to destroy entity {entity_id} one more time.")
            entity.player.entity_removed(entity_id)

    def add_entity(self, map_entity: MapEntity) -> None:
        """Create the entity for a map object whose owner plays this game."""
        player_id = self.spot_ids.get(map_entity.owner_spot)
        if player_id is None:
            return
        player = self.players[player_id]
        info = player.tech_tree.node(map_entity.name)
        entity = EntityKernel(self, player, map_entity.id, info, map_entity.coord)
        player.entity_added(entity)
        self.entities[map_entity.id] = entity

    def remove_entity(self, entity_id: int) -> None:
        """Schedule removal at the end of the current tick."""
        self.removed_entities.append(entity_id)

    def _map_message(self, player_spot: int) -> MapMessage:
        return MapMessage(self.map)

    def _add_player(self, message: PlayerMessage, player_id: int) -> None:
        log.debug("add player: %s", player_id)
        if message.type == PlayerType.AI:
            player_id = self.messenger.next_player_id()

        if not message.spot:
            free = next((spot for spot in self.map.player_spots if spot not in self.spot_ids), None)
            if free is None:
                raise GameError(f"Map is already full and cannot allow one more: {player_id}")
            message.spot = free
        else:
            if message.spot not in self.map.player_spots:
                raise GameError(f"There's no map spot: {message.spot}")
            if message.spot in self.spot_ids:
                raise GameError(f"Trying to add same player twice [{message.spot}], name: {message.name}")

        if not message.race:
            races = self.config.race_names()
            if races:
                message.race = random.choice(races)

        if not message.name:
            message.name = f"Player{player_id}"

        self.spot_ids.setdefault(message.spot, player_id)
        self.planned_players.append(message)

        human = dataclasses.replace(message, type=PlayerType.HUMAN)
        self.send_one(message, player_id)
        self.send_all(human)

    def _handle_join(self, player_id: int) -> None:
        log.debug("player joined: %s", player_id)
        self.joined_players.add(player_id)

        for planned in self.planned_players:
            planned_id = self.spot_ids[planned.spot]
            if planned.type == PlayerType.HUMAN and planned_id not in self.joined_players:
                return
        self._start()

    def _start(self) -> None:
        log.debug("game is started")
        for message in self.planned_players:
            player_id = self.spot_ids[message.spot]
            if message.type == PlayerType.SELF:
                self.send_one(self._map_message(message.spot), player_id)

            self.players[player_id] = PlayerKernel(
                self,
                player_id,
                message,
                self.map,
                self.config.tech_tree(message.race),
                self.config.make_resources(),
            )
        self.planned_players.clear()

        for y in range(self.map.length):
            for x in range(self.map.width):
                obj = self.map.cell(MapCoord(x, y)).object
                if isinstance(obj, MapEntity):
                    self.add_entity(obj)
        self.send_all(EmptyMessage(MessageType.START))