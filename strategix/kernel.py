"""The game server: configuration, map list, the running game and its clock."""

from __future__ import annotations

import argparse
import asyncio
import itertools
import logging
import sys
import time
from collections import deque
from pathlib import Path
from typing import Optional, TextIO

from .config import Config, load_config
from .gamekernel import GameError, GameKernel
from .gamemap import Map
from .messages import (
    ContextMessage,
    GameMessage,
    MapContext,
    Message,
    MessageType,
    MessageVector,
)
from .server import Server

log = logging.getLogger(__name__)

MIN_TICK = 0.042  # seconds between game ticks
LISTEN_HOST = "0.0.0.0"
DEFAULT_CONFIG_PATH = "config/strategix.json"


class Kernel:
    """Serves clients, creates the game and drives it with a steady clock."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.server = Server(self.receive_message)
        self.map_contexts: list[MapContext] = []
        self.games: dict[int, GameMessage] = {}
        self.game: Optional[GameKernel] = None
        self._player_ids = itertools.count(1)
        self._outbox: deque[tuple[Message, Optional[int]]] = deque()
        self._wakeup: Optional[asyncio.Event] = None
        self._stopped: Optional[asyncio.Event] = None
        self._tasks: list[asyncio.Task] = []

    def load_map_contexts(self) -> list[MapContext]:
        """Describe every ``.map`` file below the configured maps path."""
        contexts: list[MapContext] = []
        try:
            for path in sorted(Path(self.config.maps_path).rglob("*.map")):
                if path.is_file():
                    game_map = Map.from_file(path)
                    contexts.append(
                        MapContext(game_map.name, game_map.width, game_map.length, len(game_map.player_spots))
                    )
        except OSError as exc:
            log.error("%s", exc)
        self.map_contexts = contexts
        return contexts

    async def start(self) -> None:
        """Read the maps, start listening and start the clock."""
        self.load_map_contexts()
        self._wakeup = asyncio.Event()
        self._stopped = asyncio.Event()
        if self._outbox:
            self._wakeup.set()
        await self.server.start(LISTEN_HOST, self.config.server_port)
        self._tasks = [
            asyncio.create_task(self._deliver()),
            asyncio.create_task(self._tick_loop()),
        ]

    async def run(self) -> None:
        """Start and serve until :meth:`stop` is called."""
        await self.start()
        try:
            await self._stopped.wait()
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop the clock and the server."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.server.stop()
        if self._stopped is not None:
            self._stopped.set()

    def tick(self, seconds: float) -> None:
        """Advance the game; errors are logged."""
        if self.game is None:
            return
        try:
            self.game.tick(seconds)
        except Exception as exc:
            log.error("Error during tick: %s", exc)

    def print_info(self, file: Optional[TextIO] = None) -> None:
        """Write the known maps and races."""
        out = sys.stdout if file is None else file
        print("\nMaps: ", file=out)
        for context in self.map_contexts:
            print(context.name, file=out)
        print("\nRace names: ", file=out)
        for race_name in self.config.race_names():
            print(race_name, file=out)

    def next_player_id(self) -> int:
        return next(self._player_ids)

    def send_one(self, message: Message, player_id: int) -> None:
        """Queue ``message`` for one player."""
        if message is None:
            raise ValueError("Writing null message.")
        self._enqueue(message, player_id)

    def send_all(self, message: Message) -> None:
        """Queue ``message`` for every player."""
        if message is None:
            raise ValueError("Writing null message.")
        self._enqueue(message, None)

    def receive_message(self, message: Message, connection_id: int) -> None:
        """Handle a message from a client; errors are logged."""
        try:
            message_type = message.message_type
            if message_type == MessageType.GET_CONTEXT:
                self._context_requested(connection_id)
            elif message_type == MessageType.GAME:
                self._add_game(message, connection_id)
            elif self.game is None:
                raise GameError(f"No game has been created for message: {message_type.name}")
            else:
                self.game.receive_message(message, connection_id)
        except Exception as exc:
            log.error("%s", exc)

    def _enqueue(self, message: Message, player_id: Optional[int]) -> None:
        self._outbox.append((message, player_id))
        if self._wakeup is not None:
            self._wakeup.set()

    async def _deliver(self) -> None:
        while True:
            await self._wakeup.wait()
            self._wakeup.clear()
            while self._outbox:
                message, player_id = self._outbox.popleft()
                try:
                    if player_id is None:
                        await self.server.send_all(message)
                    else:
                        await self.server.send_one(message, player_id)
                except Exception as exc:
                    log.error("Unable to send message: %s", exc)

    async def _tick_loop(self) -> None:
        last = time.monotonic()
        while True:
            await asyncio.sleep(MIN_TICK)
            now = time.monotonic()
            self.tick(round(now - last, 3))
            last = now

    def _context_requested(self, connection_id: int) -> None:
        log.debug("context requested from: %s", connection_id)
        context = ContextMessage(list(self.config.resources_context), list(self.map_contexts))
        self.send_one(context, connection_id)
        self.send_one(MessageVector(list(self.games.values())), connection_id)

    def _add_game(self, message: Message, connection_id: int) -> None:
        if not isinstance(message, GameMessage):
            raise GameError(f"Wrong type of GameMessage from {connection_id}")
        log.debug("new game on: %s, created by: %s", message.map_name, message.creator_name)

        message.id = 1
        message.started = False
        self.game = GameKernel(message.map_name, self.config, self)
        self.games.setdefault(1, message)
        self.send_all(message)


def main(argv=None) -> int:
    """Run the game server until interrupted."""
    parser = argparse.ArgumentParser(prog="strategix", description="Run the game server.")
    parser.add_argument("config", nargs="?", default=DEFAULT_CONFIG_PATH, help="path of the JSON configuration")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    kernel = Kernel(load_config(args.config))
    try:
        asyncio.run(kernel.run())
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        log.error("\n\t%s", exc)
        return 1
    return 0