# strategix

A small real-time strategy engine written in plain Python with no
dependencies outside the standard library.

The server side holds the game state: tile maps with terrains, resource
mines and player entities; entities built from configurable features
(move, collect, attack, health); A* path finding; and an asyncio TCP server
that streams game events to connected clients. The client side offers a
connection to that server and a game model (`Game`, `Entity`, `Player`)
that turns received events into methods a user interface can override.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Running the server

```
strategix-server [CONFIG]
```

`CONFIG` is the path of the JSON configuration and defaults to
`config/strategix.json`, relative to the working directory. The server
describes every `.map` file found below the configured maps directory,
listens on all interfaces at the configured port and advances game time in
ticks of about 42 ms. It stops on Ctrl+C.

The same server can be run from code:

```python
import asyncio
from strategix.config import load_config
from strategix.kernel import Kernel

kernel = Kernel(load_config("config/strategix.json"))
kernel.load_map_contexts()
kernel.print_info()          # known maps and races
asyncio.run(kernel.run())    # serve until kernel.stop() is awaited
```

The kernel runs one game at a time: a `GameMessage` from a client creates
it on the named map (replacing any previous one) and is announced to every
client with id 1.

### Configuration

```json
{
    "server_port": 10101,
    "maps_path": "maps",
    "resource_types": ["gold", "tree"],
    "races": [
        {
            "name": "az",
            "entities": [
                {
                    "name": "az_base",
                    "kind": "building",
                    "resources": {"gold": 400},
                    "features": {
                        "health": {"hp": 1000, "recovery": 0}
                    }
                },
                {
                    "name": "az_worker",
                    "kind": "entity",
                    "resources": {"gold": 50},
                    "features": {
                        "move": {"speed": 2.0},
                        "collect": {"speed": 10, "radius": 1.5, "capacities": {"gold": 20}},
                        "health": {"hp": 100, "recovery": 1},
                        "attack": {"damage": 5, "speed": 1.0, "radius": 1.5}
                    }
                }
            ]
        }
    ]
}
```

`load_config` never raises for a bad file: problems are logged and the
returned `Config` keeps whatever was read before them. Resource names in
`resources` and `capacities` that are not listed in `resource_types` are
skipped, as are unknown feature names. Entities of kind `building` are the
collectors that workers carry resources back to. `Config` also offers
`race_names()`, `tech_tree(name)`, `has_resource(name)` and
`make_resources()`.

### Map files

A map is a plain text file:

```
Strategix Map
0.0.1

<number of terrains>
<id> <name> <quality>
...

<width> <length>
<terrain id for each cell, row by row>

<number of entities>
<x> <y> <entity name> <owner spot>
...

<number of mines>
<x> <y> <mine name> <amount>
...
```

Maps must be between 10x10 and 200x200 cells; invalid data raises
`strategix.gamemap.MapError`. Terrains of quality 0 cannot be crossed;
higher quality means faster movement. The owner spots of the entities are
the player spots the map offers. A new, empty map built with
`Map(name, width, length, terrains)` needs a terrain called `none`, which
fills every cell.

## Using the library

```python
from strategix.coords import MapCoord
from strategix.gamemap import Map
from strategix.pathfinding import PathFinder

game_map = Map.from_file("maps/valley.map")
print(game_map.name, game_map.width, game_map.length, game_map.player_spots)

finder = PathFinder(game_map)
path = finder.find_path(MapCoord(1, 1), MapCoord(8, 6), 0)
print("reaches the goal:", path.is_whole)
while len(path):
    print(path.take_next())

game_map.save_to_file("copy.map")
```

The path search checks at most 256 cells; when the goal is not reached the
path leads to the closest cell found and `is_whole` is false.

Other modules:

- `strategix.coords` – `MapCoord` (cells) and `RealCoord` (precise positions).
- `strategix.objects` – `MapEntity` and `MapMine`, the objects held by cells.
- `strategix.info` – feature descriptions, `EntityInfo` and `TechTree`.
- `strategix.messages` – every message type; `encode` turns a message into
  bytes and `decode` turns bytes back into a message.
- `strategix.connection` – `encode_frame` prefixes an encoded message with
  its size as a little-endian 32-bit integer; `read_message` reads one such
  frame from an asyncio stream.
- `strategix.gamekernel`, `strategix.playerkernel`, `strategix.entitykernel`,
  `strategix.features` – the game simulation driven by the server.

## Writing a client

`strategix.client.Client` opens a connection (default `localhost:10101`),
asks the server for its context and passes every received message to a
callback. `strategix.clientgame.Game` handles in-game messages: subclass it
and implement `on_game_started`, `on_player_added`, `on_entity_added` and
`on_object_removed` (and optionally `on_resources_changed`,
`on_mine_amount_changed`); subclass `Entity` and implement `moved` (and
optionally `map_moved`, `hp_changed`). An `Entity` sends `move`, `collect`
and `attack` orders through the function it was given.

```python
import asyncio
from strategix.client import Client
from strategix.clientgame import Entity, Game, Player
from strategix.messages import (
    ContextMessage, EmptyMessage, GameMessage, MessageType,
    MessageVector, PlayerMessage, PlayerType,
)

class MyEntity(Entity):
    def moved(self, coord):
        print(self.id, "at", coord)

class MyGame(Game):
    def on_game_started(self):
        print("started")
    def on_player_added(self, message):
        return Player(message)
    def on_entity_added(self, message):
        return MyEntity(message, self.send)
    def on_object_removed(self, object_id):
        print("removed", object_id)

async def play():
    pending = []
    game = MyGame([], pending.append)
    messages = asyncio.Queue()
    client = Client(messages.put_nowait)
    await client.connect()
    await client.send(GameMessage(map_name="valley", creator_name="player"))
    while True:
        message = await messages.get()
        items = message if isinstance(message, MessageVector) else [message]
        for item in items:
            if isinstance(item, ContextMessage):
                game.resources_context = item.resources_context
            elif isinstance(item, GameMessage):
                await client.send(PlayerMessage(game_id=item.id, type=PlayerType.SELF))
                await client.send(EmptyMessage(MessageType.JOIN))
            else:
                game.receive_message(item)
        while pending:
            await client.send(pending.pop(0))

asyncio.run(play())
```

## What the package does not do

- There is no ready-made lobby or session layer on the client side: a
  client program handles `ContextMessage`, `GameMessage` and
  `MessageVector` itself and sends the `GameMessage`, `PlayerMessage` and
  `EmptyMessage(MessageType.JOIN)` that create, select and join a game, as
  in the example above. `Game.receive_message` logs these lobby messages as
  unhandled.
- There is no graphical interface: no game window and no map editor. Maps
  are written as text files or built and saved with `Map`.
- The server keeps no storage beyond the map files and configuration it
  reads; a running game lives only in memory.