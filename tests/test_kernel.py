import asyncio
import io
import logging

import pytest

from strategix.config import Config
from strategix.connection import encode_frame, read_message
from strategix.coords import MapCoord
from strategix.info import EntityInfo, HealthFeatureInfo, TechTree
from strategix.kernel import Kernel
from strategix.messages import (
    ContextMessage,
    EmptyMessage,
    EntityMessage,
    GameMessage,
    MapContext,
    MapMessage,
    MessageType,
    MessageVector,
    MoveMessage,
    PlayerMessage,
    PlayerType,
)


def _map_text():
    rows = "\n".join(" ".join(["0"] * 10) for _ in range(10))
    return (
        "Strategix Map\n0.0.1\n\n"
        "1\n0 grass 1\n\n"
        "10 10\n"
        f"{rows}\n\n"
        "1\n2 3 worker 1\n\n"
        "0\n"
    )


@pytest.fixture
def maps_dir(tmp_path):
    directory = tmp_path / "maps"
    directory.mkdir()
    (directory / "arena.map").write_text(_map_text(), encoding="utf-8")
    return directory


def _config(maps_path):
    tree = TechTree("elves")
    tree.add_node(EntityInfo(name="worker", kind="unit", feature_infos={"health": HealthFeatureInfo(25, 0.0)}))
    return Config(
        server_port=0,
        maps_path=str(maps_path),
        resources_context=["gold", "wood"],
        tech_trees={"elves": tree},
    )


async def _send(writer, message):
    writer.write(encode_frame(message))
    await writer.drain()


async def _read(reader):
    return await asyncio.wait_for(read_message(reader), 3)


def test_next_player_id_counts_from_one(maps_dir):
    kernel = Kernel(_config(maps_dir))
    assert [kernel.next_player_id() for _ in range(3)] == [1, 2, 3]


def test_load_map_contexts_describes_map_files(maps_dir):
    kernel = Kernel(_config(maps_dir))
    assert kernel.load_map_contexts() == [MapContext("arena", 10, 10, 1)]
    assert kernel.map_contexts == [MapContext("arena", 10, 10, 1)]


def test_load_map_contexts_of_missing_directory_is_empty(tmp_path):
    kernel = Kernel(_config(tmp_path / "absent"))
    assert kernel.load_map_contexts() == []


def test_print_info_lists_maps_and_races(maps_dir):
    kernel = Kernel(_config(maps_dir))
    kernel.load_map_contexts()
    out = io.StringIO()
    kernel.print_info(out)
    assert out.getvalue() == "\nMaps: \narena\n\nRace names: \nelves\n"


def test_sending_nothing_is_an_error(maps_dir):
    kernel = Kernel(_config(maps_dir))
    with pytest.raises(ValueError):
        kernel.send_one(None, 1)
    with pytest.raises(ValueError):
        kernel.send_all(None)


def test_command_without_game_is_logged(maps_dir, caplog):
    caplog.set_level(logging.ERROR)
    kernel = Kernel(_config(maps_dir))
    kernel.receive_message(MoveMessage(1, MapCoord(0, 0)), 7)
    assert kernel.game is None
    assert "No game" in caplog.text


def test_game_on_unknown_map_is_not_created(maps_dir, caplog):
    caplog.set_level(logging.ERROR)
    kernel = Kernel(_config(maps_dir))
    kernel.receive_message(GameMessage(map_name="missing", creator_name="user 1"), 3)
    assert kernel.game is None
    assert kernel.games == {}
    assert caplog.records


def test_adding_game_registers_it_with_id_one(maps_dir):
    kernel = Kernel(_config(maps_dir))
    kernel.receive_message(GameMessage(id=9, started=True, map_name="arena", creator_name="user 1"), 3)
    assert kernel.games == {1: GameMessage(1, False, "arena", "user 1")}
    assert kernel.game.map.name == "arena"


@pytest.mark.asyncio
async def test_client_session_from_context_to_start(maps_dir):
    kernel = Kernel(_config(maps_dir))
    await kernel.start()
    try:
        reader, writer = await asyncio.open_connection("127.0.0.1", kernel.server.port)

        await _send(writer, EmptyMessage(MessageType.GET_CONTEXT))
        context = await _read(reader)
        assert isinstance(context, ContextMessage)
        assert context.resources_context == ["gold", "wood"]
        assert context.map_contexts == [MapContext("arena", 10, 10, 1)]
        assert await _read(reader) == MessageVector([])

        await _send(writer, GameMessage(map_name="arena", creator_name="user 1"))
        assert await _read(reader) == GameMessage(1, False, "arena", "user 1")

        await _send(writer, PlayerMessage(game_id=1, type=PlayerType.SELF))
        own = await _read(reader)
        assert (own.type, own.spot, own.race) == (PlayerType.SELF, 1, "elves")
        assert own.name.startswith("Player")
        other = await _read(reader)
        assert (other.type, other.spot, other.name) == (PlayerType.HUMAN, 1, own.name)

        await _send(writer, EmptyMessage(MessageType.JOIN))
        map_message = await _read(reader)
        assert isinstance(map_message, MapMessage)
        assert (map_message.map.name, map_message.map.width, map_message.map.length) == ("arena", 10, 10)
        assert await _read(reader) == EntityMessage(1, 1, 25)
        assert await _read(reader) == EmptyMessage(MessageType.START)

        writer.close()
        await writer.wait_closed()
    finally:
        await kernel.stop()


@pytest.mark.asyncio
async def test_run_returns_after_stop(maps_dir):
    kernel = Kernel(_config(maps_dir))
    task = asyncio.create_task(kernel.run())
    loop = asyncio.get_running_loop()
    deadline = loop.time() + 2
    while kernel.server.port is None:
        assert loop.time() < deadline
        await asyncio.sleep(0.01)
    port = kernel.server.port
    await kernel.stop()
    await asyncio.wait_for(task, 2)
    assert task.done()
    with pytest.raises(OSError):
        await asyncio.open_connection("127.0.0.1", port)