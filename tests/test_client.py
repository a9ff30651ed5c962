import asyncio

import pytest

from strategix.client import Client
from strategix.connection import encode_frame, read_message
from strategix.messages import GameMessage, MessageType


async def _serve(handler):
    server = await asyncio.start_server(handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, port


async def _shutdown(server):
    server.close()
    await server.wait_closed()


@pytest.mark.asyncio
async def test_connect_requests_context_first():
    received = []
    got = asyncio.Event()

    async def handler(reader, writer):
        received.append(await read_message(reader))
        got.set()
        await reader.read()
        writer.close()

    server, port = await _serve(handler)
    client = Client(lambda message: None)
    await client.connect("127.0.0.1", port)
    assert client.connected is True
    await asyncio.wait_for(got.wait(), 5)
    await client.close()
    await _shutdown(server)

    assert client.connected is False
    assert received[0].message_type == MessageType.GET_CONTEXT


@pytest.mark.asyncio
async def test_messages_from_server_reach_callback():
    got = asyncio.Event()
    messages = []

    def on_message(message):
        messages.append(message)
        got.set()

    async def handler(reader, writer):
        await read_message(reader)
        writer.write(encode_frame(GameMessage(id=1, started=False, map_name="arena", creator_name="host")))
        await writer.drain()
        await reader.read()
        writer.close()

    server, port = await _serve(handler)
    client = Client(on_message)
    await client.connect("127.0.0.1", port)
    assert client.connected is True
    await asyncio.wait_for(got.wait(), 5)
    await client.close()
    await _shutdown(server)

    assert client.connected is False
    assert messages[0].message_type == MessageType.GAME
    assert messages[0].map_name == "arena"
    assert messages[0].creator_name == "host"


@pytest.mark.asyncio
async def test_send_and_close_deliver_messages_in_order():
    received = []
    done = asyncio.Event()

    async def handler(reader, writer):
        while True:
            message = await read_message(reader)
            if message is None:
                break
            received.append(message)
            if message.message_type == MessageType.EXIT:
                break
        done.set()
        writer.close()

    server, port = await _serve(handler)
    client = Client(lambda message: None)
    await client.connect("127.0.0.1", port)
    await client.send(GameMessage(id=0, started=False, map_name="plain", creator_name="me"))
    await client.close()
    await asyncio.wait_for(done.wait(), 5)
    await _shutdown(server)

    assert [m.message_type for m in received] == [MessageType.GET_CONTEXT, MessageType.GAME, MessageType.EXIT]
    assert received[1].map_name == "plain"
    assert client.connected is False


@pytest.mark.asyncio
async def test_send_null_message_raises():
    client = Client(lambda message: None)
    with pytest.raises(ValueError):
        await client.send(None)