import asyncio

import pytest

from strategix.connection import Connection, encode_frame, read_message
from strategix.coords import MapCoord
from strategix.messages import (
    EmptyMessage,
    GameMessage,
    MessageError,
    MessageType,
    MoveMessage,
    encode,
)


class _Writer:
    def __init__(self):
        self.data = bytearray()
        self.closed = False

    def write(self, data):
        self.data += data

    async def drain(self):
        pass

    def close(self):
        self.closed = True

    async def wait_closed(self):
        pass

    def is_closing(self):
        return self.closed


def _reader(data):
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return reader


def test_frame_prefixes_size():
    message = GameMessage(1, False, "arena", "alice")
    body = encode(message)
    frame = encode_frame(message)
    assert frame[:4] == len(body).to_bytes(4, "little")
    assert frame[4:] == body


def test_exit_frame_bytes():
    assert encode_frame(EmptyMessage(MessageType.EXIT)) == bytes([5, 0, 0, 0, 1, 1, 0, 0, 0])


@pytest.mark.asyncio
async def test_read_message_round_trip():
    message = MoveMessage(3, MapCoord(4, 5))
    reader = _reader(encode_frame(message))
    assert await read_message(reader) == message
    assert await read_message(reader) is None


@pytest.mark.asyncio
async def test_read_message_truncated():
    frame = encode_frame(GameMessage(1, True, "arena", "alice"))
    with pytest.raises(ConnectionError):
        await read_message(_reader(frame[:-2]))


@pytest.mark.asyncio
async def test_read_message_bad_body():
    with pytest.raises(MessageError):
        await read_message(_reader(bytes([1, 0, 0, 0, 250])))


@pytest.mark.asyncio
async def test_write_sends_frame():
    writer = _Writer()
    connection = Connection(_reader(b""), writer, lambda m, i: None)
    message = GameMessage(2, False, "arena", "bob")
    await connection.write(message)
    assert bytes(writer.data) == encode_frame(message)
    assert await read_message(_reader(bytes(writer.data))) == message


@pytest.mark.asyncio
async def test_run_delivers_until_exit():
    first = MoveMessage(1, MapCoord(2, 2))
    second = GameMessage(1, False, "arena", "alice")
    after = MoveMessage(9, MapCoord(0, 0))
    data = encode_frame(first) + encode_frame(second) + encode_frame(EmptyMessage(MessageType.EXIT))
    data += encode_frame(after)
    received, closed = [], []
    connection = Connection(_reader(data), _Writer(), lambda m, i: received.append((m, i)), closed.append)
    await connection.run()
    assert received == [(first, connection.id), (second, connection.id)]
    assert closed == [connection.id]


@pytest.mark.asyncio
async def test_run_stops_on_garbage():
    received, closed = [], []
    connection = Connection(
        _reader(bytes([1, 0, 0, 0, 250])), _Writer(), lambda m, i: received.append(m), closed.append
    )
    await connection.run()
    assert received == []
    assert closed == [connection.id]


@pytest.mark.asyncio
async def test_run_accepts_async_handler():
    received = []

    async def handle(message, connection_id):
        received.append(message)

    message = MoveMessage(1, MapCoord(2, 2))
    connection = Connection(_reader(encode_frame(message)), _Writer(), handle)
    await connection.run()
    assert received == [message]


@pytest.mark.asyncio
async def test_close_closes_writer():
    writer = _Writer()
    connection = Connection(_reader(b""), writer, lambda m, i: None)
    await connection.close()
    assert writer.closed is True


def test_ids_increase():
    first = Connection(asyncio.StreamReader(), _Writer(), lambda m, i: None)
    second = Connection(asyncio.StreamReader(), _Writer(), lambda m, i: None)
    assert second.id > first.id