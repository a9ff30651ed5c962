"""Framed message exchange over an asyncio stream."""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
import struct
from typing import Any, Awaitable, Callable, Optional, Union

from .messages import EmptyMessage, Message, MessageError, MessageType, decode, encode

log = logging.getLogger(__name__)

RECOMMENDED_MESSAGE_LIMIT = 10_000_000  # about 10 MB

_SIZE = struct.Struct("<i")
_connection_ids = itertools.count(1)

OnMessage = Callable[[Message, int], Union[None, Awaitable[Any]]]
OnClosed = Callable[[int], Any]


def encode_frame(message: Message) -> bytes:
    """Message body preceded by its size as a little-endian 32-bit integer."""
    body = encode(message)
    try:
        return _SIZE.pack(len(body)) + body
    except struct.error:
        raise MessageError(f"Message is too long: {len(body)} bytes.") from None


async def read_message(reader: asyncio.StreamReader) -> Message | None:
    """Read one framed message; None when the stream ends between messages."""
    try:
        header = await reader.readexactly(_SIZE.size)
    except asyncio.IncompleteReadError as exc:
        if not exc.partial:
            return None
        raise ConnectionError("unable to read the message size") from None

    (size,) = _SIZE.unpack(header)
    if size < 0:
        raise ConnectionError(f"invalid message size: {size}")
    try:
        body = await reader.readexactly(size)
    except asyncio.IncompleteReadError:
        raise ConnectionError("unable to read the whole buffer") from None
    return decode(body)


class Connection:
    """One peer: reads messages and hands them to ``on_message``."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        on_message: OnMessage,
        on_closed: Optional[OnClosed] = None,
    ) -> None:
        self.id = next(_connection_ids)
        self._reader = reader
        self._writer = writer
        self._on_message = on_message
        self._on_closed = on_closed

    async def write(self, message: Message) -> None:
        """Send one message; write errors are logged."""
        frame = encode_frame(message)
        if len(frame) - _SIZE.size > RECOMMENDED_MESSAGE_LIMIT:
            log.info("Writing very long message. Try to shrink format of %s", message.message_type.name)
        try:
            self._writer.write(frame)
            await self._writer.drain()
        except (ConnectionError, OSError) as exc:
            log.error("socket write error: %s", exc)

    async def run(self) -> None:
        """Read until the peer leaves, sends EXIT or sends something unreadable."""
        try:
            while True:
                try:
                    message = await read_message(self._reader)
                except MessageError as exc:
                    log.error("Parse message error: %s", exc)
                    return
                except (ConnectionError, OSError) as exc:
                    log.error("socket read error: %s", exc)
                    return
                if message is None:
                    return
                if isinstance(message, EmptyMessage) and message.type == MessageType.EXIT:
                    return
                try:
                    result = self._on_message(message, self.id)
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:
                    log.error("Error while handling message: %s", exc)
                    return
        finally:
            if self._on_closed is not None:
                self._on_closed(self.id)

    async def close(self) -> None:
        """Close the underlying stream."""
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError):
            pass