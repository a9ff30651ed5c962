"""Client side network session with the game server."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from .connection import Connection
from .messages import EmptyMessage, Message, MessageType

log = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 10101

OnClientMessage = Callable[[Message], Union[None, Awaitable[Any]]]


class Client:
    """A single connection to the server; received messages go to ``on_message``."""

    def __init__(self, on_message: OnClientMessage) -> None:
        self._on_message = on_message
        self._connection: Optional[Connection] = None
        self._reader_task: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        """Whether a session is open."""
        return self._connection is not None

    async def connect(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        """Open the session and ask the server for its context."""
        if self._connection is not None:
            raise RuntimeError("The client is already connected.")
        reader, writer = await asyncio.open_connection(host, port)
        self._connection = Connection(reader, writer, self._received)
        log.debug("Starting client")
        await self._connection.write(EmptyMessage(MessageType.GET_CONTEXT))
        self._reader_task = asyncio.create_task(self._connection.run())

    async def send(self, message: Message) -> None:
        """Send ``message`` to the server; nothing is sent without a session."""
        if message is None:
            raise ValueError("Writing null message.")
        if self._connection is not None:
            await self._connection.write(message)

    async def close(self) -> None:
        """Tell the server the client leaves and end the session."""
        connection, self._connection = self._connection, None
        if connection is not None:
            await connection.write(EmptyMessage(MessageType.EXIT))
            await connection.close()
        task, self._reader_task = self._reader_task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    def _received(self, message: Message, _connection_id: int):
        return self._on_message(message)