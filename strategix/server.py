"""TCP server that keeps one connection per client."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .connection import Connection, OnMessage
from .messages import Message

log = logging.getLogger(__name__)


class Server:
    """Accepts clients and passes every message they send to ``on_message``."""

    def __init__(self, on_message: OnMessage) -> None:
        self._on_message = on_message
        self._server: Optional[asyncio.base_events.Server] = None
        self.connections: dict[int, Connection] = {}
        self._handlers: set[asyncio.Task] = set()

    @property
    def port(self) -> int | None:
        """Port the server listens on, or None when it is not running."""
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self, host: str, port: int) -> None:
        """Start listening; clients are accepted in the background."""
        self._server = await asyncio.start_server(self._accept, host, port)
        log.debug("starting server")

    async def stop(self) -> None:
        """Close every connection and stop listening."""
        server, self._server = self._server, None
        if server is not None:
            server.close()
        for connection in list(self.connections.values()):
            await connection.close()
        if self._handlers:
            await asyncio.gather(*self._handlers, return_exceptions=True)
        if server is not None:
            await server.wait_closed()
        log.debug("stopping server")

    async def send_one(self, message: Message, connection_id: int) -> None:
        """Send ``message`` to one client; unknown ids are logged."""
        connection = self.connections.get(connection_id)
        if connection is None:
            log.error("Player with id %d is not connected!", connection_id)
            return
        await connection.write(message)

    async def send_all(self, message: Message) -> None:
        """Send ``message`` to every connected client."""
        for connection in list(self.connections.values()):
            await connection.write(message)

    async def _accept(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._handlers.add(task)
        connection = Connection(reader, writer, self._on_message, self._closed)
        self.connections[connection.id] = connection
        try:
            await connection.run()
        finally:
            await connection.close()
            if task is not None:
                self._handlers.discard(task)

    def _closed(self, connection_id: int) -> None:
        self.connections.pop(connection_id, None)