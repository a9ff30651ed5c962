"""Real-time strategy engine: maps, path finding, entity features, an asyncio game server and a client-side game model."""

__version__ = "0.1.0"