"""Messages exchanged between the kernel and users, and their binary form."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, ClassVar

from .coords import MapCoord, RealCoord
from .gamemap import Map, MapError
from .resources import Resources


class MessageType(IntEnum):
    VECTOR = 0  # vector of messages
    EXIT = 1  # exit from client
    GET_CONTEXT = 2  # request kernel context
    CONTEXT = 3  # kernel context
    GAME = 4  # game description
    PLAYER = 5  # player description
    JOIN = 6  # join game
    MAP = 7  # map description
    ENTITY = 8  # entity description
    START = 9  # start game
    RESOURCES = 10  # player resources
    MINE_AMOUNT = 11  # mine amount changed
    OBJECT_REMOVED = 12  # object removed
    MOVE = 13  # entity map placing change
    REAL_MOVE = 14  # entity precise coordinate move
    COLLECT = 15  # collect mine
    ATTACK = 16  # attack other entity
    HP = 17  # hit points change


class PlayerType(IntEnum):
    SELF = 0  # human player controlling the interface
    HUMAN = 1  # other human players
    AI = 2


@dataclass
class MapContext:
    name: str
    width: int
    height: int
    players_number: int


class MessageError(Exception):
    """Raised when a message cannot be encoded or decoded."""


class Message:
    """Base of all messages."""

    TYPE: ClassVar[MessageType]

    @property
    def message_type(self) -> MessageType:
        return type(self).TYPE


@dataclass
class MessageVector(Message):
    TYPE: ClassVar[MessageType] = MessageType.VECTOR
    messages: list[Message] = field(default_factory=list)

    def __iter__(self):
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)


@dataclass
class EmptyMessage(Message):
    """A message carrying nothing but its type."""

    type: MessageType

    @property
    def message_type(self) -> MessageType:
        return self.type


@dataclass
class ContextMessage(Message):
    TYPE: ClassVar[MessageType] = MessageType.CONTEXT
    resources_context: list[str] | None = None
    map_contexts: list[MapContext] | None = None


@dataclass
class GameMessage(Message):
    TYPE: ClassVar[MessageType] = MessageType.GAME
    id: int = 0
    started: bool = False
    map_name: str = ""
    creator_name: str = ""


@dataclass
class PlayerMessage(Message):
    TYPE: ClassVar[MessageType] = MessageType.PLAYER
    game_id: int = 0
    type: PlayerType = PlayerType.SELF
    spot: int = 0
    name: str = ""
    race: str = ""


@dataclass
class MapMessage(Message):
    TYPE: ClassVar[MessageType] = MessageType.MAP
    map: Map | None = None


@dataclass
class EntityMessage(Message):
    TYPE: ClassVar[MessageType] = MessageType.ENTITY
    player_spot: int = 0
    id: int = 0
    max_hp: int = 0


@dataclass
class ResourcesMessage(Message):
    TYPE: ClassVar[MessageType] = MessageType.RESOURCES
    resources: Resources = field(default_factory=Resources)


@dataclass
class CommandMessage(Message):
    """A message about one object, identified by ``id``."""

    id: int = 0


@dataclass
class MineAmountMessage(CommandMessage):
    TYPE: ClassVar[MessageType] = MessageType.MINE_AMOUNT
    amount: int = 0


@dataclass
class ObjectRemovedMessage(CommandMessage):
    TYPE: ClassVar[MessageType] = MessageType.OBJECT_REMOVED


@dataclass
class MoveMessage(CommandMessage):
    TYPE: ClassVar[MessageType] = MessageType.MOVE
    coord: MapCoord = MapCoord()


@dataclass
class MapMoveMessage(CommandMessage):
    TYPE: ClassVar[MessageType] = MessageType.MOVE
    start: MapCoord = MapCoord()
    end: MapCoord = MapCoord()


@dataclass
class RealMoveMessage(CommandMessage):
    TYPE: ClassVar[MessageType] = MessageType.REAL_MOVE
    coord: RealCoord = RealCoord()


@dataclass
class CollectMessage(CommandMessage):
    TYPE: ClassVar[MessageType] = MessageType.COLLECT
    coord: MapCoord = MapCoord()
    resource_name: str = ""


@dataclass
class AttackMessage(CommandMessage):
    TYPE: ClassVar[MessageType] = MessageType.ATTACK
    target_id: int = 0


@dataclass
class HpMessage(CommandMessage):
    TYPE: ClassVar[MessageType] = MessageType.HP
    hp: int = 0


# Binary form ------------------------------------------------------------------

_U8 = struct.Struct("<B")
_I32 = struct.Struct("<i")
_U32 = struct.Struct("<I")
_F32 = struct.Struct("<f")
_BOOL_FORMAT = struct.Struct("<?")


class _Writer:
    def __init__(self) -> None:
        self.data = bytearray()

    def pack(self, fmt: struct.Struct, value: Any) -> None:
        try:
            self.data += fmt.pack(value)
        except struct.error as exc:
            raise MessageError(f"Value {value!r} cannot be encoded: {exc}") from None

    def raw(self, chunk: bytes) -> None:
        self.data += chunk


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise MessageError("Message data is truncated.")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> Any:
        return fmt.unpack(self.take(fmt.size))[0]


@dataclass(frozen=True)
class _Codec:
    write: Callable[[_Writer, Any], None]
    read: Callable[[_Reader], Any]


def _scalar(fmt: struct.Struct) -> _Codec:
    return _Codec(lambda w, value: w.pack(fmt, value), lambda r: r.unpack(fmt))


_INT = _scalar(_I32)
_BOOL = _scalar(_BOOL_FORMAT)
_FLOAT = _scalar(_F32)


def _write_str(w: _Writer, value: str) -> None:
    data = value.encode("utf-8")
    w.pack(_U32, len(data))
    w.raw(data)


def _read_str(r: _Reader) -> str:
    size = r.unpack(_U32)
    try:
        return r.take(size).decode("utf-8")
    except UnicodeDecodeError:
        raise MessageError("String is not valid UTF-8.") from None


_STR = _Codec(_write_str, _read_str)


def _enum(enum_cls: type[IntEnum]) -> _Codec:
    def read(r: _Reader) -> IntEnum:
        value = r.unpack(_I32)
        try:
            return enum_cls(value)
        except ValueError:
            raise MessageError(f"Unknown {enum_cls.__name__} value: {value}") from None

    return _Codec(lambda w, value: w.pack(_I32, int(value)), read)


def _sequence(item: _Codec, factory: Callable[[Any], Any] = list) -> _Codec:
    def write(w: _Writer, values) -> None:
        w.pack(_U32, len(values))
        for value in values:
            item.write(w, value)

    def read(r: _Reader):
        return factory(item.read(r) for _ in range(r.unpack(_U32)))

    return _Codec(write, read)


def _optional(inner: _Codec) -> _Codec:
    def write(w: _Writer, value) -> None:
        w.pack(_BOOL_FORMAT, value is not None)
        if value is not None:
            inner.write(w, value)

    def read(r: _Reader):
        return inner.read(r) if r.unpack(_BOOL_FORMAT) else None

    return _Codec(write, read)


def _write_map_coord(w: _Writer, coord: MapCoord) -> None:
    w.pack(_I32, coord.x)
    w.pack(_I32, coord.y)


def _read_map_coord(r: _Reader) -> MapCoord:
    x = r.unpack(_I32)
    return MapCoord(x, r.unpack(_I32))


def _write_real_coord(w: _Writer, coord: RealCoord) -> None:
    w.pack(_F32, coord.x)
    w.pack(_F32, coord.y)


def _read_real_coord(r: _Reader) -> RealCoord:
    x = r.unpack(_F32)
    return RealCoord(x, r.unpack(_F32))


def _write_resource(w: _Writer, item: tuple[str, int]) -> None:
    _write_str(w, item[0])
    w.pack(_I32, item[1])


def _read_resource(r: _Reader) -> tuple[str, int]:
    name = _read_str(r)
    return name, r.unpack(_I32)


def _write_resources(w: _Writer, resources: Resources) -> None:
    _sequence(_Codec(_write_resource, _read_resource)).write(w, list(resources.items()))


def _read_resources(r: _Reader) -> Resources:
    return _sequence(_Codec(_write_resource, _read_resource), Resources).read(r)


def _write_map_context(w: _Writer, context: MapContext) -> None:
    _write_str(w, context.name)
    for value in (context.width, context.height, context.players_number):
        w.pack(_I32, value)


def _read_map_context(r: _Reader) -> MapContext:
    name = _read_str(r)
    width = r.unpack(_I32)
    height = r.unpack(_I32)
    return MapContext(name, width, height, r.unpack(_I32))


def _write_map(w: _Writer, game_map: Map | None) -> None:
    if game_map is None:
        raise MessageError("Map message holds no map.")
    _write_str(w, game_map.name)
    _write_str(w, game_map.save_to_string())


def _read_map(r: _Reader) -> Map:
    name = _read_str(r)
    data = _read_str(r)
    try:
        return Map.from_string(name, data)
    except MapError as exc:
        raise MessageError(str(exc)) from exc


_MAP_COORD = _Codec(_write_map_coord, _read_map_coord)
_REAL_COORD = _Codec(_write_real_coord, _read_real_coord)
_RESOURCES = _Codec(_write_resources, _read_resources)
_MAP = _Codec(_write_map, _read_map)
_MESSAGE = _Codec(lambda w, m: _write_message(w, m), lambda r: _read_message(r))

_SCHEMAS: tuple[tuple[type[Message], tuple[tuple[str, _Codec], ...]], ...] = (
    (MessageVector, (("messages", _sequence(_MESSAGE)),)),
    (EmptyMessage, (("type", _enum(MessageType)),)),
    (ContextMessage, (
        ("resources_context", _optional(_sequence(_STR))),
        ("map_contexts", _optional(_sequence(_Codec(_write_map_context, _read_map_context)))),
    )),
    (GameMessage, (("id", _INT), ("started", _BOOL), ("map_name", _STR), ("creator_name", _STR))),
    (PlayerMessage, (
        ("game_id", _INT), ("type", _enum(PlayerType)), ("spot", _INT), ("name", _STR), ("race", _STR),
    )),
    (MapMessage, (("map", _MAP),)),
    (EntityMessage, (("player_spot", _INT), ("id", _INT), ("max_hp", _INT))),
    (ResourcesMessage, (("resources", _RESOURCES),)),
    (MineAmountMessage, (("id", _INT), ("amount", _INT))),
    (ObjectRemovedMessage, (("id", _INT),)),
    (MoveMessage, (("id", _INT), ("coord", _MAP_COORD))),
    (MapMoveMessage, (("id", _INT), ("start", _MAP_COORD), ("end", _MAP_COORD))),
    (RealMoveMessage, (("id", _INT), ("coord", _REAL_COORD))),
    (CollectMessage, (("id", _INT), ("coord", _MAP_COORD), ("resource_name", _STR))),
    (AttackMessage, (("id", _INT), ("target_id", _INT))),
    (HpMessage, (("id", _INT), ("hp", _INT))),
)
_CODES = {cls: code for code, (cls, _) in enumerate(_SCHEMAS)}


def _write_message(w: _Writer, message: Message) -> None:
    code = _CODES.get(type(message))
    if code is None:
        raise MessageError(f"Cannot encode {type(message).__name__}.")
    w.pack(_U8, code)
    for name, codec in _SCHEMAS[code][1]:
        codec.write(w, getattr(message, name))


def _read_message(r: _Reader) -> Message:
    code = r.unpack(_U8)
    if code >= len(_SCHEMAS):
        raise MessageError(f"Unknown message code: {code}")
    cls, fields = _SCHEMAS[code]
    return cls(**{name: codec.read(r) for name, codec in fields})


def encode(message: Message) -> bytes:
    """Binary form of a message."""
    writer = _Writer()
    _write_message(writer, message)
    return bytes(writer.data)


def decode(data: bytes) -> Message:
    """Message from its binary form."""
    reader = _Reader(data)
    message = _read_message(reader)
    if reader.remaining:
        raise MessageError("Message data has trailing bytes.")
    return message