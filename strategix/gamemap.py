"""The game map: terrains, cells, objects and the text map format."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .coords import MapCoord
from .objects import MapEntity, MapMine, MapObject

log = logging.getLogger(__name__)

MAP_FILE_TOP_STRING = "Strategix Map"
MAP_FORMAT_VERSION = "0.0.1"
MIN_DIMENSION = 10
MAX_DIMENSION = 200


class MapError(Exception):
    """Raised for invalid maps and map data."""


@dataclass
class Terrain:
    id: int
    name: str
    quality: float


@dataclass(eq=False)
class Cell:
    terrain: Terrain
    object: MapObject | None = None

    def copy(self) -> Cell:
        """Copy of the cell with its own copy of the object."""
        return Cell(self.terrain, self.object.clone() if self.object else None)


Terrains = dict[str, Terrain]


def _check_dimensions(width: int, length: int) -> None:
    if width < MIN_DIMENSION or length < MIN_DIMENSION:
        raise MapError(f"Minimum map dimensions (10x10) exceeded: {width}x{length}")
    if width > MAX_DIMENSION or length > MAX_DIMENSION:
        raise MapError(f"Maximum map dimensions (200x200) exceeded: {width}x{length}")


class _Tokens:
    """Whitespace separated words of map data."""

    def __init__(self, text: str) -> None:
        self._words = iter(text.split())

    def word(self, error: str) -> str:
        try:
            return next(self._words)
        except StopIteration:
            raise MapError(error) from None

    def integer(self, error: str) -> int:
        word = self.word(error)
        try:
            return int(word)
        except ValueError:
            raise MapError(error) from None

    def real(self, error: str) -> float:
        word = self.word(error)
        try:
            return float(word)
        except ValueError:
            raise MapError(error) from None


class Map:
    """A rectangular grid of cells; ``cells[y][x]``."""

    def __init__(self, name: str, width: int, length: int, terrains: Terrains) -> None:
        self._reset(name, terrains)
        _check_dimensions(width, length)
        self.width = width
        self.length = length
        try:
            default = terrains["none"]
        except KeyError:
            raise MapError("Terrain [none] is not registered.") from None
        self.cells = [[Cell(default) for _ in range(width)] for _ in range(length)]

    def _reset(self, name: str, terrains: Terrains) -> None:
        self.name = name
        self.width = 0
        self.length = 0
        self.terrains = terrains
        self.cells: list[list[Cell]] = []
        self.player_spots: list[int] = []
        self.last_object_id = 0

    @classmethod
    def _blank(cls, name: str) -> Map:
        game_map = cls.__new__(cls)
        game_map._reset(name, {})
        return game_map

    @classmethod
    def from_string(cls, name: str, data: str) -> Map:
        """Load a map named ``name`` from map text."""
        game_map = cls._blank(name)
        try:
            game_map._load(data)
        except MapError as exc:
            raise MapError(f"Failed to load map from data.\n\t{exc}") from exc
        return game_map

    @classmethod
    def from_file(cls, path) -> Map:
        """Load a map file; the map is named after the file stem."""
        path = Path(path)
        try:
            data = path.read_text()
        except OSError:
            raise MapError(f"Unable to open map file {path}") from None
        game_map = cls._blank(path.stem)
        try:
            game_map._load(data)
        except MapError as exc:
            raise MapError(f"Failed to load map file {path}\n\t{exc}") from exc
        return game_map

    def copy(self) -> Map:
        """Copy with its own cells and objects; terrains are shared."""
        game_map = self._blank(self.name)
        game_map.width = self.width
        game_map.length = self.length
        game_map.terrains = self.terrains
        game_map.cells = [[cell.copy() for cell in row] for row in self.cells]
        game_map.player_spots = list(self.player_spots)
        game_map.last_object_id = self.last_object_id
        return game_map

    def cell(self, coord: MapCoord) -> Cell:
        if not self.is_cell(coord):
            raise MapError(f"Cell {coord} is outside the map.")
        return self.cells[coord.y][coord.x]

    def is_cell(self, coord: MapCoord) -> bool:
        return 0 <= coord.x < self.width and 0 <= coord.y < self.length

    def update_terrains(self, new_terrains: Terrains) -> None:
        """Add unknown terrains and update qualities of known ones."""
        for new in new_terrains.values():
            existing = self.terrains.get(new.name)
            if existing is None:
                self.terrains[new.name] = Terrain(new.id, new.name, new.quality)
            elif existing.id != new.id:
                raise MapError(f"Trying to replace terrain id [{existing.id}] with [{new.id}].")
            else:
                existing.quality = new.quality

    def change_terrain(self, cell: Cell, terrain_name: str) -> None:
        terrain = self.terrains.get(terrain_name)
        if terrain is None:
            log.error("Terrain with name [%s] is not registered.", terrain_name)
            return
        cell.terrain = terrain

    def change_object(self, cell: Cell, obj: MapObject | None) -> None:
        """Place ``obj`` in the cell, giving it a fresh id if it has none."""
        if obj is not None and not obj.id:
            self.last_object_id += 1
            obj.id = self.last_object_id
        cell.object = obj

    def save_to_string(self) -> str:
        parts = [f"{MAP_FILE_TOP_STRING}\n{MAP_FORMAT_VERSION}\n\n"]

        parts.append(f"{len(self.terrains)}\n")
        for terrain in sorted(self.terrains.values(), key=lambda t: t.id):
            parts.append(f"{terrain.id} {terrain.name} {terrain.quality:g}\n")
        parts.append("\n")

        parts.append(f"{self.width} {self.length}\n")
        entities: list[tuple[int, int, MapEntity]] = []
        mines: list[tuple[int, int, MapMine]] = []
        for row, cells in enumerate(self.cells):
            line = []
            for col, cell in enumerate(cells):
                line.append(f"{cell.terrain.id:2d} ")
                if isinstance(cell.object, MapEntity):
                    entities.append((col, row, cell.object))
                elif isinstance(cell.object, MapMine):
                    mines.append((col, row, cell.object))
            parts.append("".join(line) + "\n")
        parts.append("\n")

        parts.append(f"{len(entities)}\n")
        parts.extend(f"{x} {y} {e.name} {e.owner_spot}\n" for x, y, e in entities)
        parts.append("\n")

        parts.append(f"{len(mines)}\n")
        parts.extend(f"{x} {y} {m.name} {m.amount}\n" for x, y, m in mines)
        return "".join(parts)

    def save_to_file(self, path) -> None:
        data = self.save_to_string()
        try:
            Path(path).write_text(data)
        except OSError:
            raise MapError(f"Unable to save to {path}") from None

    def _load(self, data: str) -> None:
        lines = data.split("\n", 2)
        top = lines[0].rstrip("\r")
        if top != MAP_FILE_TOP_STRING:
            raise MapError(f"First string should be {MAP_FILE_TOP_STRING}")
        version = lines[1].rstrip("\r") if len(lines) > 1 else ""
        if version != MAP_FORMAT_VERSION:
            raise MapError(f"Version of map [{version}] should be [{MAP_FORMAT_VERSION}].")
        tokens = _Tokens(lines[2] if len(lines) > 2 else "")

        error = "terrain description is wrong"
        by_id: dict[int, Terrain] = {}
        for _ in range(tokens.integer(error)):
            terrain_id = tokens.integer(error)
            name = tokens.word(error)
            quality = tokens.real(error)
            terrain = Terrain(terrain_id, name, quality)
            by_id[terrain_id] = terrain
            self.terrains.setdefault(name, terrain)

        error = "map dimensions are wrong"
        self.width = tokens.integer(error)
        self.length = tokens.integer(error)
        _check_dimensions(self.width, self.length)

        error = "map content is wrong"
        self.cells = []
        for _ in range(self.length):
            row = []
            for _ in range(self.width):
                terrain_id = tokens.integer(error)
                if terrain_id not in by_id:
                    raise MapError(f"Terrain with id [{terrain_id}] is not found")
                row.append(Cell(by_id[terrain_id]))
            self.cells.append(row)

        self.last_object_id = 0
        self.player_spots = []
        error = "map entities are wrong"
        for _ in range(tokens.integer(error)):
            coord = MapCoord(tokens.integer(error), tokens.integer(error))
            name = tokens.word(error)
            owner = tokens.integer(error)
            if not self.is_cell(coord):
                raise MapError(error)
            self.last_object_id += 1
            self.cell(coord).object = MapEntity(self.last_object_id, name, coord, owner)
            if owner not in self.player_spots:
                self.player_spots.append(owner)
        self.player_spots.sort()

        error = "map resource mines are wrong"
        for _ in range(tokens.integer(error)):
            coord = MapCoord(tokens.integer(error), tokens.integer(error))
            name = tokens.word(error)
            amount = tokens.integer(error)
            if not self.is_cell(coord):
                raise MapError(error)
            self.last_object_id += 1
            self.cell(coord).object = MapMine(self.last_object_id, name, coord, amount)