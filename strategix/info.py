"""Static descriptions of entities and their features, grouped by race."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from .resources import Resources


class FeatureInfo:
    """Global properties of one entity feature."""

    def clone(self) -> FeatureInfo:
        """Independent copy of this description."""
        return copy.deepcopy(self)


@dataclass
class HealthFeatureInfo(FeatureInfo):
    hp: int
    """Hit points."""
    recovery: float
    """Recovery speed in hp per second."""


@dataclass
class MoveFeatureInfo(FeatureInfo):
    speed: float
    """Tiles per second."""


@dataclass
class AttackFeatureInfo(FeatureInfo):
    damage: int
    """Hit points taken by one hit."""
    speed: float
    """Hits per second."""
    radius: float
    """Reach radius."""


@dataclass
class CollectFeatureInfo(FeatureInfo):
    speed: float
    """Amount collected per second."""
    radius: float
    """Reach radius."""
    capacities: Resources = field(default_factory=Resources)
    """Maximum amount of each resource the entity can carry."""


@dataclass
class EntityInfo:
    """Description of one kind of entity or building."""

    name: str = ""
    kind: str = ""
    resources: Resources = field(default_factory=Resources)
    depends: list[str] = field(default_factory=list)
    provides: list[str] = field(default_factory=list)
    feature_infos: dict[str, FeatureInfo] = field(default_factory=dict)

    def clone(self) -> EntityInfo:
        """Independent copy, features included."""
        return EntityInfo(
            name=self.name,
            kind=self.kind,
            resources=self.resources.copy(),
            depends=list(self.depends),
            provides=list(self.provides),
            feature_infos={name: info.clone() for name, info in self.feature_infos.items()},
        )


class TechTreeError(Exception):
    """Raised for unknown or duplicated tech tree entries."""


class TechTree:
    """The entity descriptions available to one race."""

    def __init__(self, race_name: str) -> None:
        self.race_name = race_name
        self._nodes: dict[str, EntityInfo] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __iter__(self):
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, name: str) -> EntityInfo:
        """Description of the entity called ``name``."""
        try:
            return self._nodes[name]
        except KeyError:
            raise TechTreeError(f"Wrong entity name: {name}") from None

    def add_node(self, info: EntityInfo) -> None:
        """Add a description; names must be unique."""
        if info.name in self._nodes:
            raise TechTreeError(f"More than one EntityInfo with name: {info.name}")
        self._nodes[info.name] = info