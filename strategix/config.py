"""Server configuration: port, maps location, resources and races."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .info import (
    AttackFeatureInfo,
    CollectFeatureInfo,
    EntityInfo,
    FeatureInfo,
    HealthFeatureInfo,
    MoveFeatureInfo,
    TechTree,
    TechTreeError,
)
from .resources import Resources

log = logging.getLogger(__name__)


class _ConfigError(Exception):
    """A node is missing or holds a value of the wrong kind."""


@dataclass
class Config:
    """Parsed configuration; fields keep defaults for what could not be read."""

    path: str = ""
    server_port: int = 0
    maps_path: str = ""
    resources_context: list[str] = field(default_factory=list)
    tech_trees: dict[str, TechTree] = field(default_factory=dict)

    def race_names(self) -> list[str]:
        return [tree.race_name for tree in self.tech_trees.values()]

    def tech_tree(self, race_name: str) -> TechTree:
        try:
            return self.tech_trees[race_name]
        except KeyError:
            raise TechTreeError(f"No race [{race_name}] in the tech tree.") from None

    def has_resource(self, name: str) -> bool:
        return name in self.resources_context

    def make_resources(self) -> Resources:
        """Zero amount of every known resource."""
        return Resources({name: 0 for name in self.resources_context})


def _child(tree: Any, key: str) -> Any:
    if not isinstance(tree, dict) or key not in tree:
        raise _ConfigError(f"No such node ({key})")
    return tree[key]


def _children(tree: Any) -> list[Any]:
    if isinstance(tree, dict):
        return list(tree.values())
    if isinstance(tree, list):
        return tree
    return []


def _as_text(value: Any, what: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise _ConfigError(f"conversion of data to type string failed ({what})")


def _as_int(value: Any, what: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise _ConfigError(f"conversion of data to type int failed ({what})")


def _as_float(value: Any, what: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise _ConfigError(f"conversion of data to type float failed ({what})")


def _int(tree: Any, key: str) -> int:
    return _as_int(_child(tree, key), key)


def _float(tree: Any, key: str) -> float:
    return _as_float(_child(tree, key), key)


def _text(tree: Any, key: str) -> str:
    return _as_text(_child(tree, key), key)


def _parse_resources(tree: Any, config: Config) -> Resources:
    resources = Resources()
    if not isinstance(tree, dict):
        return resources
    for name, value in tree.items():
        if name not in config.resources_context:
            log.info("Wrong resource [%s] in configuration file: %s", name, config.path)
            continue
        resources.setdefault(name, _as_int(value, name))
    return resources


def _parse_feature(name: str, tree: Any, config: Config) -> FeatureInfo | None:
    try:
        if name == "move":
            return MoveFeatureInfo(_float(tree, "speed"))
        if name == "collect":
            return CollectFeatureInfo(
                _float(tree, "speed"),
                _float(tree, "radius"),
                _parse_resources(_child(tree, "capacities"), config),
            )
        if name == "health":
            return HealthFeatureInfo(_int(tree, "hp"), _float(tree, "recovery"))
        if name == "attack":
            return AttackFeatureInfo(_int(tree, "damage"), _float(tree, "speed"), _float(tree, "radius"))
        log.error("Unknown feature: %s", name)
    except _ConfigError as exc:
        log.error("Unable to parse feature: %s. Error: %s", name, exc)
    return None


def _parse_entity(tree: Any, config: Config) -> EntityInfo | None:
    try:
        info = EntityInfo(name=_text(tree, "name"), kind=_text(tree, "kind"))
        info.resources = _parse_resources(_child(tree, "resources"), config)
        features = tree.get("features", {})
        if isinstance(features, dict):
            for name, feature_tree in features.items():
                feature = _parse_feature(name, feature_tree, config)
                if feature is not None:
                    info.feature_infos[name] = feature
        return info
    except _ConfigError as exc:
        log.info("%s", exc)
        return None


def _parse_race(tree: Any, config: Config) -> TechTree | None:
    try:
        tech_tree = TechTree(_text(tree, "name"))
        for entity_tree in _children(_child(tree, "entities")):
            info = _parse_entity(entity_tree, config)
            if info is not None:
                tech_tree.add_node(info)
        return tech_tree
    except _ConfigError as exc:
        log.info("%s", exc)
        return None


def load_config(path) -> Config:
    """Read a JSON configuration; problems are logged and parsing stops there."""
    config = Config(path=str(path))
    try:
        tree = json.loads(Path(path).read_text(encoding="utf-8"))
        port = _int(tree, "server_port")
        if not 0 <= port <= 0xFFFF:
            raise _ConfigError(f"conversion of data to type ushort failed (server_port)")
        config.server_port = port
        config.maps_path = _text(tree, "maps_path")
        for name in _children(_child(tree, "resource_types")):
            config.resources_context.append(_as_text(name, "resource_types"))
        for race_tree in _children(_child(tree, "races")):
            tech_tree = _parse_race(race_tree, config)
            if tech_tree is not None:
                config.tech_trees.setdefault(tech_tree.race_name, tech_tree)
    except (OSError, ValueError, _ConfigError) as exc:
        log.info("%s", exc)
    except TechTreeError as exc:
        log.error("Unexpected error: %s", exc)
    return config