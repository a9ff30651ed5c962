import logging

import pytest

from strategix.coords import MapCoord, RealCoord
from strategix.entitykernel import EntityKernel, FeatureMissingError
from strategix.features import Feature, FeatureMove
from strategix.gamemap import Map, Terrain
from strategix.info import EntityInfo, HealthFeatureInfo, MoveFeatureInfo
from strategix.messages import (
    AttackMessage,
    CollectMessage,
    HpMessage,
    MapMoveMessage,
    MoveMessage,
    RealMoveMessage,
)
from strategix.objects import MapEntity, MapMine
from strategix.pathfinding import PathFinder


class FakeGame:
    def __init__(self):
        self.sent = []
        self.entities = {}
        self.removed = []

    def entity(self, entity_id):
        return self.entities.get(entity_id)

    def send_all(self, message):
        self.sent.append(message)

    def remove_entity(self, entity_id):
        self.removed.append(entity_id)


class FakePlayer:
    def __init__(self, game_map):
        self.map = game_map
        self.finder = PathFinder(game_map)

    def terrain(self, coord):
        return self.map.cell(coord).terrain

    def map_object(self, coord):
        return self.map.cell(coord).object

    def set_map_object(self, coord, obj):
        self.map.cell(coord).object = obj

    def find_path(self, start, till, radius):
        return self.finder.find_path(start, till, radius)


class Recorder(Feature):
    def __init__(self, entity):
        super().__init__(None, entity)
        self.ticks = []
        self.stops = 0

    def tick(self, seconds):
        self.ticks.append(seconds)

    def stop(self):
        self.stops += 1


@pytest.fixture
def game_map():
    return Map("test", 10, 10, {"none": Terrain(0, "none", 1.0)})


@pytest.fixture
def game():
    return FakeGame()


def make_entity(game, game_map, coord, features, entity_id=1):
    info = EntityInfo(name="worker", kind="entity", feature_infos=features)
    game_map.cell(coord).object = MapEntity(entity_id, "worker", coord, 1)
    entity = EntityKernel(game, FakePlayer(game_map), entity_id, info, coord.to_real())
    game.entities[entity_id] = entity
    return entity


def test_coordinates_from_real(game, game_map):
    entity = make_entity(game, game_map, MapCoord(3, 4), {})
    assert entity.coord == RealCoord(3.5, 4.5)
    assert entity.map_coord == MapCoord(3, 4)


def test_hp_from_health_feature(game, game_map):
    entity = make_entity(game, game_map, MapCoord(1, 1), {"health": HealthFeatureInfo(25, 0.5)})
    assert entity.max_hp == 25
    assert entity.hp == entity.max_hp


def test_missing_feature_raises(game, game_map):
    entity = make_entity(game, game_map, MapCoord(1, 1), {})
    with pytest.raises(FeatureMissingError, match="worker has no feature FeatureMove"):
        entity.feature(FeatureMove)
    with pytest.raises(FeatureMissingError):
        entity.hp


def test_unknown_feature_is_logged(game, game_map, caplog):
    with caplog.at_level(logging.ERROR, logger="strategix.entitykernel"):
        entity = make_entity(game, game_map, MapCoord(1, 1), {"fly": MoveFeatureInfo(2.0)})
    assert "Unable to handle feature fly" in caplog.text
    with pytest.raises(FeatureMissingError):
        entity.feature(FeatureMove)


def test_set_coord_announces(game, game_map):
    entity = make_entity(game, game_map, MapCoord(1, 1), {})
    entity.set_coord(RealCoord(2.0, 1.5))
    assert entity.coord == RealCoord(2.0, 1.5)
    assert game.sent == [RealMoveMessage(1, RealCoord(2.0, 1.5))]


def test_set_map_coord_moves_object(game, game_map):
    entity = make_entity(game, game_map, MapCoord(1, 1), {})
    obj = game_map.cell(MapCoord(1, 1)).object
    assert entity.set_map_coord(MapCoord(2, 1)) is True
    assert entity.map_coord == MapCoord(2, 1)
    assert game_map.cell(MapCoord(2, 1)).object is obj
    assert game_map.cell(MapCoord(1, 1)).object is None
    assert game.sent == [MapMoveMessage(1, MapCoord(1, 1), MapCoord(2, 1))]


def test_set_map_coord_same_cell(game, game_map):
    entity = make_entity(game, game_map, MapCoord(1, 1), {})
    assert entity.set_map_coord(MapCoord(1, 1)) is True
    assert game.sent == []


def test_set_map_coord_occupied(game, game_map):
    entity = make_entity(game, game_map, MapCoord(1, 1), {})
    mine = MapMine(9, "gold", MapCoord(2, 1), 10)
    game_map.cell(MapCoord(2, 1)).object = mine
    assert entity.set_map_coord(MapCoord(2, 1)) is False
    assert entity.map_coord == MapCoord(1, 1)
    assert game_map.cell(MapCoord(2, 1)).object is mine
    assert game.sent == []


def test_assign_task_stops_previous(game, game_map):
    entity = make_entity(game, game_map, MapCoord(1, 1), {})
    first, second, passive = Recorder(entity), Recorder(entity), Recorder(entity)
    entity.assign_task(first)
    entity.assign_task(second)
    entity.assign_passive_task(passive)
    assert first.stops == 1
    assert entity.task is second

    entity.tick(0.5)
    assert first.ticks == []
    assert second.ticks == [0.5]
    assert passive.ticks == [0.5]

    entity.assign_task(None)
    assert second.stops == 1
    entity.tick(0.25)
    assert second.ticks == [0.5]
    assert passive.ticks == [0.5, 0.25]


def test_receive_move_message(game, game_map):
    entity = make_entity(game, game_map, MapCoord(1, 1), {"move": MoveFeatureInfo(1.0)})
    target = MapCoord(1, 4)
    entity.receive_message(MoveMessage(1, target))
    assert isinstance(entity.task, FeatureMove)
    for _ in range(200):
        if entity.task is None:
            break
        entity.tick(0.5)
    assert entity.task is None
    assert entity.map_coord == target


def test_receive_attack_missing_target(game, game_map):
    from strategix.info import AttackFeatureInfo

    entity = make_entity(game, game_map, MapCoord(1, 1), {"attack": AttackFeatureInfo(1, 1.0, 1.0)})
    entity.receive_message(AttackMessage(1, 77))
    assert entity.task is None


def test_receive_collect_without_feature(game, game_map):
    entity = make_entity(game, game_map, MapCoord(1, 1), {})
    with pytest.raises(FeatureMissingError):
        entity.receive_message(CollectMessage(1, MapCoord(3, 3), "gold"))


def test_receive_unsupported_message(game, game_map):
    entity = make_entity(game, game_map, MapCoord(1, 1), {})
    with pytest.raises(ValueError, match="Unable to handle message with type: HP"):
        entity.receive_message(HpMessage(1, 5))