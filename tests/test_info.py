import pytest

from strategix.info import (
    AttackFeatureInfo,
    CollectFeatureInfo,
    EntityInfo,
    HealthFeatureInfo,
    MoveFeatureInfo,
    TechTree,
    TechTreeError,
)
from strategix.resources import Resources


def _worker():
    return EntityInfo(
        name="az_worker",
        kind="entity",
        resources=Resources({"gold": 50}),
        depends=["az_base"],
        feature_infos={
            "move": MoveFeatureInfo(1.5),
            "health": HealthFeatureInfo(100, 0.5),
            "attack": AttackFeatureInfo(5, 1.0, 1.5),
            "collect": CollectFeatureInfo(10.0, 1.0, Resources({"gold": 20})),
        },
    )


def test_feature_clone_is_equal_and_independent():
    info = CollectFeatureInfo(10.0, 1.0, Resources({"gold": 20}))
    clone = info.clone()
    assert clone == info
    clone.capacities["gold"] = 99
    assert info.capacities["gold"] == 20


def test_entity_clone_equal():
    info = _worker()
    assert info.clone() == info


def test_entity_clone_independent():
    info = _worker()
    clone = info.clone()
    clone.resources.add("gold", 5)
    clone.depends.append("other")
    clone.feature_infos["move"].speed = 9.0
    del clone.feature_infos["health"]
    assert info.resources["gold"] == 50
    assert info.depends == ["az_base"]
    assert info.feature_infos["move"].speed == 1.5
    assert "health" in info.feature_infos


def test_entity_defaults_are_separate():
    first, second = EntityInfo(), EntityInfo()
    first.resources.add("gold", 1)
    assert second.resources == {}


def test_tech_tree_add_and_get():
    tree = TechTree("az")
    worker = _worker()
    tree.add_node(worker)
    assert tree.race_name == "az"
    assert tree.node("az_worker") is worker
    assert "az_worker" in tree
    assert len(tree) == 1
    assert list(tree) == [worker]


def test_tech_tree_unknown_name():
    tree = TechTree("az")
    with pytest.raises(TechTreeError, match="Wrong entity name: ghost"):
        tree.node("ghost")


def test_tech_tree_duplicate_name():
    tree = TechTree("az")
    tree.add_node(_worker())
    with pytest.raises(TechTreeError, match="az_worker"):
        tree.add_node(_worker())
    assert len(tree) == 1