import dataclasses

import pytest

from dungeon_designer.dungeon.config import DungeonConfig
from dungeon_designer.dungeon.errors import ConfigError
from dungeon_designer.settings import DESIGNER_DEFAULTS, check_grid_size, default_config


def test_defaults_load_from_camel_case(designer_config):
    assert designer_config.width == 80
    assert designer_config.height == 50
    assert designer_config.max_depth == 5
    assert designer_config.min_leaf_size == 14
    assert designer_config.reuse_corridors_bias == pytest.approx(1.1)
    assert isinstance(designer_config.room_penalty, float)


def test_snake_case_keys_accepted(designer_config):
    snake = {f.name: getattr(designer_config, f.name) for f in dataclasses.fields(designer_config)}
    assert DungeonConfig.from_mapping(snake) == designer_config


def test_to_dict_round_trips(designer_config):
    data = designer_config.to_dict()
    assert set(data) == set(DESIGNER_DEFAULTS)
    assert DungeonConfig.from_mapping(data) == designer_config


def test_missing_field_names_camel_key():
    data = dict(DESIGNER_DEFAULTS)
    del data["roomBuffer"]
    with pytest.raises(ConfigError) as exc:
        DungeonConfig.from_mapping(data)
    assert exc.value.field == "roomBuffer"


@pytest.mark.parametrize(
    "key,value",
    [
        ("width", 0),
        ("targetFill", 1.5),
        ("extraLoopChance", -0.1),
        ("kNearest", -1),
        ("roomCandidates", -1),
        ("splitCandidates", -2),
        ("reuseCorridorsBias", 0),
        ("maxLoops", -1),
        ("width", True),
        ("height", "tall"),
        ("width", 12.5),
    ],
)
def test_invalid_values_raise(key, value):
    with pytest.raises(ConfigError) as exc:
        default_config().merged({key: value})
    assert exc.value.field == key


def test_numeric_strings_are_coerced():
    cfg = default_config().merged({"width": "120", "extraLoopChance": "0.5", "max_depth": 3})
    assert cfg.width == 120
    assert cfg.extra_loop_chance == 0.5
    assert cfg.max_depth == 3


def test_zero_counts_allowed():
    cfg = default_config().merged({"maxLoops": 0, "roomBuffer": 0, "roomMargin": 0, "turnPenalty": 0})
    assert cfg.max_loops == 0


def test_zero_candidate_counts_allowed():
    cfg = default_config().merged({"splitCandidates": 0, "roomCandidates": 0, "kNearest": 0})
    assert (cfg.split_candidates, cfg.room_candidates, cfg.k_nearest) == (0, 0, 0)


def test_grid_size_limit(monkeypatch):
    monkeypatch.setenv("DESIGNER_MAX_CELLS", "4000")
    cfg = default_config()
    assert check_grid_size(cfg) is cfg
    with pytest.raises(ConfigError) as exc:
        check_grid_size(cfg.merged({"width": 81}))
    assert exc.value.field == "width"
    monkeypatch.delenv("DESIGNER_MAX_CELLS")
    with pytest.raises(ConfigError):
        check_grid_size(cfg.merged({"width": 100000, "height": 100000}))


def test_merged_rejects_unknown_keys():
    with pytest.raises(ConfigError) as exc:
        default_config().merged({"roomCount": 4})
    assert exc.value.field == "roomCount"


def test_direct_construction_validates(designer_config):
    with pytest.raises(ConfigError):
        dataclasses.replace(designer_config, height=-3)


def test_config_is_immutable(designer_config):
    with pytest.raises(dataclasses.FrozenInstanceError):
        designer_config.width = 10
