from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping

from .errors import ConfigError


@dataclass(frozen=True)
class DungeonConfig:
    """Explicit generator configuration. Every field is required.

    Presets live outside the core (see ``dungeon_designer.settings``).
    """

    # Grid
    width: int
    height: int
    # BSP
    max_depth: int
    min_leaf_size: int  # minimum partition width/height to keep splitting
    split_candidates: int
    # Rooms
    room_min_size: int
    room_margin: int  # keep rooms away from partition edges
    room_candidates: int
    target_fill: float  # desired room/leaf area ratio, 0..1
    room_buffer: int  # spacing between rooms
    # Graph
    k_nearest: int
    extra_loop_chance: float
    max_loops: int
    # Corridors
    room_penalty: float
    reuse_corridors_bias: float  # corridor step cost relative to wall cost
    turn_penalty: float

    def __post_init__(self):
        for name, (kind, lo, hi) in _RULES.items():
            _check(name, getattr(self, name), kind, lo, hi)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DungeonConfig":
        """Build from snake_case or camelCase keys; unknown keys are ignored."""
        values: Dict[str, Any] = {}
        for f in fields(cls):
            camel = _CAMEL[f.name]
            if f.name in data:
                raw = data[f.name]
            elif camel in data:
                raw = data[camel]
            else:
                raise ConfigError(camel, "missing required field")
            values[f.name] = _coerce(camel, raw, _RULES[f.name][0])
        return cls(**values)

    def merged(self, overrides: Mapping[str, Any]) -> "DungeonConfig":
        """Copy with ``overrides`` applied; unlike ``from_mapping``, unknown keys are rejected."""
        data = self.to_dict()
        for key, value in (overrides or {}).items():
            if key in _CAMEL:
                key = _CAMEL[key]
            elif key not in _FIELDS_BY_CAMEL:
                raise ConfigError(key, "unknown field")
            data[key] = value
        return DungeonConfig.from_mapping(data)

    def to_dict(self) -> Dict[str, Any]:
        return {_CAMEL[f.name]: getattr(self, f.name) for f in fields(self)}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


# field -> (kind, minimum, maximum); None means unbounded
_RULES = {
    "width": (int, 1, None),
    "height": (int, 1, None),
    "max_depth": (int, 0, None),
    "min_leaf_size": (int, 1, None),
    "split_candidates": (int, 0, None),
    "room_min_size": (int, 1, None),
    "room_margin": (int, 0, None),
    "room_candidates": (int, 0, None),
    "target_fill": (float, 0.0, 1.0),
    "room_buffer": (int, 0, None),
    "k_nearest": (int, 0, None),
    "extra_loop_chance": (float, 0.0, 1.0),
    "max_loops": (int, 0, None),
    "room_penalty": (float, 0.0, None),
    "reuse_corridors_bias": (float, 0.0, None),
    "turn_penalty": (float, 0.0, None),
}
_CAMEL = {name: _camel(name) for name in _RULES}
_FIELDS_BY_CAMEL = {camel: name for name, camel in _CAMEL.items()}


def _coerce(field_name: str, raw: Any, kind: type):
    if isinstance(raw, bool):
        raise ConfigError(field_name, "expected a number")
    if kind is int:
        if isinstance(raw, int):
            return raw
        if isinstance(raw, float) and raw.is_integer():
            return int(raw)
        if isinstance(raw, str):
            try:
                return int(raw.strip())
            except ValueError:
                pass
        raise ConfigError(field_name, "expected an integer")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            pass
    raise ConfigError(field_name, "expected a number")


def _check(name: str, value: Any, kind: type, lo, hi) -> None:
    label = _CAMEL[name]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(label, "expected a number")
    if kind is int and not isinstance(value, int):
        raise ConfigError(label, "expected an integer")
    if value != value or value in (float("inf"), float("-inf")):
        raise ConfigError(label, "must be finite")
    if lo is not None and value < lo:
        raise ConfigError(label, f"must be >= {lo}")
    if hi is not None and value > hi:
        raise ConfigError(label, f"must be <= {hi}")
    if name == "reuse_corridors_bias" and value <= 0:
        raise ConfigError(label, "must be > 0")


__all__ = ["DungeonConfig"]
