"""Designer presets and service settings.

``DESIGNER_DEFAULTS`` holds the preset every new session starts from (the
slider defaults of the designer page). The core ``DungeonConfig`` has no
defaults of its own; everything that wants a sensible starting point builds
it from here.

Service knobs are read from the environment (``.env`` is loaded by the app
factory and by ``run.py``):

    DESIGNER_DEFAULT_SEED           seed used when a request omits one
    DESIGNER_MAX_SESSIONS           in-process session cache cap (oldest evicted)
    DESIGNER_MAX_STEPS_PER_REQUEST  upper bound for ``count``/``steps`` payloads
    DESIGNER_MAX_CELLS              largest width * height a session or CLI run may use
"""

from __future__ import annotations

import os

from .dungeon.config import DungeonConfig
from .dungeon.errors import ConfigError

DEFAULT_SEED = "dungeon-001"

DESIGNER_DEFAULTS = {
    "width": 80,
    "height": 50,
    "maxDepth": 5,
    "minLeafSize": 14,
    "splitCandidates": 10,
    "roomMinSize": 6,
    "roomMargin": 2,
    "roomCandidates": 30,
    "targetFill": 0.55,
    "roomBuffer": 1,
    "kNearest": 4,
    "maxLoops": 6,
    "extraLoopChance": 0.35,
    "roomPenalty": 40,
    "turnPenalty": 0,
    "reuseCorridorsBias": 1.1,
}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def default_seed() -> str:
    return os.getenv("DESIGNER_DEFAULT_SEED") or DEFAULT_SEED


def default_config() -> DungeonConfig:
    return DungeonConfig.from_mapping(DESIGNER_DEFAULTS)


def max_sessions() -> int:
    return _env_int("DESIGNER_MAX_SESSIONS", 32)


def max_steps_per_request() -> int:
    return _env_int("DESIGNER_MAX_STEPS_PER_REQUEST", 5000)


def max_cells() -> int:
    return _env_int("DESIGNER_MAX_CELLS", 250_000)


def check_grid_size(config: DungeonConfig) -> DungeonConfig:
    """Return ``config`` unchanged, or raise ``ConfigError`` on ``width`` when the grid exceeds ``max_cells()``."""
    limit = max_cells()
    cells = config.width * config.height
    if cells > limit:
        raise ConfigError("width", f"grid of {cells} cells exceeds the limit of {limit}")
    return config


__all__ = [
    "DEFAULT_SEED",
    "DESIGNER_DEFAULTS",
    "default_seed",
    "default_config",
    "max_sessions",
    "max_steps_per_request",
    "max_cells",
    "check_grid_size",
]
