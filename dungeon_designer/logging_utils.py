"""Minimal structured logging helper.

Emits one key=value line (or a compact JSON object) per record with a
timestamp, level and logger name. Used by the generator pipeline and the
designer API where records are meant to be grepped or shipped as-is; Flask
and Werkzeug keep going through stdlib logging (see ``server._configure_logging``).

Usage:
    from dungeon_designer.logging_utils import get_logger
    log = get_logger("dungeon_designer.api")
    log.info(event="session_created", session_id="ab12", seed="dungeon-001")

Reserved keys: level, ts, logger. ``None`` values are dropped.
"""

from __future__ import annotations

import json
import os
import sys
import time

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
_TRUTHY = ("1", "true", "TRUE", "yes", "on")


def _env_level() -> int:
    return LEVELS.get(os.getenv("DESIGNER_LOG_LEVEL", "info").lower(), 20)


def _env_json() -> bool:
    return os.getenv("DESIGNER_LOG_JSON", "0") in _TRUTHY


CURRENT_LEVEL = _env_level()
JSON_MODE = _env_json()


def configure(level: str | None = None, json_mode: bool | None = None) -> None:
    """Re-read level/format from the environment, or set them explicitly.

    ``run.py`` calls this after loading an ``--env-file`` so values from the
    file take effect even though this module was imported first.
    """
    global CURRENT_LEVEL, JSON_MODE
    CURRENT_LEVEL = LEVELS.get(level.lower(), 20) if level else _env_level()
    JSON_MODE = _env_json() if json_mode is None else json_mode


def _format(level: str, **fields):
    if JSON_MODE:
        rec = {k: v for k, v in fields.items() if v is not None}
        rec["level"] = level
        rec["ts"] = int(time.time())
        return json.dumps(rec, separators=(",", ":"), default=str)
    parts = [f"level={level}", f"ts={int(time.time())}"]
    for k, v in fields.items():
        if v is None:
            continue
        if isinstance(v, (int, float)):
            parts.append(f"{k}={v}")
        else:
            s = str(v).replace(" ", "_")
            parts.append(f"{k}={s}")
    return " ".join(parts)


class _Logger:
    def __init__(self, name: str | None = None):
        self.name = name or "dungeon_designer"

    def _log(self, lvl: str, **fields):
        if LEVELS[lvl] < CURRENT_LEVEL:
            return
        fields.setdefault("logger", self.name)
        print(_format(lvl, **fields), file=sys.stdout if lvl != "error" else sys.stderr)

    def enabled(self, lvl: str) -> bool:
        return LEVELS[lvl] >= CURRENT_LEVEL

    def debug(self, **fields):
        self._log("debug", **fields)

    def info(self, **fields):
        self._log("info", **fields)

    def warn(self, **fields):
        self._log("warn", **fields)

    def error(self, **fields):
        self._log("error", **fields)


_LOGGER_CACHE = {}


def get_logger(name: str):
    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = _Logger(name)
    return _LOGGER_CACHE[name]


log = get_logger("dungeon_designer")
