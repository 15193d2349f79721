"""Game configuration and optional JSON config file loading."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
import json
import logging
from pathlib import Path
from typing import Optional, Union

from . import constants

logger = logging.getLogger(__name__)

_FILE_KEYS = {
    "monitorCount": "monitor_count",
    "timerSeconds": "timer_seconds",
    "foodPerMonitor": "food_per_monitor",
    "snakeSpeed": "snake_speed",
}


def tick_interval_for_speed(speed: int) -> int:
    """Map a 1 (slow) .. 10 (fast) speed onto a tick interval in milliseconds."""

    low, high = constants.SNAKE_SPEED_RANGE
    speed = max(low, min(high, int(speed)))
    return 250 - speed * 20


def _check_range(name: str, value, bounds: tuple) -> None:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise ValueError(f"{name} must be an integer in [{low}, {high}], got {value!r}")


@dataclass(frozen=True)
class GameConfig:
    """Round parameters. Changes take effect on the next setup, start or reset."""

    monitor_count: int = constants.DEFAULT_MONITOR_COUNT
    timer_seconds: int = constants.DEFAULT_TIMER_SECONDS
    food_per_monitor: int = constants.DEFAULT_FOOD_PER_MONITOR
    grid_cell_size: int = constants.CELL_SIZE
    tick_interval_ms: int = constants.DEFAULT_TICK_INTERVAL_MS
    snake_speed: Optional[int] = None

    def validate(self) -> "GameConfig":
        """Return ``self`` or raise ``ValueError`` if any field is out of range."""

        _check_range("monitor_count", self.monitor_count, constants.MONITOR_COUNT_RANGE)
        _check_range("timer_seconds", self.timer_seconds, constants.TIMER_SECONDS_RANGE)
        _check_range("food_per_monitor", self.food_per_monitor, constants.FOOD_PER_MONITOR_RANGE)
        if isinstance(self.grid_cell_size, bool) or not isinstance(self.grid_cell_size, int) or self.grid_cell_size <= 0:
            raise ValueError(f"grid_cell_size must be a positive integer, got {self.grid_cell_size!r}")
        if isinstance(self.tick_interval_ms, bool) or not isinstance(self.tick_interval_ms, int) or self.tick_interval_ms <= 0:
            raise ValueError(f"tick_interval_ms must be a positive integer, got {self.tick_interval_ms!r}")
        if self.snake_speed is not None:
            _check_range("snake_speed", self.snake_speed, constants.SNAKE_SPEED_RANGE)
        return self

    def updated(self, **changes) -> "GameConfig":
        """Return a validated copy with ``changes`` applied.

        ``None`` values are ignored so partial updates can be passed straight
        through from a request body. Setting ``snake_speed`` also recomputes
        the tick interval.
        """

        known = {field.name for field in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown config field(s): {', '.join(sorted(unknown))}")
        changes = {key: value for key, value in changes.items() if value is not None}
        if "snake_speed" in changes and "tick_interval_ms" not in changes:
            _check_range("snake_speed", changes["snake_speed"], constants.SNAKE_SPEED_RANGE)
            changes["tick_interval_ms"] = tick_interval_for_speed(changes["snake_speed"])
        return replace(self, **changes).validate()


def load_config_file(path: Union[str, Path]) -> GameConfig:
    """Load a JSON config file written with the camelCase keys of the API.

    A missing file yields the defaults; an unreadable or invalid one is
    logged and also yields the defaults. An out-of-range ``snakeSpeed`` is
    clamped to the supported range rather than rejected.
    """

    path = Path(path)
    if not path.exists():
        return GameConfig()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError("Config file must contain a JSON object")
        changes = {attr: payload[key] for key, attr in _FILE_KEYS.items() if key in payload}
        speed = changes.get("snake_speed", 8)
        if isinstance(speed, bool) or not isinstance(speed, int):
            raise ValueError(f"snakeSpeed must be an integer, got {speed!r}")
        low, high = constants.SNAKE_SPEED_RANGE
        changes["snake_speed"] = max(low, min(high, speed))
        return GameConfig().updated(**changes)
    except (OSError, ValueError) as exc:
        logger.error("Error loading config from %s: %s", path, exc)
        return GameConfig()
