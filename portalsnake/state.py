"""Mutable game aggregate and the events a tick can emit."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from .food import Food
from .grid import Position
from .snake import Direction


class Phase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    ENDED = "ended"


class EventType(str, Enum):
    GAME_START = "game_start"
    FOOD_EATEN = "food_eaten"
    PORTAL_ENTERED = "portal_entered"
    COLLISION = "collision"
    GAME_OVER = "game_over"
    DESYNC = "desync"


@dataclass
class GameEvent:
    """A discrete state transition observed while processing ticks."""

    type: EventType
    tick: int
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GameState:
    """Authoritative round state. Only the engine holds a writable instance.

    ``snake`` is ordered head first. ``last_tick_ms`` paces the tick
    scheduler while ``last_timer_ms`` marks the clock reading the round timer
    was last debited at.
    """

    phase: Phase = Phase.IDLE
    score: int = 0
    dir: Direction = Direction.RIGHT
    next_dir: Direction = Direction.RIGHT
    snake: List[Position] = field(default_factory=list)
    foods: List[Food] = field(default_factory=list)
    active_monitor_id: str = "0"
    tick: int = 0
    last_tick_ms: float = 0.0
    last_timer_ms: float = 0.0
    time_left_ms: float = 0.0
    total_time_ms: float = 0.0

