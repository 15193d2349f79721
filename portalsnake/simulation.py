"""One discrete simulation tick."""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence

from . import collision, constants
from .config import GameConfig
from .food import spawn_food
from .grid import cell_of, locate_monitor, monitor_center, monitor_origin, snap_to_grid
from .snake import advance
from .state import EventType, GameEvent, GameState, Phase
from .topology import MonitorConfig, Portal

logger = logging.getLogger(__name__)


def _end(state: GameState, reason: str, events: List[GameEvent]) -> List[GameEvent]:
    state.phase = Phase.ENDED
    events.append(GameEvent(EventType.GAME_OVER, state.tick, {"reason": reason, "score": state.score}))
    logger.info("Game over (%s) at tick %d with score %d", reason, state.tick, state.score)
    return events


def step(
    state: GameState,
    config: GameConfig,
    monitors: Sequence[MonitorConfig],
    portals: Sequence[Portal],
    now_ms: float,
    rng: Optional[random.Random] = None,
) -> List[GameEvent]:
    """Advance ``state`` by one tick and return the events it produced.

    The order is fixed: timer, direction commit, portal, wall, move, food,
    self collision, active monitor. Nothing happens unless the round is
    running.
    """

    events: List[GameEvent] = []
    if state.phase is not Phase.RUNNING:
        return events

    cell = config.grid_cell_size
    state.tick += 1
    elapsed = max(0.0, now_ms - state.last_timer_ms)
    state.last_timer_ms = max(state.last_timer_ms, now_ms)
    state.time_left_ms = max(0.0, state.time_left_ms - elapsed)
    if state.time_left_ms <= 0:
        return _end(state, "time", events)

    state.dir = state.next_dir
    head = state.snake[0]
    candidate = advance(head, state.dir, cell)

    current = locate_monitor(monitors, head)
    if current is None:
        state.snake[0] = monitor_center(monitors, "0", cell)
        state.active_monitor_id = "0"
        logger.warning("Snake head %s outside every monitor, recentred on monitor 0", head.to_tuple())
        events.append(GameEvent(EventType.DESYNC, state.tick, {"x": head.x, "y": head.y}))
        return events

    previous_monitor_id = state.active_monitor_id
    portal = collision.check_portal_entrance(candidate, current.id, portals, monitors)
    if portal is not None:
        exit_point = monitor_origin(monitors, portal.destination) + portal.exit
        candidate = snap_to_grid(exit_point.x, exit_point.y, cell)
        state.active_monitor_id = portal.destination
        events.append(
            GameEvent(EventType.PORTAL_ENTERED, state.tick, {"from": portal.source, "to": portal.destination})
        )
    elif collision.check_wall_collision(candidate, current.id, monitors, portals, cell):
        events.append(GameEvent(EventType.COLLISION, state.tick, {"kind": "wall", "monitorId": current.id}))
        return _end(state, "wall", events)

    previous_snake = list(state.snake)
    state.snake.insert(0, candidate)
    eaten = collision.check_food_collision(cell_of(candidate, cell), state.foods, cell)
    if eaten is not None:
        state.foods = [food for food in state.foods if food is not eaten]
        state.score += constants.POINTS_PER_FOOD
        spawn_food(state, monitors, portals, config, eaten.monitor_id, rng)
        events.append(
            GameEvent(
                EventType.FOOD_EATEN,
                state.tick,
                {"foodId": eaten.id, "monitorId": eaten.monitor_id, "score": state.score},
            )
        )
    else:
        state.snake.pop()

    if collision.check_self_collision(state.snake, cell):
        state.snake = previous_snake
        state.active_monitor_id = previous_monitor_id
        events.append(GameEvent(EventType.COLLISION, state.tick, {"kind": "self"}))
        return _end(state, "self", events)

    located = locate_monitor(monitors, state.snake[0])
    if located is not None:
        state.active_monitor_id = located.id
    return events
