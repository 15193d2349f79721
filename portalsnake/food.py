"""Food entity and placement."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import random
from typing import TYPE_CHECKING, Optional, Sequence

from . import constants
from .grid import Position, cell_of, from_grid_cell, make_id, monitor_origin
from .topology import MonitorConfig, Portal

if TYPE_CHECKING:  # pragma: no cover
    from .config import GameConfig
    from .state import GameState

logger = logging.getLogger(__name__)


@dataclass
class Food:
    """A grid-aligned food item owned by one monitor."""

    id: str
    position: Position
    monitor_id: str


def _portal_points(portals: Sequence[Portal], monitor_id: str):
    for portal in portals:
        if portal.source == monitor_id:
            yield portal.entry
        if portal.destination == monitor_id:
            yield portal.exit


def generate_food_position(
    state: "GameState",
    monitors: Sequence[MonitorConfig],
    portals: Sequence[Portal],
    config: "GameConfig",
    monitor_id: str,
    rng: Optional[random.Random] = None,
) -> Optional[Position]:
    """Return a free world-space cell centre on ``monitor_id`` or ``None``.

    Candidates are drawn from the monitor interior, ``FOOD_SPAWN_PADDING``
    cells away from each edge. A candidate is rejected when its cell holds a
    snake segment or another food item, or when it lies inside the safe zone
    around a portal endpoint on this monitor.
    """

    rng = rng or random
    cell = config.grid_cell_size
    if not any(m.id == monitor_id for m in monitors):
        return None

    cols = constants.MONITOR_WIDTH // cell
    rows = constants.MONITOR_HEIGHT // cell
    pad = constants.FOOD_SPAWN_PADDING
    if cols - pad <= pad or rows - pad <= pad:
        return None

    origin = monitor_origin(monitors, monitor_id)
    occupied = {cell_of(segment, cell) for segment in state.snake}
    occupied.update(cell_of(food.position, cell) for food in state.foods)
    hazards = list(_portal_points(portals, monitor_id))

    for _ in range(constants.FOOD_SPAWN_ATTEMPTS):
        local = from_grid_cell(rng.randrange(pad, cols - pad), rng.randrange(pad, rows - pad), cell)
        if any(local.distance_to(point) < constants.PORTAL_SAFE_ZONE for point in hazards):
            continue
        position = origin + local
        if cell_of(position, cell) in occupied:
            continue
        return position
    return None


def spawn_food(
    state: "GameState",
    monitors: Sequence[MonitorConfig],
    portals: Sequence[Portal],
    config: "GameConfig",
    monitor_id: str,
    rng: Optional[random.Random] = None,
) -> Optional[Food]:
    """Add one food item to ``monitor_id``; silently skip when no cell is free."""

    position = generate_food_position(state, monitors, portals, config, monitor_id, rng)
    if position is None:
        logger.debug("No free cell for food on monitor %s", monitor_id)
        return None
    food = Food(id=make_id(rng), position=position, monitor_id=monitor_id)
    state.foods.append(food)
    return food


def generate_initial_foods(
    state: "GameState",
    monitors: Sequence[MonitorConfig],
    portals: Sequence[Portal],
    config: "GameConfig",
    rng: Optional[random.Random] = None,
) -> None:
    """Replace the food set with ``food_per_monitor`` items on every monitor."""

    state.foods = []
    for monitor in monitors:
        for _ in range(config.food_per_monitor):
            spawn_food(state, monitors, portals, config, monitor.id, rng)
