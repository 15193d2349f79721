"""Collision helpers for the engine.

Entities collide when they occupy the same grid cell; distances are only
used for portal detection.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

from . import constants
from .food import Food
from .grid import Position, cell_of, monitor_origin, to_local
from .topology import MonitorConfig, Portal


def check_food_collision(head_cell: Tuple[int, int], foods: Iterable[Food], cell_size: float) -> Optional[Food]:
    """Return the first food whose cell equals ``head_cell``."""

    for food in foods:
        if cell_of(food.position, cell_size) == head_cell:
            return food
    return None


def check_self_collision(snake: Sequence[Position], cell_size: float) -> bool:
    """Return ``True`` if the head shares a cell with the body.

    Head, neck and the segment behind the neck are skipped: on a sharp turn
    the head can enter a cell the following segments have not vacated yet.
    """

    if len(snake) <= constants.SELF_COLLISION_SKIP:
        return False
    head_cell = cell_of(snake[0], cell_size)
    return any(cell_of(segment, cell_size) == head_cell for segment in snake[constants.SELF_COLLISION_SKIP:])


def check_portal_entrance(
    position: Position,
    monitor_id: str,
    portals: Iterable[Portal],
    monitors: Sequence[MonitorConfig],
    radius: float = constants.PORTAL_DETECTION_RADIUS,
) -> Optional[Portal]:
    """Return the first portal leaving ``monitor_id`` whose entry is within ``radius``."""

    origin = monitor_origin(monitors, monitor_id)
    for portal in portals:
        if portal.source != monitor_id:
            continue
        if position.distance_to(origin + portal.entry) <= radius:
            return portal
    return None


def is_boundary(position: Position, monitor_id: str, monitors: Sequence[MonitorConfig], cell_size: float) -> bool:
    """Return ``True`` if ``position`` is closer than half a cell to an edge of ``monitor_id``.

    Cell centres sit exactly half a cell in, so this fires once a move would
    leave the monitor rectangle.
    """

    local = to_local(monitors, monitor_id, position)
    half = cell_size / 2
    return (
        local.x < half
        or local.x > constants.MONITOR_WIDTH - half
        or local.y < half
        or local.y > constants.MONITOR_HEIGHT - half
    )


def check_wall_collision(
    position: Position,
    monitor_id: str,
    monitors: Sequence[MonitorConfig],
    portals: Iterable[Portal],
    cell_size: float,
) -> bool:
    """Return ``True`` if moving to ``position`` hits a wall of ``monitor_id``.

    A boundary that coincides with a portal entrance routes through the
    portal instead.
    """

    if not is_boundary(position, monitor_id, monitors, cell_size):
        return False
    return check_portal_entrance(position, monitor_id, portals, monitors) is None
