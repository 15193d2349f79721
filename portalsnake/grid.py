"""Grid and coordinate primitives used by the authoritative engine.

The world is the union of all monitor rectangles. Positions are world-space
pixels; every entity sits on the centre of a grid cell.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import random
import string
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from . import constants

if TYPE_CHECKING:  # pragma: no cover
    from .topology import MonitorConfig

_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class Position:
    """An immutable two dimensional point in pixel space."""

    x: float
    y: float

    def __add__(self, other: "Position") -> "Position":
        return Position(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Position") -> "Position":
        return Position(self.x - other.x, self.y - other.y)

    def distance_to(self, other: "Position") -> float:
        """Return the Euclidean distance between this point and ``other``."""

        return math.hypot(self.x - other.x, self.y - other.y)

    def to_tuple(self) -> tuple[float, float]:
        return self.x, self.y


def to_grid_cell(x: float, y: float, cell_size: float) -> Tuple[int, int]:
    """Return the ``(gx, gy)`` cell index containing the pixel ``(x, y)``."""

    return math.floor(x / cell_size), math.floor(y / cell_size)


def cell_of(position: Position, cell_size: float) -> Tuple[int, int]:
    return to_grid_cell(position.x, position.y, cell_size)


def from_grid_cell(gx: int, gy: int, cell_size: float) -> Position:
    """Return the pixel centre of the cell ``(gx, gy)``."""

    half = cell_size / 2
    return Position(gx * cell_size + half, gy * cell_size + half)


def snap_to_grid(x: float, y: float, cell_size: float) -> Position:
    """Snap ``(x, y)`` to the centre of its grid cell.

    Snapping is idempotent: a cell centre maps onto itself.
    """

    gx, gy = to_grid_cell(x, y, cell_size)
    return from_grid_cell(gx, gy, cell_size)


def monitor_origin(monitors: Sequence["MonitorConfig"], monitor_id: str) -> Position:
    """Return the world-space top left corner of ``monitor_id``.

    Unknown ids fall back to the first monitor, an empty layout to ``(0, 0)``.
    """

    monitor = next((m for m in monitors if m.id == monitor_id), None)
    if monitor is None:
        if not monitors:
            return Position(0, 0)
        monitor = monitors[0]
    return Position(monitor.col * constants.MONITOR_WIDTH, monitor.row * constants.MONITOR_HEIGHT)


def monitor_center(monitors: Sequence["MonitorConfig"], monitor_id: str, cell_size: float) -> Position:
    """Return the grid-snapped centre of ``monitor_id`` in world space."""

    origin = monitor_origin(monitors, monitor_id)
    return snap_to_grid(
        origin.x + constants.MONITOR_WIDTH / 2,
        origin.y + constants.MONITOR_HEIGHT / 2,
        cell_size,
    )


def locate_monitor(monitors: Sequence["MonitorConfig"], position: Position) -> Optional["MonitorConfig"]:
    """Return the monitor whose half-open rectangle contains ``position``."""

    for monitor in monitors:
        ox = monitor.col * constants.MONITOR_WIDTH
        oy = monitor.row * constants.MONITOR_HEIGHT
        if ox <= position.x < ox + constants.MONITOR_WIDTH and oy <= position.y < oy + constants.MONITOR_HEIGHT:
            return monitor
    return None


def to_local(monitors: Sequence["MonitorConfig"], monitor_id: str, position: Position) -> Position:
    """Translate a world-space ``position`` into ``monitor_id`` local pixels."""

    return position - monitor_origin(monitors, monitor_id)


def monitor_grid(count: int) -> Tuple[int, int]:
    """Return the ``(rows, cols)`` layout used for ``count`` monitors."""

    cols = max(1, math.ceil(math.sqrt(count)))
    rows = max(1, math.ceil(count / cols))
    return rows, cols


def world_size(count: int) -> Tuple[int, int]:
    """Return the world ``(width, height)`` in pixels for ``count`` monitors."""

    rows, cols = monitor_grid(count)
    return cols * constants.MONITOR_WIDTH, rows * constants.MONITOR_HEIGHT


def make_id(rng: Optional[random.Random] = None, length: int = 7) -> str:
    """Return a short random base-36 identifier."""

    rng = rng or random
    return "".join(rng.choice(_ID_ALPHABET) for _ in range(length))
