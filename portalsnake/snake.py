"""Snake movement primitives."""

from __future__ import annotations

from enum import Enum
from typing import List, Sequence, Tuple

from .grid import Position, monitor_center
from .topology import MonitorConfig

_OFFSETS = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}

_OPPOSITES = {
    "up": "down",
    "down": "up",
    "left": "right",
    "right": "left",
}


class Direction(str, Enum):
    """Heading of the whole snake; one committed direction moves every segment."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def opposite(self) -> "Direction":
        return Direction(_OPPOSITES[self.value])

    def offset(self, cell_size: float) -> Tuple[float, float]:
        dx, dy = _OFFSETS[self.value]
        return dx * cell_size, dy * cell_size

    @classmethod
    def parse(cls, value) -> "Direction":
        """Return the direction named by ``value``.

        Raises ``ValueError`` for anything other than up, down, left or right.
        """

        if isinstance(value, Direction):
            return value
        if isinstance(value, str) and value.lower() in _OFFSETS:
            return cls(value.lower())
        valid = ", ".join(_OFFSETS)
        raise ValueError(f"Invalid direction: {value!r}. Valid: {valid}")


def advance(head: Position, direction: Direction, cell_size: float) -> Position:
    """Return the position one cell away from ``head`` along ``direction``."""

    dx, dy = direction.offset(cell_size)
    return Position(head.x + dx, head.y + dy)


def initial_snake(monitors: Sequence[MonitorConfig], cell_size: float) -> List[Position]:
    """Return a fresh two segment snake heading right from monitor "0"'s centre."""

    head = monitor_center(monitors, "0", cell_size)
    return [head, Position(head.x - cell_size, head.y)]
