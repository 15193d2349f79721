"""Monitor layout and portal ring generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from . import constants
from .grid import Position, monitor_grid


@dataclass(frozen=True)
class MonitorConfig:
    """One display surface placed on the monitor layout grid.

    ``rotation_deg`` is cosmetic: renderers may rotate their canvas but the
    simulation ignores it.
    """

    id: str
    row: int
    col: int
    rotation_deg: int = 0

    def __post_init__(self) -> None:
        if self.rotation_deg not in constants.VALID_ROTATIONS:
            raise ValueError(f"Invalid rotation: {self.rotation_deg}")

    @property
    def origin(self) -> Position:
        return Position(self.col * constants.MONITOR_WIDTH, self.row * constants.MONITOR_HEIGHT)


@dataclass(frozen=True)
class Portal:
    """A one-way link from ``entry`` on ``source`` to ``exit`` on ``destination``.

    Both points are monitor-local pixel coordinates.
    """

    source: str
    destination: str
    entry: Position
    exit: Position

    @property
    def id(self) -> str:
        return f"{self.source}->{self.destination}"


def generate_monitors(count: int) -> List[MonitorConfig]:
    """Lay out ``count`` monitors row-major on a ``ceil(sqrt(count))`` wide grid."""

    if count <= 0:
        return []
    _, cols = monitor_grid(count)
    return [MonitorConfig(id=str(index), row=index // cols, col=index % cols) for index in range(count)]


def generate_portals(monitors: Sequence[MonitorConfig]) -> List[Portal]:
    """Connect every monitor to the next one, closing the ring on the first.

    A single monitor has nowhere to go, so it gets no portals.
    """

    if len(monitors) <= 1:
        return []
    entry = Position(constants.MONITOR_WIDTH - constants.PORTAL_ENTRY_INSET, constants.MONITOR_HEIGHT / 2)
    exit_point = Position(constants.PORTAL_EXIT_OFFSET, constants.MONITOR_HEIGHT / 2)
    portals: List[Portal] = []
    for index, monitor in enumerate(monitors):
        destination = monitors[(index + 1) % len(monitors)]
        portals.append(Portal(source=monitor.id, destination=destination.id, entry=entry, exit=exit_point))
    return portals
