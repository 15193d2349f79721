from __future__ import annotations

from typing import Iterable, List, Tuple

from portalsnake.grid import Position, from_grid_cell

CELL = 30


def cells(*coords: Tuple[int, int]) -> List[Position]:
    """Return cell centres for ``(gx, gy)`` pairs."""

    return [from_grid_cell(gx, gy, CELL) for gx, gy in coords]


def as_cells(positions: Iterable[Position]) -> List[Tuple[int, int]]:
    return [(int(p.x // CELL), int(p.y // CELL)) for p in positions]
