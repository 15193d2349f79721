"""Convert elapsed wall-clock time into a bounded batch of ticks."""

from __future__ import annotations

import random
from typing import List, Optional, Sequence

from . import constants
from .config import GameConfig
from .simulation import step
from .state import GameEvent, GameState, Phase
from .topology import MonitorConfig, Portal


def process_ticks(
    state: GameState,
    config: GameConfig,
    monitors: Sequence[MonitorConfig],
    portals: Sequence[Portal],
    now_ms: float,
    rng: Optional[random.Random] = None,
    max_ticks: int = constants.MAX_CATCHUP_TICKS,
) -> List[GameEvent]:
    """Run the ticks owed since ``state.last_tick_ms``, at most ``max_ticks`` of them.

    Within the cap the tick mark advances by whole intervals so the
    fractional remainder carries into the next call. Past the cap the
    backlog is dropped and the mark jumps to ``now_ms``.
    """

    if state.phase is not Phase.RUNNING:
        return []

    interval = config.tick_interval_ms
    owed = int((now_ms - state.last_tick_ms) // interval)
    if owed <= 0:
        return []

    events: List[GameEvent] = []
    for _ in range(min(owed, max_ticks)):
        events.extend(step(state, config, monitors, portals, now_ms, rng))
        if state.phase is not Phase.RUNNING:
            break

    if owed > max_ticks:
        state.last_tick_ms = now_ms
    else:
        state.last_tick_ms += owed * interval
    return events
