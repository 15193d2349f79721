"""Authoritative game engine.

``GameEngine`` owns the configuration, the monitor topology and the round
state. Time only advances when a caller asks for it: every read runs the
ticks owed since the last one, so there is no background timer.
"""

from __future__ import annotations

from collections import deque
import copy
import logging
from pathlib import Path
import random
import threading
import time
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, Union

from . import constants, protocol
from .config import GameConfig, load_config_file
from .food import generate_initial_foods
from .persistence import Storage
from .scheduler import process_ticks
from .snake import Direction, initial_snake
from .state import EventType, GameEvent, GameState, Phase
from .topology import MonitorConfig, Portal, generate_monitors, generate_portals

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class GameEngine:
    """Holds the canonical state and serialises every operation on it.

    All public methods take the same re-entrant lock and hand out deep
    copies, so concurrent pollers never see a half-applied tick.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        storage: Optional[Storage] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._clock: Clock = clock or monotonic_ms
        self._rng = rng or random.Random()
        self._storage = storage
        self._events: Deque[GameEvent] = deque(maxlen=constants.MAX_QUEUED_EVENTS)
        self.config = (config or GameConfig()).validate()
        self.monitors: List[MonitorConfig] = generate_monitors(self.config.monitor_count)
        self.portals: List[Portal] = generate_portals(self.monitors)
        self.state = self._fresh_state()
        if storage is not None:
            self._restore()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _fresh_state(self, phase: Phase = Phase.IDLE) -> GameState:
        now = self._clock()
        total = float(self.config.timer_seconds * 1000)
        return GameState(
            phase=phase,
            snake=initial_snake(self.monitors, self.config.grid_cell_size),
            active_monitor_id="0",
            last_tick_ms=now,
            last_timer_ms=now,
            time_left_ms=total,
            total_time_ms=total,
        )

    def _snapshot(self) -> GameState:
        return copy.deepcopy(self.state)

    def _advance(self, now_ms: Optional[float] = None) -> List[GameEvent]:
        now = self._clock() if now_ms is None else now_ms
        tick_before = self.state.tick
        events = process_ticks(self.state, self.config, self.monitors, self.portals, now, self._rng)
        self._events.extend(events)
        if self.state.tick != tick_before:
            self._save()
        return events

    def _emit(self, event_type: EventType, **data: Any) -> None:
        self._events.append(GameEvent(event_type, self.state.tick, data))

    def to_dict(self) -> Dict[str, Any]:
        """Return the ``{config, monitors, portals, game}`` aggregate."""

        with self._lock:
            payload: Dict[str, Any] = {"config": protocol.config_to_dict(self.config)}
            payload.update(protocol.topology_to_dict(self.monitors, self.portals))
            payload["game"] = protocol.state_to_dict(self.state)
            return payload

    def _save(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save(self.to_dict())
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to persist game state")

    def _restore(self) -> None:
        try:
            payload = self._storage.load()
        except (OSError, ValueError):
            logger.exception("Failed to load saved game state, starting idle")
            return
        if not payload:
            return
        try:
            config = protocol.config_from_dict(payload["config"])
            monitors = [protocol.monitor_from_dict(item) for item in payload.get("monitors", [])]
            portals = [protocol.portal_from_dict(item) for item in payload.get("portals", [])]
            state = protocol.state_from_dict(payload["game"])
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring unusable saved game state: %s", exc)
            return
        self.config = config
        self.monitors = monitors or generate_monitors(config.monitor_count)
        self.portals = portals if monitors else generate_portals(self.monitors)
        # Clock readings from another process are meaningless here.
        now = self._clock()
        state.last_tick_ms = now
        state.last_timer_ms = now
        self.state = state
        logger.info("Restored %s game at tick %d", state.phase.value, state.tick)

    # ------------------------------------------------------------------
    # Public control surface
    # ------------------------------------------------------------------
    def setup(
        self,
        monitor_count: int,
        timer_seconds: int,
        food_per_monitor: int = constants.DEFAULT_FOOD_PER_MONITOR,
    ) -> Tuple[List[MonitorConfig], List[Portal]]:
        """Rebuild config and topology, then return to an idle board."""

        with self._lock:
            self.config = self.config.updated(
                monitor_count=monitor_count,
                timer_seconds=timer_seconds,
                food_per_monitor=food_per_monitor,
            )
            self.monitors = generate_monitors(self.config.monitor_count)
            self.portals = generate_portals(self.monitors)
            self.state = self._fresh_state()
            logger.info(
                "Setup: %d monitors, %d portals, %ds round",
                len(self.monitors),
                len(self.portals),
                self.config.timer_seconds,
            )
            self._save()
            return list(self.monitors), list(self.portals)

    def start(self) -> GameState:
        """Begin a new round; a running round is left untouched."""

        with self._lock:
            if self.state.phase is Phase.RUNNING:
                return self._snapshot()
            if not self.monitors:
                self.monitors = generate_monitors(self.config.monitor_count)
                self.portals = generate_portals(self.monitors)
            self.state = self._fresh_state(Phase.RUNNING)
            generate_initial_foods(self.state, self.monitors, self.portals, self.config, self._rng)
            self._emit(EventType.GAME_START, foods=len(self.state.foods))
            logger.info(
                "Game started with %d foods, tick %dms",
                len(self.state.foods),
                self.config.tick_interval_ms,
            )
            self._save()
            return self._snapshot()

    def stop(self) -> GameState:
        """Freeze the board: the phase becomes ended, everything else stays."""

        with self._lock:
            self._advance()
            if self.state.phase is Phase.RUNNING:
                self._emit(EventType.GAME_OVER, reason="stopped", score=self.state.score)
            self.state.phase = Phase.ENDED
            self._save()
            return self._snapshot()

    def reset(self) -> GameState:
        """Return to an idle board keeping config and topology."""

        with self._lock:
            self.state = self._fresh_state()
            logger.info("Game reset")
            self._save()
            return self._snapshot()

    def set_direction(self, direction: Union[str, Direction]) -> GameState:
        """Buffer ``direction`` for the next tick.

        Reversing onto the committed direction is ignored. Raises
        ``ValueError`` for an unknown direction name.
        """

        direction = Direction.parse(direction)
        with self._lock:
            self._advance()
            if direction is not self.state.dir.opposite:
                self.state.next_dir = direction
                self._save()
            return self._snapshot()

    def advance(self, now_ms: Optional[float] = None) -> List[GameEvent]:
        """Run the ticks owed up to ``now_ms`` (default: the engine clock)."""

        with self._lock:
            return list(self._advance(now_ms))

    def get_state(self) -> GameState:
        with self._lock:
            self._advance()
            return self._snapshot()

    def drain_events(self) -> List[GameEvent]:
        """Return and forget the events recorded since the last drain."""

        with self._lock:
            events = list(self._events)
            self._events.clear()
            return events

    def monitor_view(self, monitor_id: str) -> Dict[str, Any]:
        with self._lock:
            self._advance()
            return protocol.monitor_view_to_dict(self.state, self.monitors, self.portals, str(monitor_id))

    def get_monitors(self) -> List[MonitorConfig]:
        with self._lock:
            return list(self.monitors)

    def get_portals(self) -> List[Portal]:
        with self._lock:
            return list(self.portals)

    def get_config(self) -> GameConfig:
        with self._lock:
            return self.config

    def update_config(self, **changes: Any) -> GameConfig:
        """Apply a partial config update, effective from the next setup, start or reset."""

        with self._lock:
            self.config = self.config.updated(**changes)
            self._save()
            return self.config

    def reload_config(self, path: Union[str, Path]) -> GameConfig:
        """Reload the JSON config file and rebuild the topology from it."""

        with self._lock:
            self.config = load_config_file(path)
            self.monitors = generate_monitors(self.config.monitor_count)
            self.portals = generate_portals(self.monitors)
            self.state = self._fresh_state()
            logger.info(
                "Config reloaded: %d monitors, tick %dms",
                self.config.monitor_count,
                self.config.tick_interval_ms,
            )
            self._save()
            return self.config
