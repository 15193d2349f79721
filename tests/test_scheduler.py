from __future__ import annotations

from portalsnake import constants
from portalsnake.config import GameConfig
from portalsnake.grid import Position
from portalsnake.scheduler import process_ticks
from portalsnake.snake import Direction
from portalsnake.state import GameState, Phase
from portalsnake.topology import generate_monitors

CONFIG = GameConfig(monitor_count=1, tick_interval_ms=100)
MONITORS = generate_monitors(1)


def _running(head=Position(975, 555)) -> GameState:
    return GameState(
        phase=Phase.RUNNING,
        snake=[head, Position(head.x - 30, head.y)],
        time_left_ms=600_000.0,
        total_time_ms=600_000.0,
    )


def test_nothing_owed_before_one_interval() -> None:
    state = _running()
    assert process_ticks(state, CONFIG, MONITORS, [], now_ms=99) == []
    assert state.tick == 0
    assert state.last_tick_ms == 0


def test_whole_ticks_run_and_remainder_carries() -> None:
    state = _running()
    process_ticks(state, CONFIG, MONITORS, [], now_ms=250)
    assert state.tick == 2
    assert state.last_tick_ms == 200
    process_ticks(state, CONFIG, MONITORS, [], now_ms=300)
    assert state.tick == 3
    assert state.snake[0] == Position(1065, 555)


def test_catch_up_is_capped() -> None:
    state = _running()
    process_ticks(state, CONFIG, MONITORS, [], now_ms=100 * CONFIG.tick_interval_ms)
    assert state.tick == constants.MAX_CATCHUP_TICKS
    assert state.last_tick_ms == 100 * CONFIG.tick_interval_ms
    process_ticks(state, CONFIG, MONITORS, [], now_ms=100 * CONFIG.tick_interval_ms + 50)
    assert state.tick == constants.MAX_CATCHUP_TICKS


def test_custom_cap() -> None:
    state = _running()
    process_ticks(state, CONFIG, MONITORS, [], now_ms=1_000, max_ticks=2)
    assert state.tick == 2


def test_batch_stops_once_the_round_ends() -> None:
    state = _running(head=Position(1845, 555))
    events = process_ticks(state, CONFIG, MONITORS, [], now_ms=400)
    assert state.phase is Phase.ENDED
    assert state.tick == 3
    assert state.snake[0] == Position(1905, 555)
    assert events[-1].data["reason"] == "wall"


def test_idle_and_ended_rounds_do_not_advance() -> None:
    for phase in (Phase.IDLE, Phase.ENDED):
        state = _running()
        state.phase = phase
        assert process_ticks(state, CONFIG, MONITORS, [], now_ms=10_000) == []
        assert state.tick == 0


def test_clock_going_backwards_is_ignored() -> None:
    state = _running()
    state.last_tick_ms = 5_000
    process_ticks(state, CONFIG, MONITORS, [], now_ms=1_000)
    assert state.tick == 0
    assert state.dir is Direction.RIGHT
