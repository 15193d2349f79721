from __future__ import annotations

import random
import threading

import pytest

from portalsnake import food as food_module
from portalsnake.config import GameConfig
from portalsnake.engine import GameEngine
from portalsnake.grid import Position
from portalsnake.persistence import MemoryStorage
from portalsnake.snake import Direction
from portalsnake.state import EventType, Phase


def test_setup_builds_grid_and_ring(engine) -> None:
    monitors, portals = engine.setup(4, 60, 3)
    assert [(m.id, m.row, m.col) for m in monitors] == [("0", 0, 0), ("1", 0, 1), ("2", 1, 0), ("3", 1, 1)]
    assert [(p.source, p.destination) for p in portals] == [("0", "1"), ("1", "2"), ("2", "3"), ("3", "0")]
    state = engine.get_state()
    assert state.phase is Phase.IDLE
    assert state.foods == []
    assert state.snake == [Position(975, 555), Position(945, 555)]


def test_start_spawns_food_on_every_monitor(engine, monkeypatch) -> None:
    calls = []
    original = food_module.generate_food_position

    def counting(state, monitors, portals, config, monitor_id, rng=None):
        calls.append(monitor_id)
        return original(state, monitors, portals, config, monitor_id, rng)

    monkeypatch.setattr(food_module, "generate_food_position", counting)
    engine.setup(4, 60, 3)
    state = engine.start()
    assert len(calls) == 12
    assert sorted(set(calls)) == ["0", "1", "2", "3"]
    assert state.phase is Phase.RUNNING
    assert state.snake == [Position(975, 555), Position(945, 555)]
    assert state.active_monitor_id == "0"
    assert state.time_left_ms == 60_000
    assert state.total_time_ms == 60_000
    assert len(state.foods) == 12


def test_start_while_running_is_a_noop(engine, clock) -> None:
    first = engine.start()
    clock.advance(250)
    second = engine.start()
    assert second.tick == 0
    assert [f.id for f in second.foods] == [f.id for f in first.foods]
    assert engine.get_state().tick == 2


def test_start_after_ended_begins_a_new_round(engine, clock) -> None:
    engine.start()
    clock.advance(300)
    engine.stop()
    state = engine.start()
    assert state.phase is Phase.RUNNING
    assert state.tick == 0
    assert state.score == 0


def test_start_regenerates_missing_topology(engine) -> None:
    engine.monitors = []
    engine.portals = []
    state = engine.start()
    assert len(engine.get_monitors()) == 4
    assert len(engine.get_portals()) == 4
    assert state.phase is Phase.RUNNING


def test_get_state_advances_time(engine, clock) -> None:
    engine.start()
    clock.advance(100)
    state = engine.get_state()
    assert state.tick == 1
    assert state.snake[0] == Position(1005, 555)
    assert state.time_left_ms == 59_900


def test_get_state_caps_catch_up(engine, clock) -> None:
    engine.start()
    clock.advance(100 * 100)
    assert engine.get_state().tick == 5


def test_advance_with_explicit_time(engine, clock) -> None:
    engine.start()
    events = engine.advance(clock.now + 300)
    assert engine.state.tick == 3
    assert isinstance(events, list)


def test_reverse_direction_is_ignored(engine) -> None:
    engine.start()
    assert engine.set_direction("left").next_dir is Direction.RIGHT
    assert engine.set_direction("up").next_dir is Direction.UP
    assert engine.set_direction(Direction.DOWN).next_dir is Direction.DOWN


def test_invalid_direction_is_rejected(engine) -> None:
    engine.start()
    with pytest.raises(ValueError):
        engine.set_direction("sideways")
    assert engine.get_state().next_dir is Direction.RIGHT


def test_direction_is_buffered_until_next_tick(engine, clock) -> None:
    engine.start()
    engine.set_direction("down")
    state = engine.get_state()
    assert state.dir is Direction.RIGHT
    clock.advance(100)
    state = engine.get_state()
    assert state.dir is Direction.DOWN
    assert state.snake[0] == Position(975, 585)


def test_direction_outside_running_is_buffered(engine) -> None:
    state = engine.set_direction("up")
    assert state.phase is Phase.IDLE
    assert state.next_dir is Direction.UP


def test_stop_freezes_the_board(engine, clock) -> None:
    engine.start()
    clock.advance(200)
    stopped = engine.stop()
    assert stopped.phase is Phase.ENDED
    assert stopped.tick == 2
    assert len(stopped.foods) == 12
    clock.advance(1_000)
    later = engine.get_state()
    assert later.tick == 2
    assert later.snake == stopped.snake
    assert engine.set_direction("up").phase is Phase.ENDED


def test_reset_returns_to_idle_keeping_topology(engine, clock) -> None:
    engine.setup(2, 60, 3)
    engine.start()
    clock.advance(300)
    state = engine.reset()
    assert state.phase is Phase.IDLE
    assert state.foods == []
    assert state.tick == 0
    assert state.score == 0
    assert state.time_left_ms == 60_000
    assert len(engine.get_monitors()) == 2


def test_timer_expiry_ends_round(engine, clock) -> None:
    engine.setup(1, 30, 1)
    engine.start()
    clock.advance(30_001)
    state = engine.get_state()
    assert state.phase is Phase.ENDED
    assert state.time_left_ms == 0


def test_snapshots_are_independent_copies(engine) -> None:
    state = engine.start()
    state.snake.append(Position(0, 0))
    state.foods.clear()
    fresh = engine.get_state()
    assert len(fresh.snake) == 2
    assert len(fresh.foods) == 12


def test_setup_validates_ranges(engine) -> None:
    for args in ((0, 60, 3), (10, 60, 3), (4, 29, 3), (4, 601, 3), (4, 60, 0), (4, 60, 21)):
        with pytest.raises(ValueError):
            engine.setup(*args)
    assert engine.get_config().monitor_count == 4


def test_update_config_applies_on_next_round(engine) -> None:
    engine.start()
    engine.update_config(timer_seconds=90)
    assert engine.get_state().time_left_ms == 60_000
    engine.reset()
    assert engine.start().time_left_ms == 90_000


def test_update_config_rejects_bad_values(engine) -> None:
    with pytest.raises(ValueError):
        engine.update_config(monitor_count=12)
    with pytest.raises(ValueError):
        engine.update_config(colour="red")
    assert engine.get_config().monitor_count == 4


def test_update_config_speed_sets_tick_interval(engine) -> None:
    assert engine.update_config(snake_speed=10).tick_interval_ms == 50


def test_reload_config_from_file(engine, tmp_path) -> None:
    path = tmp_path / "game.config.json"
    path.write_text('{"monitorCount": 2, "timerSeconds": 45, "snakeSpeed": 5}', encoding="utf-8")
    config = engine.reload_config(path)
    assert config.monitor_count == 2
    assert config.tick_interval_ms == 150
    assert len(engine.get_portals()) == 2
    assert engine.get_state().phase is Phase.IDLE


def test_events_are_recorded_and_drained(engine, clock) -> None:
    engine.start()
    assert [event.type for event in engine.drain_events()] == [EventType.GAME_START]
    assert engine.drain_events() == []
    engine.stop()
    assert [event.type for event in engine.drain_events()] == [EventType.GAME_OVER]


def test_monitor_view_slices_the_world(engine) -> None:
    engine.setup(2, 60, 3)
    engine.start()
    view = engine.monitor_view("0")
    assert view["active"] is True
    assert view["snake"][0] == {"index": 0, "x": 975, "y": 555}
    assert len(view["foods"]) == 3
    assert {p["id"] for p in view["portals"]} == {"0->1", "1->0"}
    other = engine.monitor_view("1")
    assert other["active"] is False
    assert other["snake"] == []
    with pytest.raises(ValueError):
        engine.monitor_view("9")


def test_state_survives_a_restart(clock) -> None:
    storage = MemoryStorage()
    config = GameConfig(monitor_count=2, timer_seconds=60, food_per_monitor=2)
    first = GameEngine(config=config, clock=clock, rng=random.Random(3), storage=storage)
    first.start()
    clock.advance(200)
    saved = first.get_state()
    assert storage.saves >= 2

    second = GameEngine(clock=clock, storage=storage)
    restored = second.get_state()
    assert restored.phase is Phase.RUNNING
    assert restored.snake == saved.snake
    assert [f.id for f in restored.foods] == [f.id for f in saved.foods]
    assert second.get_config().monitor_count == 2
    assert len(second.get_portals()) == 2


def test_corrupt_saved_state_starts_idle(clock) -> None:
    storage = MemoryStorage({"config": {"monitorCount": 99}, "game": {}})
    engine = GameEngine(clock=clock, storage=storage)
    state = engine.get_state()
    assert state.phase is Phase.IDLE
    assert len(state.snake) == 2


class BrokenStorage:
    def load(self):
        raise OSError("disk gone")

    def save(self, snapshot):
        raise OSError("disk gone")


def test_storage_failures_never_break_the_engine(clock) -> None:
    engine = GameEngine(clock=clock, storage=BrokenStorage())
    state = engine.start()
    assert state.phase is Phase.RUNNING
    clock.advance(100)
    assert engine.get_state().tick == 1


def test_concurrent_callers_are_serialised() -> None:
    engine = GameEngine(config=GameConfig(monitor_count=1, tick_interval_ms=1), rng=random.Random(8))
    engine.start()
    errors = []

    def poll() -> None:
        try:
            last = -1
            for index in range(200):
                state = engine.get_state()
                assert len(state.snake) >= 2
                assert state.tick >= last
                last = state.tick
                engine.set_direction(("up", "right", "down", "right")[index % 4])
        except Exception as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=poll) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert errors == []
