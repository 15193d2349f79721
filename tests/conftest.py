"""Shared fixtures: a controllable clock and a seeded engine."""

from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portalsnake.config import GameConfig  # noqa: E402
from portalsnake.engine import GameEngine  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine(clock: FakeClock) -> GameEngine:
    config = GameConfig(monitor_count=4, timer_seconds=60, food_per_monitor=3, tick_interval_ms=100)
    return GameEngine(config=config, clock=clock, rng=random.Random(1234))
