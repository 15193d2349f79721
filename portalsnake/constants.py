"""Gameplay constants shared across the engine modules."""

MONITOR_WIDTH: int = 1920
MONITOR_HEIGHT: int = 1080
CELL_SIZE: int = 30

PORTAL_DETECTION_RADIUS: float = 80.0
PORTAL_SAFE_ZONE_FACTOR: float = 1.5
PORTAL_SAFE_ZONE: float = PORTAL_DETECTION_RADIUS * PORTAL_SAFE_ZONE_FACTOR
PORTAL_ENTRY_INSET: int = 80
PORTAL_EXIT_OFFSET: int = 100

FOOD_SPAWN_PADDING: int = 3
FOOD_SPAWN_ATTEMPTS: int = 100
POINTS_PER_FOOD: int = 10
SELF_COLLISION_SKIP: int = 3
MAX_CATCHUP_TICKS: int = 5
MAX_QUEUED_EVENTS: int = 256

DEFAULT_MONITOR_COUNT: int = 6
DEFAULT_TIMER_SECONDS: int = 120
DEFAULT_FOOD_PER_MONITOR: int = 5
DEFAULT_TICK_INTERVAL_MS: int = 100

MONITOR_COUNT_RANGE: tuple = (1, 9)
TIMER_SECONDS_RANGE: tuple = (30, 600)
FOOD_PER_MONITOR_RANGE: tuple = (1, 20)
SNAKE_SPEED_RANGE: tuple = (1, 10)
VALID_ROTATIONS: tuple = (0, 90, 180, 270)

STREAM_INTERVAL: float = 0.06
