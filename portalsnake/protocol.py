"""JSON protocol helpers shared by the transport and the persistence layer.

Payloads use the camelCase field names that display clients expect.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Sequence

from . import constants
from .config import GameConfig
from .food import Food
from .grid import Position, to_local, world_size
from .snake import Direction
from .state import GameEvent, GameState, Phase
from .topology import MonitorConfig, Portal


def _point(position: Position) -> Dict[str, float]:
    return {"x": position.x, "y": position.y}


def _position(payload: Dict[str, Any]) -> Position:
    return Position(float(payload["x"]), float(payload["y"]))


def config_to_dict(config: GameConfig) -> Dict[str, Any]:
    payload = {
        "monitorCount": config.monitor_count,
        "timerSeconds": config.timer_seconds,
        "foodPerMonitor": config.food_per_monitor,
        "gridCellSize": config.grid_cell_size,
        "tickIntervalMs": config.tick_interval_ms,
    }
    if config.snake_speed is not None:
        payload["snakeSpeed"] = config.snake_speed
    return payload


def config_from_dict(payload: Dict[str, Any]) -> GameConfig:
    return GameConfig(
        monitor_count=payload["monitorCount"],
        timer_seconds=payload["timerSeconds"],
        food_per_monitor=payload["foodPerMonitor"],
        grid_cell_size=payload.get("gridCellSize", constants.CELL_SIZE),
        tick_interval_ms=payload.get("tickIntervalMs", constants.DEFAULT_TICK_INTERVAL_MS),
        snake_speed=payload.get("snakeSpeed"),
    ).validate()


def monitor_to_dict(monitor: MonitorConfig) -> Dict[str, Any]:
    return {"id": monitor.id, "row": monitor.row, "col": monitor.col, "rotationDeg": monitor.rotation_deg}


def monitor_from_dict(payload: Dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        id=str(payload["id"]),
        row=int(payload["row"]),
        col=int(payload["col"]),
        rotation_deg=int(payload.get("rotationDeg", 0)),
    )


def portal_to_dict(portal: Portal) -> Dict[str, Any]:
    return {
        "id": portal.id,
        "from": portal.source,
        "to": portal.destination,
        "fromPos": _point(portal.entry),
        "toPos": _point(portal.exit),
    }


def portal_from_dict(payload: Dict[str, Any]) -> Portal:
    return Portal(
        source=str(payload["from"]),
        destination=str(payload["to"]),
        entry=_position(payload["fromPos"]),
        exit=_position(payload["toPos"]),
    )


def food_to_dict(food: Food) -> Dict[str, Any]:
    return {"id": food.id, "x": food.position.x, "y": food.position.y, "monitorId": food.monitor_id}


def food_from_dict(payload: Dict[str, Any]) -> Food:
    return Food(id=str(payload["id"]), position=_position(payload), monitor_id=str(payload["monitorId"]))


def state_to_dict(state: GameState) -> Dict[str, Any]:
    """Serialise ``state`` to a JSON friendly dictionary."""

    return {
        "phase": state.phase.value,
        "score": state.score,
        "dir": state.dir.value,
        "nextDir": state.next_dir.value,
        "snake": [_point(segment) for segment in state.snake],
        "foods": [food_to_dict(food) for food in state.foods],
        "activeMonitorId": state.active_monitor_id,
        "tick": state.tick,
        "lastTickTime": state.last_tick_ms,
        "lastTimerTime": state.last_timer_ms,
        "timeLeftMs": state.time_left_ms,
        "totalTimeMs": state.total_time_ms,
    }


def state_from_dict(payload: Dict[str, Any]) -> GameState:
    """Rebuild a ``GameState``; raises ``KeyError``/``ValueError`` on bad input."""

    snake = [_position(segment) for segment in payload["snake"]]
    if len(snake) < 2:
        raise ValueError("Snake must have at least two segments")
    return GameState(
        phase=Phase(payload["phase"]),
        score=int(payload["score"]),
        dir=Direction.parse(payload["dir"]),
        next_dir=Direction.parse(payload["nextDir"]),
        snake=snake,
        foods=[food_from_dict(food) for food in payload.get("foods", [])],
        active_monitor_id=str(payload.get("activeMonitorId", "0")),
        tick=int(payload.get("tick", 0)),
        last_tick_ms=float(payload.get("lastTickTime", 0.0)),
        last_timer_ms=float(payload.get("lastTimerTime", payload.get("lastTickTime", 0.0))),
        time_left_ms=float(payload["timeLeftMs"]),
        total_time_ms=float(payload["totalTimeMs"]),
    )


def monitor_view_to_dict(
    state: GameState,
    monitors: Sequence[MonitorConfig],
    portals: Sequence[Portal],
    monitor_id: str,
) -> Dict[str, Any]:
    """Return the part of ``state`` that falls on ``monitor_id``, in local pixels.

    Segments keep their body index so a renderer can tell head from tail.
    Raises ``ValueError`` for an unknown monitor.
    """

    monitor = next((m for m in monitors if m.id == monitor_id), None)
    if monitor is None:
        raise ValueError(f"Unknown monitor: {monitor_id!r}")
    origin = monitor.origin
    right = origin.x + constants.MONITOR_WIDTH
    bottom = origin.y + constants.MONITOR_HEIGHT

    def inside(position: Position) -> bool:
        return origin.x <= position.x < right and origin.y <= position.y < bottom

    segments = []
    for index, segment in enumerate(state.snake):
        if inside(segment):
            local = to_local(monitors, monitor_id, segment)
            segments.append({"index": index, "x": local.x, "y": local.y})
    foods = []
    for food in state.foods:
        if food.monitor_id == monitor_id:
            local = to_local(monitors, monitor_id, food.position)
            foods.append({"id": food.id, "x": local.x, "y": local.y})
    return {
        "monitorId": monitor_id,
        "rotationDeg": monitor.rotation_deg,
        "phase": state.phase.value,
        "score": state.score,
        "tick": state.tick,
        "timeLeftMs": state.time_left_ms,
        "active": state.active_monitor_id == monitor_id,
        "snake": segments,
        "foods": foods,
        "portals": [
            portal_to_dict(portal)
            for portal in portals
            if portal.source == monitor_id or portal.destination == monitor_id
        ],
    }


def event_to_dict(event: GameEvent) -> Dict[str, Any]:
    return {"type": event.type.value, "tick": event.tick, "data": dict(event.data)}


def parse_client_message(message) -> dict:
    """Parse a raw client ``message`` into a Python dictionary."""

    try:
        payload = json.loads(message)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ValueError("Invalid client message") from exc
    if not isinstance(payload, dict):
        raise ValueError("Client message must be a JSON object")
    return payload


def encode_snapshot(state: GameState, events: Iterable[GameEvent] = ()) -> str:
    """Encode the full world state for broadcasting to clients."""

    return json.dumps(
        {
            "type": "snapshot",
            "state": state_to_dict(state),
            "events": [event_to_dict(event) for event in events],
        }
    )


def encode_monitor_view(view: Dict[str, Any]) -> str:
    """Encode the slice of the world visible on one monitor."""

    payload = dict(view)
    payload["type"] = "monitor"
    return json.dumps(payload)


def encode_welcome(
    monitors: Sequence[MonitorConfig],
    portals: Sequence[Portal],
    config: GameConfig,
    monitor_id: Optional[str] = None,
) -> str:
    """Encode the welcome payload sent upon connection."""

    world_width, world_height = world_size(len(monitors))
    return json.dumps(
        {
            "type": "welcome",
            "monitorId": monitor_id,
            "monitors": [monitor_to_dict(monitor) for monitor in monitors],
            "portals": [portal_to_dict(portal) for portal in portals],
            "config": config_to_dict(config),
            "dimensions": {
                "width": constants.MONITOR_WIDTH,
                "height": constants.MONITOR_HEIGHT,
                "cellSize": config.grid_cell_size,
                "worldWidth": world_width,
                "worldHeight": world_height,
            },
        }
    )


def encode_reply(kind: str, **payload: Any) -> str:
    body: Dict[str, Any] = {"type": kind}
    body.update(payload)
    return json.dumps(body)


def encode_error(message: str) -> str:
    return json.dumps({"type": "error", "error": message})


def topology_to_dict(monitors: Sequence[MonitorConfig], portals: Sequence[Portal]) -> Dict[str, List[Dict[str, Any]]]:
    return {
        "monitors": [monitor_to_dict(monitor) for monitor in monitors],
        "portals": [portal_to_dict(portal) for portal in portals],
    }
