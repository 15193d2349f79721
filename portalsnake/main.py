"""Entry point for the asyncio based game server."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any, Dict, Optional

from websockets.asyncio.server import ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from . import constants, protocol
from .config import GameConfig, load_config_file
from .engine import GameEngine
from .persistence import JsonFileStorage
from .snake import Direction


logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

_CONFIG_FIELDS = {
    "monitorCount": "monitor_count",
    "timerSeconds": "timer_seconds",
    "foodPerMonitor": "food_per_monitor",
    "snakeSpeed": "snake_speed",
}


def _given(payload: Dict[str, Any], key: str, default: Any) -> Any:
    value = payload.get(key)
    return default if value is None else value


class GameServer:
    """Websocket front end: control and input messages in, snapshots out.

    Every connected client is a subscriber. ``None`` subscribes to the whole
    world, a monitor id to that monitor's slice only.
    """

    def __init__(self, host: str, port: int, engine: Optional[GameEngine] = None) -> None:
        self.host = host
        self.port = port
        self.engine = engine or GameEngine()
        self.clients: Dict[Any, Optional[str]] = {}
        self._broadcast_lock = asyncio.Lock()

    async def start(self) -> None:
        """Start the websocket server and the snapshot broadcast loop."""

        async with serve(self._handle_client, self.host, self.port):
            logging.info("Server listening on %s:%s", self.host, self.port)
            await self._run_broadcast_loop()

    async def _run_broadcast_loop(self) -> None:
        while True:
            await self._broadcast_snapshots()
            await asyncio.sleep(constants.STREAM_INTERVAL)

    def render_for(self, subscription: Optional[str], state, events) -> str:
        """Encode what a subscriber should receive for one broadcast."""

        if subscription is None:
            return protocol.encode_snapshot(state, events)
        view = protocol.monitor_view_to_dict(
            state, self.engine.get_monitors(), self.engine.get_portals(), subscription
        )
        return protocol.encode_monitor_view(view)

    async def _broadcast_snapshots(self) -> None:
        if not self.clients:
            return
        async with self._broadcast_lock:
            state = self.engine.get_state()
            events = self.engine.drain_events()
            disconnected = []
            for websocket, subscription in list(self.clients.items()):
                try:
                    payload = self.render_for(subscription, state, events)
                except ValueError as exc:
                    # The monitor vanished after a setup; fall back to the full world.
                    self.clients[websocket] = None
                    payload = protocol.encode_error(str(exc))
                try:
                    await websocket.send(payload)
                except ConnectionClosed:
                    disconnected.append(websocket)
            for websocket in disconnected:
                self.clients.pop(websocket, None)

    def dispatch(self, payload: Dict[str, Any], client: Any = None) -> str:
        """Apply one client message to the engine and return the encoded reply.

        Raises ``ValueError`` for unknown message types, actions, directions
        or out-of-range settings; the engine is left untouched in that case.
        """

        kind = payload.get("type")
        if kind == "control":
            return self._dispatch_control(payload)
        if kind == "input":
            direction = Direction.parse(payload.get("direction"))
            state = self.engine.set_direction(direction)
            return protocol.encode_reply(
                "input", success=True, direction=direction.value, currentDir=state.dir.value
            )
        if kind == "subscribe":
            monitor_id = payload.get("monitorId")
            if monitor_id is not None:
                monitor_id = str(monitor_id)
                if monitor_id not in {m.id for m in self.engine.get_monitors()}:
                    raise ValueError(f"Unknown monitor: {monitor_id!r}")
            if client is not None:
                self.clients[client] = monitor_id
            return protocol.encode_welcome(
                self.engine.get_monitors(), self.engine.get_portals(), self.engine.get_config(), monitor_id
            )
        if kind == "state":
            return protocol.encode_snapshot(self.engine.get_state())
        raise ValueError(f"Unknown message type: {kind!r}")

    def _dispatch_control(self, payload: Dict[str, Any]) -> str:
        action = payload.get("action")
        engine = self.engine
        if action == "setup":
            config = engine.get_config()
            monitors, portals = engine.setup(
                _given(payload, "monitorCount", config.monitor_count),
                _given(payload, "timerSeconds", config.timer_seconds),
                _given(payload, "foodPerMonitor", config.food_per_monitor),
            )
            body = protocol.topology_to_dict(monitors, portals)
            body["config"] = protocol.config_to_dict(engine.get_config())
            body["state"] = protocol.state_to_dict(engine.get_state())
            return protocol.encode_reply("control", action=action, **body)
        if action == "updateConfig":
            changes = {attr: payload.get(key) for key, attr in _CONFIG_FIELDS.items()}
            config = engine.update_config(**changes)
            return protocol.encode_reply("control", action=action, config=protocol.config_to_dict(config))
        handlers = {"start": engine.start, "stop": engine.stop, "reset": engine.reset}
        if action not in handlers:
            raise ValueError(f"Unknown action: {action!r}")
        state = handlers[action]()
        logging.info("Control action %s -> %s", action, state.phase.value)
        return protocol.encode_reply("control", action=action, state=protocol.state_to_dict(state))

    async def _handle_client(self, websocket: ServerConnection) -> None:
        self.clients[websocket] = None
        await websocket.send(
            protocol.encode_welcome(self.engine.get_monitors(), self.engine.get_portals(), self.engine.get_config())
        )
        logging.info("Client %s connected", websocket.remote_address)
        try:
            async for message in websocket:
                try:
                    reply = self.dispatch(protocol.parse_client_message(message), websocket)
                except ValueError as exc:
                    await websocket.send(protocol.encode_error(str(exc)))
                    continue
                await websocket.send(reply)
        except ConnectionClosed:
            logging.info("Client %s disconnected", websocket.remote_address)
        finally:
            self.clients.pop(websocket, None)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the PortalSnake server")
    parser.add_argument("--host", default="0.0.0.0", help="Host interface to bind to")
    parser.add_argument("--port", type=int, default=8765, help="Port to listen on")
    parser.add_argument("--config", default=None, help="JSON game config file")
    parser.add_argument("--state-file", default=None, help="Persist the game state to this JSON file")
    return parser.parse_args(argv)


def build_engine(args: argparse.Namespace) -> GameEngine:
    config = load_config_file(args.config) if args.config else GameConfig()
    storage = JsonFileStorage(args.state_file) if args.state_file else None
    return GameEngine(config=config, storage=storage)


def main(argv=None) -> None:
    args = parse_args(argv)
    server = GameServer(args.host, args.port, build_engine(args))
    asyncio.run(server.start())


if __name__ == "__main__":
    main()
