"""
WebSocket server entry point for the shared whack-a-mole session.

This module provides:
- WebSocket server using websockets library
- One participant id per connection
- Message routing to the session engine
- Broadcast fan-out to every connected client
"""

import argparse
import asyncio
import json
import logging
import uuid
from typing import Dict, Optional

from rich.logging import RichHandler
from websockets.asyncio.server import ServerConnection, serve
from websockets.asyncio.server import broadcast as broadcast_frames
from websockets.exceptions import ConnectionClosed

from game.config_loader import ConfigLoader
from game.settings import MatchSettings
from server.engine import WhackAMoleEngine
from server.events import GameEvent, GameEventType
from server.protocol import (
    Message, ClientMessageType, error_message, parse_hit_message
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8765

# Client message type -> engine event type
CLIENT_EVENTS: Dict[str, GameEventType] = {
    ClientMessageType.JOIN.value: GameEventType.PLAYER_JOIN,
    ClientMessageType.START.value: GameEventType.MATCH_START,
    ClientMessageType.HIT.value: GameEventType.TARGET_HIT,
    ClientMessageType.RESET.value: GameEventType.SESSION_RESET,
    ClientMessageType.RESTART.value: GameEventType.MATCH_RESTART,
    ClientMessageType.DEBUG.value: GameEventType.DEBUG_SNAPSHOT,
}


class GameServer:
    """
    WebSocket server hosting a single whack-a-mole session.

    Handles:
    - Client connections and disconnections
    - Translating client messages into engine events
    - Unicast replies and broadcasts for the engine
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        settings: Optional[MatchSettings] = None
    ):
        self.host = host
        self.port = port

        # Connection tracking
        self.clients: Dict[str, ServerConnection] = {}  # player_id -> websocket

        self.engine = WhackAMoleEngine(
            broadcast=self.broadcast,
            send_to_player=self.send_to_player,
            settings=settings
        )
        self._engine_task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the engine loop and the WebSocket server, then run forever."""
        self._engine_task = asyncio.create_task(self.engine.run(), name="session-engine")
        logger.info("Starting whack-a-mole server on ws://%s:%d", self.host, self.port)
        try:
            async with serve(self.handle_connection, self.host, self.port, reuse_address=True):
                await asyncio.Future()  # Run forever
        finally:
            await self.stop()

    async def stop(self):
        """Stop timers and the engine loop."""
        await self.engine.close()
        if self._engine_task:
            self._engine_task.cancel()
            try:
                await self._engine_task
            except asyncio.CancelledError:
                pass
            self._engine_task = None

    async def handle_connection(self, websocket: ServerConnection):
        """Handle a new WebSocket connection."""
        player_id = str(uuid.uuid4())
        self.clients[player_id] = websocket
        logger.info("New connection: %s", player_id)

        try:
            async for message in websocket:
                await self.handle_message(player_id, message)
        except ConnectionClosed:
            logger.info("Connection closed: %s", player_id)
        finally:
            await self.handle_disconnect(player_id)

    async def handle_message(self, player_id: str, raw_message):
        """Handle an incoming message."""
        try:
            msg = Message.from_json(raw_message)
        except (ValueError, TypeError):
            await self.send_to_player(player_id, error_message("INVALID_JSON", "Invalid JSON message"))
            return

        event_type = CLIENT_EVENTS.get(msg.type)
        if event_type is None:
            await self.send_to_player(
                player_id, error_message("UNKNOWN_TYPE", f"Unknown message type: {msg.type}")
            )
            return

        data = parse_hit_message(msg.data) if event_type == GameEventType.TARGET_HIT else {}
        self.engine.submit(GameEvent(type=event_type, player_id=player_id, data=data))

    async def handle_disconnect(self, player_id: str):
        """Handle client disconnection."""
        if self.clients.pop(player_id, None) is None:
            return
        self.engine.submit(GameEvent(type=GameEventType.PLAYER_LEAVE, player_id=player_id))

    async def send_to_websocket(self, websocket: ServerConnection, message: Message):
        """Send a message to a specific websocket without waiting on it.

        Closed connections are skipped. The frame is queued on the transport
        right away, so replies keep their order relative to broadcasts.
        """
        broadcast_frames([websocket], message.to_json())

    async def send_to_player(self, player_id: str, message: Message):
        """Send a message to a specific player."""
        websocket = self.clients.get(player_id)
        if websocket:
            await self.send_to_websocket(websocket, message)

    async def broadcast(self, message: Message):
        """Broadcast a message to every connected client.

        Fire-and-forget: a slow or closed client never holds up the engine.
        """
        broadcast_frames(list(self.clients.values()), message.to_json())


def configure_logging(level: str) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)]
    )
    # Handshake failures from health probes are noise at INFO
    logging.getLogger("websockets").setLevel(logging.WARNING)


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Whack-a-mole session server")
    parser.add_argument("--host", default=None, help="Host to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    parser.add_argument("--config-dir", default=None, help="Directory holding game_settings.json")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    loader = ConfigLoader.reload(args.config_dir)
    server_settings = loader.get_server_settings()
    try:
        settings = MatchSettings.from_config(loader)
        host = args.host if args.host is not None else str(server_settings.get("host", DEFAULT_HOST))
        port = args.port if args.port is not None else int(server_settings.get("port", DEFAULT_PORT))
    except (TypeError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    logger.info("Match settings: %s", json.dumps(settings.to_dict()))

    server = GameServer(host=host, port=port, settings=settings)
    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Server stopped")

    return 0


if __name__ == "__main__":
    exit(main())
