"""Shared test fixtures for whack-a-mole session tests."""
import json
import random
from typing import Any, Dict, List

import pytest
import pytest_asyncio

from game.config_loader import ConfigLoader
from game.selector import MoleSelector
from game.settings import MatchSettings
from server.engine import WhackAMoleEngine
from server.protocol import Message


@pytest.fixture(autouse=True)
def deterministic_random():
    """Seed random for reproducible tests."""
    random.seed(42)
    yield
    random.seed()


@pytest.fixture
def temp_config_dir(tmp_path, monkeypatch):
    """Create temporary config directory with a test game_settings.json."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    game_settings = {
        "match": {
            "duration_ms": 30000,
            "tick_ms": 250,
            "points_per_hit": 5,
            "min_players_to_start": 2
        },
        "difficulty": {
            "easy_ms": 1500,
            "medium_ms": 750,
            "hard_ms": 250,
            "medium_below_ms": 20000,
            "hard_below_ms": 10000
        },
        "server": {
            "host": "127.0.0.1",
            "port": 9100
        }
    }
    (config_dir / "game_settings.json").write_text(json.dumps(game_settings, indent=2))

    # Reset the singleton instance FIRST
    ConfigLoader._instance = None
    monkeypatch.setattr(ConfigLoader, '_config_dir', str(config_dir))

    yield config_dir

    # Cleanup: reset singleton
    ConfigLoader._instance = None


class MessageCollector:
    """Helper to collect and analyze messages sent by the engine."""

    def __init__(self):
        self.broadcasts: List[tuple] = []  # (type, data)
        self.player_messages: Dict[str, List[tuple]] = {}  # player_id -> [(type, data)]

    async def broadcast(self, msg: Message):
        """Collect broadcast messages."""
        self.broadcasts.append((msg.type, msg.data))

    async def send_to_player(self, player_id: str, msg: Message):
        """Collect player-specific messages."""
        self.player_messages.setdefault(player_id, []).append((msg.type, msg.data))

    def get_broadcast_types(self) -> List[str]:
        """Get list of broadcast message types."""
        return [t for t, _ in self.broadcasts]

    def get_broadcasts_of_type(self, msg_type: str) -> List[Dict[str, Any]]:
        """Get all broadcasts of a specific type."""
        return [data for t, data in self.broadcasts if t == msg_type]

    def get_player_messages_of_type(self, player_id: str, msg_type: str) -> List[Dict[str, Any]]:
        """Get all messages of a specific type sent to a player."""
        return [data for t, data in self.player_messages.get(player_id, []) if t == msg_type]

    def clear(self):
        """Clear all collected messages."""
        self.broadcasts.clear()
        self.player_messages.clear()


@pytest.fixture
def message_collector():
    """Create a fresh message collector."""
    return MessageCollector()


@pytest.fixture
def debug_snapshots():
    """Collect snapshots written by the debug event."""
    return []


@pytest_asyncio.fixture
async def engine(message_collector, debug_snapshots):
    """Engine with default settings, a seeded selector and collected output.

    Timers are armed for real but nothing drains the queue, so ticks are
    driven by hand in tests.
    """
    game_engine = WhackAMoleEngine(
        broadcast=message_collector.broadcast,
        send_to_player=message_collector.send_to_player,
        settings=MatchSettings(),
        selector=MoleSelector(random.Random(7)),
        debug_sink=debug_snapshots.append
    )
    yield game_engine
    await game_engine.close()
