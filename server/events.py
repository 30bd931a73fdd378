# server/events.py
"""Event types for the whack-a-mole session engine."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class GameEventType(Enum):
    """All events the engine consumes."""

    # Participant events
    PLAYER_JOIN = auto()
    PLAYER_LEAVE = auto()

    # Match lifecycle
    MATCH_START = auto()
    TARGET_HIT = auto()
    SESSION_RESET = auto()
    MATCH_RESTART = auto()

    # Diagnostics
    DEBUG_SNAPSHOT = auto()

    # Timer ticks
    COUNTDOWN_TICK = auto()
    RESPAWN_TICK = auto()


@dataclass
class GameEvent:
    """An event that may trigger a state transition.

    Timer ticks carry the generation of the match that armed them.
    """

    type: GameEventType
    data: Dict[str, Any] = field(default_factory=dict)
    player_id: Optional[str] = None
    generation: Optional[int] = None
