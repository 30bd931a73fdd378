"""WebSocket message protocol definitions for the whack-a-mole server."""
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
import json


class ServerMessageType(Enum):
    """Message types sent from server to client."""
    # Joining
    JOINED = "joined"
    ALREADY_JOINED = "alreadyJoined"
    GAME_IN_PROGRESS = "gameInProgress"
    PLAYER_COUNT = "playerCount"

    # Match flow
    MATCH_STARTED = "matchStarted"
    SCORE_UPDATE = "scoreUpdate"
    TIME_UPDATE = "timeUpdate"
    MATCH_ENDED = "matchEnded"
    MATCH_RESTARTED = "matchRestarted"

    # Transport
    ERROR = "error"


class ClientMessageType(Enum):
    """Message types sent from client to server."""
    JOIN = "join"
    START = "start"
    HIT = "hit"
    RESET = "reset"
    RESTART = "restart"
    DEBUG = "debug"


@dataclass
class Message:
    """Base message class for WebSocket communication."""
    type: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize message to JSON string."""
        return json.dumps({
            "type": self.type,
            "data": self.data
        })

    @classmethod
    def from_json(cls, json_str: str) -> 'Message':
        """Deserialize message from JSON string.

        Raises:
            ValueError: If the payload is not valid JSON or not an object.
        """
        obj = json.loads(json_str)
        if not isinstance(obj, dict):
            raise ValueError("Message must be a JSON object")
        data = obj.get("data") or {}
        if not isinstance(data, dict):
            raise ValueError("Message data must be a JSON object")
        return cls(type=str(obj.get("type", "")), data=data)


# Server -> Client message builders
def joined_message(client_id: Optional[str], leader: Optional[bool] = None) -> Message:
    """Build the join confirmation.

    A null client id is broadcast on reset to drop every game identity.
    """
    if client_id is None:
        return Message(type=ServerMessageType.JOINED.value, data={"clientId": None})
    return Message(
        type=ServerMessageType.JOINED.value,
        data={
            "message": "You joined the game.",
            "clientId": client_id,
            "leader": bool(leader)
        }
    )


def already_joined_message(client_id: str) -> Message:
    """Build reply for a repeated join."""
    return Message(
        type=ServerMessageType.ALREADY_JOINED.value,
        data={
            "message": "You already joined the game.",
            "clientId": client_id
        }
    )


def game_in_progress_message() -> Message:
    """Build reply for a join attempt during a match."""
    return Message(
        type=ServerMessageType.GAME_IN_PROGRESS.value,
        data={"message": "Game is in progress."}
    )


def player_count_message(count: int) -> Message:
    """Build participant count broadcast."""
    return Message(type=ServerMessageType.PLAYER_COUNT.value, data={"count": count})


def match_started_message(target: Optional[str]) -> Message:
    """Build the target announcement, sent at start and on every relocation."""
    return Message(type=ServerMessageType.MATCH_STARTED.value, data={"target": target})


def score_update_message(score: int) -> Message:
    """Build score broadcast."""
    return Message(type=ServerMessageType.SCORE_UPDATE.value, data={"score": score})


def time_update_message(remaining_seconds: int) -> Message:
    """Build clock broadcast."""
    return Message(
        type=ServerMessageType.TIME_UPDATE.value,
        data={"remainingSeconds": remaining_seconds}
    )


def match_ended_message(final_score: int) -> Message:
    """Build end-of-match broadcast."""
    return Message(type=ServerMessageType.MATCH_ENDED.value, data={"finalScore": final_score})


def match_restarted_message() -> Message:
    """Build restart broadcast."""
    return Message(type=ServerMessageType.MATCH_RESTARTED.value)


def error_message(code: str, message: str) -> Message:
    """Build error message."""
    return Message(
        type=ServerMessageType.ERROR.value,
        data={
            "code": code,
            "message": message
        }
    )


# Client -> Server message parsers
def parse_hit_message(data: Dict[str, Any]) -> Dict[str, Any]:
    """Parse a hit message. The target id is informational only."""
    target_id = data.get("target_id")
    return {
        "target_id": str(target_id) if target_id is not None else None
    }
