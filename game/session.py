"""In-memory state of the shared whack-a-mole session."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class MatchPhase(Enum):
    """Session phases."""
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class MatchRun:
    """Fields that only exist while a match is running."""

    generation: int
    last_score_at_remaining_ms: int
    target_holder: Optional[str] = None


@dataclass
class Session:
    """Participants, roles, score and clock for one session.

    Mutated only by the engine that owns it. Timer handles are not part of
    the session; the engine keeps them and arms them exactly while
    ``match`` is set.
    """

    remaining_time_ms: int
    participants: List[str] = field(default_factory=list)
    leader: Optional[str] = None
    score: int = 0
    match: Optional[MatchRun] = None

    @property
    def phase(self) -> MatchPhase:
        return MatchPhase.RUNNING if self.match is not None else MatchPhase.IDLE

    @property
    def started(self) -> bool:
        return self.match is not None

    @property
    def target_holder(self) -> Optional[str]:
        return self.match.target_holder if self.match else None

    def has_participant(self, participant_id: str) -> bool:
        return participant_id in self.participants

    def add_participant(self, participant_id: str) -> bool:
        """Append a participant, promoting them to leader when there is none.

        Returns:
            True if the participant is now the leader.
        """
        if participant_id in self.participants:
            return self.leader == participant_id
        if not self.participants or not self.leader:
            self.leader = participant_id
        self.participants.append(participant_id)
        return self.leader == participant_id

    def remove_participant(self, participant_id: str) -> bool:
        """Remove a participant, handing leadership to the earliest remaining joiner.

        Returns:
            True if the participant was present.
        """
        if participant_id not in self.participants:
            return False

        self.participants.remove(participant_id)
        if self.leader == participant_id and self.participants:
            self.leader = self.participants[0]
        if self.match and self.match.target_holder == participant_id:
            self.match.target_holder = None
        return True

    def begin_match(self, generation: int, duration_ms: int, no_score_sentinel_ms: int) -> MatchRun:
        self.score = 0
        self.remaining_time_ms = duration_ms
        self.match = MatchRun(
            generation=generation,
            last_score_at_remaining_ms=no_score_sentinel_ms
        )
        return self.match

    def end_match(self) -> None:
        self.match = None

    def clear(self, duration_ms: int) -> None:
        """Return to the initial empty session."""
        self.participants = []
        self.leader = None
        self.score = 0
        self.remaining_time_ms = duration_ms
        self.match = None

    def snapshot(self) -> Dict[str, Any]:
        """JSON-serialisable view of the session for diagnostics."""
        return {
            "phase": self.phase.value,
            "started": self.started,
            "participants": list(self.participants),
            "leader": self.leader,
            "target_holder": self.target_holder,
            "score": self.score,
            "remaining_time_ms": self.remaining_time_ms,
            "last_score_at_remaining_ms": (
                self.match.last_score_at_remaining_ms if self.match else None
            ),
            "generation": self.match.generation if self.match else None,
        }
