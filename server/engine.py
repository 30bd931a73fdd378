# server/engine.py
"""Event-driven session engine for the shared whack-a-mole game.

This engine:
- Is the only writer of the session state
- Processes one event at a time from a single queue
- Receives participant actions and timer ticks through that same queue
- Drops ticks from a match that has since ended, reset or restarted
"""

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Dict, Optional

from rich.console import Console

from game.difficulty import next_interval
from game.selector import MoleSelector
from game.session import Session
from game.settings import MatchSettings
from server.events import GameEvent, GameEventType
from server.protocol import (
    Message,
    joined_message, already_joined_message, game_in_progress_message,
    player_count_message, match_started_message, score_update_message,
    time_update_message, match_ended_message, match_restarted_message
)
from server.timers import TimerManager

logger = logging.getLogger(__name__)

# Type aliases
MessageBroadcaster = Callable[[Message], Awaitable[None]]
PlayerMessageSender = Callable[[str, Message], Awaitable[None]]
DebugSink = Callable[[Dict[str, Any]], None]


def console_debug_sink(snapshot: Dict[str, Any]) -> None:
    """Pretty-print a session snapshot on stderr."""
    Console(file=sys.stderr).print_json(data=snapshot)


class WhackAMoleEngine:
    """State machine for one whack-a-mole session."""

    # Timer IDs
    TIMER_COUNTDOWN = "countdown"
    TIMER_RESPAWN = "respawn"

    def __init__(
        self,
        broadcast: MessageBroadcaster,
        send_to_player: PlayerMessageSender,
        settings: Optional[MatchSettings] = None,
        selector: Optional[MoleSelector] = None,
        debug_sink: Optional[DebugSink] = None
    ):
        self.broadcast = broadcast
        self.send_to_player = send_to_player
        self.settings = settings or MatchSettings()
        self.selector = selector or MoleSelector()
        self.debug_sink = debug_sink or console_debug_sink

        self.session = Session(remaining_time_ms=self.settings.match_duration_ms)
        self._generation = 0

        self._queue: "asyncio.Queue[GameEvent]" = asyncio.Queue()
        self.timers = TimerManager(self._on_timer_event)

        self._handlers: Dict[GameEventType, Callable[[GameEvent], Awaitable[None]]] = {
            GameEventType.PLAYER_JOIN: self._handle_player_join,
            GameEventType.PLAYER_LEAVE: self._handle_player_leave,
            GameEventType.MATCH_START: self._handle_match_start,
            GameEventType.TARGET_HIT: self._handle_target_hit,
            GameEventType.SESSION_RESET: self._handle_session_reset,
            GameEventType.MATCH_RESTART: self._handle_match_restart,
            GameEventType.DEBUG_SNAPSHOT: self._handle_debug_snapshot,
            GameEventType.COUNTDOWN_TICK: self._handle_countdown_tick,
            GameEventType.RESPAWN_TICK: self._handle_respawn_tick,
        }

    @property
    def generation(self) -> int:
        """Generation of the most recently started match."""
        return self._generation

    # --- Event loop ---

    def submit(self, event: GameEvent) -> None:
        """Queue an event for the engine loop. Never blocks."""
        self._queue.put_nowait(event)

    async def run(self) -> None:
        """Apply queued events one at a time until cancelled."""
        while True:
            event = await self._queue.get()
            try:
                await self.handle_event(event)
            except Exception:
                logger.exception("Failed to handle %s event", event.type.name)
            finally:
                self._queue.task_done()

    async def wait_idle(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def close(self) -> None:
        """Stop both timers and wait for them to wind down."""
        await self.timers.aclose()

    async def handle_event(self, event: GameEvent) -> None:
        """Apply one event to the session."""
        handler = self._handlers.get(event.type)
        if handler:
            await handler(event)

    async def _on_timer_event(self, event: GameEvent) -> None:
        """Called when a timer fires. Routes through the queue."""
        self.submit(event)

    # --- Participant events ---

    async def _handle_player_join(self, event: GameEvent) -> None:
        """Handle PLAYER_JOIN event."""
        player_id = event.player_id
        if not player_id:
            return

        if self.session.started:
            await self.send_to_player(player_id, game_in_progress_message())
            return

        if self.session.has_participant(player_id):
            await self.send_to_player(player_id, already_joined_message(player_id))
            return

        is_leader = self.session.add_participant(player_id)
        logger.info("Player %s joined (leader=%s, players=%d)",
                    player_id, is_leader, len(self.session.participants))

        await self.send_to_player(player_id, joined_message(player_id, leader=is_leader))
        await self.broadcast(player_count_message(len(self.session.participants)))

    async def _handle_player_leave(self, event: GameEvent) -> None:
        """Handle PLAYER_LEAVE event."""
        player_id = event.player_id
        if player_id and self.session.remove_participant(player_id):
            logger.info("Player %s left (leader=%s, players=%d)",
                        player_id, self.session.leader, len(self.session.participants))

    # --- Match lifecycle ---

    async def _handle_match_start(self, event: GameEvent) -> None:
        """Handle MATCH_START event."""
        session = self.session
        if session.started:
            logger.debug("Ignoring start from %s: match already running", event.player_id)
            return
        if event.player_id is None or event.player_id != session.leader:
            logger.debug("Ignoring start from %s: not the leader", event.player_id)
            return
        if len(session.participants) < self.settings.min_players_to_start:
            logger.debug("Ignoring start: %d of %d players",
                         len(session.participants), self.settings.min_players_to_start)
            return

        await self._start_match()

    async def _handle_target_hit(self, event: GameEvent) -> None:
        """Handle TARGET_HIT event."""
        match = self.session.match
        if match is None or match.target_holder is None or event.player_id != match.target_holder:
            logger.debug("Ignoring hit from %s", event.player_id)
            return

        self.session.score += self.settings.points_per_hit
        match.last_score_at_remaining_ms = self.session.remaining_time_ms

        target = self._pick_target()
        self._arm_respawn_timer(match.generation)

        await self.broadcast(match_started_message(target))
        await self.broadcast(score_update_message(self.session.score))

    async def _handle_session_reset(self, event: GameEvent) -> None:
        """Handle SESSION_RESET event."""
        self._stop_match_timers()
        self.session.clear(self.settings.match_duration_ms)
        logger.info("Session reset by %s", event.player_id)

        await self.broadcast(joined_message(None))

    async def _handle_match_restart(self, event: GameEvent) -> None:
        """Handle MATCH_RESTART event."""
        if self.session.started:
            await self._end_match(announce=False)

        self.session.score = 0
        self.session.remaining_time_ms = self.settings.match_duration_ms
        logger.info("Match restarted by %s", event.player_id)

        await self.broadcast(match_restarted_message())

    async def _handle_debug_snapshot(self, event: GameEvent) -> None:
        """Handle DEBUG_SNAPSHOT event."""
        snapshot = self.session.snapshot()
        snapshot["points_per_hit"] = self.settings.points_per_hit
        snapshot["difficulty_tiers"] = self.settings.tiers.to_dict()
        logger.info("Session snapshot requested by %s: %s", event.player_id, json.dumps(snapshot))
        self.debug_sink(snapshot)

    # --- Timer ticks ---

    async def _handle_countdown_tick(self, event: GameEvent) -> None:
        """Handle COUNTDOWN_TICK event."""
        if not self._is_current(event):
            return

        session = self.session
        session.remaining_time_ms = max(0, session.remaining_time_ms - self.settings.tick_ms)

        if session.remaining_time_ms == 0:
            await self._end_match(announce=True)
        elif session.remaining_time_ms % 1000 == 0:
            await self.broadcast(time_update_message(session.remaining_time_ms // 1000))

    async def _handle_respawn_tick(self, event: GameEvent) -> None:
        """Handle RESPAWN_TICK event."""
        if not self._is_current(event):
            return

        match = self.session.match
        decision = next_interval(
            self.session.remaining_time_ms,
            match.last_score_at_remaining_ms,
            self.settings.tiers
        )
        if not decision.should_respawn:
            return

        logger.debug("%s respawn at %dms", decision.tier.value, self.session.remaining_time_ms)
        target = self._pick_target()
        if target is not None:
            await self.broadcast(match_started_message(target))

    # --- Transitions ---

    async def _start_match(self) -> None:
        """Enter RUNNING with a fresh generation and both timers armed."""
        self._stop_match_timers()
        self._generation += 1
        generation = self._generation
        self.session.begin_match(
            generation,
            self.settings.match_duration_ms,
            self.settings.no_score_sentinel_ms
        )

        target = self._pick_target()
        self.timers.start_interval(
            self.TIMER_COUNTDOWN,
            self.settings.tick_ms / 1000,
            GameEventType.COUNTDOWN_TICK,
            generation=generation
        )
        self._arm_respawn_timer(generation)
        logger.info("Match %d started with %d players", generation, len(self.session.participants))

        await self.broadcast(match_started_message(target))

    async def _end_match(self, announce: bool) -> None:
        """Stop both timers and return to IDLE."""
        generation = self.session.match.generation if self.session.match else None
        self._stop_match_timers()
        self.session.end_match()
        logger.info("Match %s ended with score %d", generation, self.session.score)

        if announce:
            await self.broadcast(match_ended_message(self.session.score))

    # --- Helpers ---

    def _is_current(self, event: GameEvent) -> bool:
        """Check that a tick belongs to the running match."""
        match = self.session.match
        if match is None or event.generation != match.generation:
            logger.debug("Dropping stale %s from generation %s", event.type.name, event.generation)
            return False
        return True

    def _pick_target(self) -> Optional[str]:
        """Move the mole to a new holder, or clear it when nobody is left."""
        match = self.session.match
        if not self.session.participants:
            match.target_holder = None
            return None
        match.target_holder = self.selector.pick(self.session.participants, match.target_holder)
        return match.target_holder

    def _arm_respawn_timer(self, generation: int) -> None:
        self.timers.start_interval(
            self.TIMER_RESPAWN,
            self.settings.tiers.hard_ms / 1000,
            GameEventType.RESPAWN_TICK,
            generation=generation
        )

    def _stop_match_timers(self) -> None:
        self.timers.cancel_timer(self.TIMER_COUNTDOWN)
        self.timers.cancel_timer(self.TIMER_RESPAWN)
