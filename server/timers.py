# server/timers.py
"""Timer manager for the event-driven session engine."""

import asyncio
import logging
from typing import Any, Callable, Awaitable, Dict, Optional

from server.events import GameEvent, GameEventType

logger = logging.getLogger(__name__)


class TimerManager:
    """Manages repeating timers that post an event on every interval."""

    def __init__(self, event_callback: Callable[[GameEvent], Awaitable[None]]):
        """Initialize timer manager.

        Args:
            event_callback: Async function to call on every tick.
        """
        self._event_callback = event_callback
        self._timers: Dict[str, asyncio.Task] = {}

    def start_interval(
        self,
        timer_id: str,
        interval_seconds: float,
        event_type: GameEventType,
        generation: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Start a timer that fires an event every interval until cancelled.

        An existing timer with the same id is cancelled first, so the new
        cadence starts from now.

        Args:
            timer_id: Unique identifier for this timer.
            interval_seconds: Time between ticks.
            event_type: The event type to fire.
            generation: Match generation stamped on every tick.
            data: Optional data to include in each event.
        """
        self.cancel_timer(timer_id)

        async def interval_task():
            while True:
                await asyncio.sleep(interval_seconds)
                event = GameEvent(type=event_type, data=dict(data or {}), generation=generation)
                await self._event_callback(event)

        task = asyncio.create_task(interval_task(), name=f"timer:{timer_id}")
        task.add_done_callback(lambda t: self._on_task_done(timer_id, t))
        self._timers[timer_id] = task

    def _on_task_done(self, timer_id: str, task: asyncio.Task) -> None:
        # A replaced timer must not drop the reference to its successor
        if self._timers.get(timer_id) is task:
            del self._timers[timer_id]
        if not task.cancelled() and task.exception() is not None:
            logger.error("Timer %s stopped", timer_id, exc_info=task.exception())

    def cancel_timer(self, timer_id: str) -> bool:
        """Cancel a timer if it exists.

        Args:
            timer_id: The timer to cancel.

        Returns:
            True if a timer was cancelled, False if no such timer.
        """
        task = self._timers.pop(timer_id, None)
        if task:
            task.cancel()
            return True
        return False

    def cancel_all(self) -> None:
        """Cancel all active timers."""
        for task in self._timers.values():
            task.cancel()
        self._timers.clear()

    def is_active(self, timer_id: str) -> bool:
        """Check if a timer is currently active."""
        return timer_id in self._timers

    async def aclose(self) -> None:
        """Cancel all timers and wait for their tasks to finish."""
        tasks = list(self._timers.values())
        self.cancel_all()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
