"""Timed replay of dealer play for the presentation layer."""

import asyncio
from typing import Awaitable, Callable, Iterable

from core.game.events import EventType, GameEvent

# Events that get a pause before they are shown
PACED_EVENTS = frozenset({EventType.DEALER_REVEALS, EventType.DEALER_HITS})


class DealerPacer:
    """
    Replays a settled action's events with a delay before each dealer card.

    The round is already resolved when the replay starts; pacing only
    decides when the presentation layer sees each step. Cancelling stops the
    replay early and never changes the outcome.
    """

    def __init__(
        self,
        delay: float = 0.6,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if delay < 0:
            raise ValueError("delay must not be negative")
        self.delay = delay
        self._sleep = sleep
        self._cancelled = False

    def cancel(self) -> None:
        """Stop before the next event is delivered."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def replay(
        self,
        events: Iterable[GameEvent],
        deliver: Callable[[GameEvent], Awaitable[None]],
    ) -> int:
        """
        Deliver events in order, pausing before dealer reveals and draws.

        Returns:
            Number of events delivered
        """
        delivered = 0
        for event in events:
            if self._cancelled:
                break
            if event.event_type in PACED_EVENTS and self.delay:
                await self._sleep(self.delay)
                if self._cancelled:
                    break
            await deliver(event)
            delivered += 1
        return delivered
