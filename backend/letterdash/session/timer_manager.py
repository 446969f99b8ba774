"""Manage the round countdown of every live room."""

import logging
from collections.abc import Awaitable, Callable

from letterdash.logic.timer import RoundTimer

logger = logging.getLogger(__name__)

# Callback types: (room_code, round_number) and (room_code, round_number, remaining_seconds)
RoundTimeoutCallback = Callable[[str, int], Awaitable[None]]
RoundTickCallback = Callable[[str, int, float], Awaitable[None]]


class TimerManager:
    """Own at most one armed RoundTimer per room code.

    Arming a room always cancels the timer it replaces, and a timer that fires
    is removed before the timeout callback runs. The callback receives the
    round number the timer was armed for, so a late fire can be recognized
    as stale by the caller.
    """

    def __init__(self, on_timeout: RoundTimeoutCallback, on_tick: RoundTickCallback | None = None) -> None:
        self._timers: dict[str, RoundTimer] = {}
        self._on_timeout = on_timeout
        self._on_tick = on_tick

    @property
    def armed_count(self) -> int:
        return len(self._timers)

    def is_armed(self, room_code: str) -> bool:
        timer = self._timers.get(room_code)
        return timer is not None and timer.armed

    def get_timer(self, room_code: str) -> RoundTimer | None:
        return self._timers.get(room_code)

    def arm(self, room_code: str, round_number: int, seconds: float, *, tick_interval: float = 0) -> None:
        """Cancel any timer for the room and start a fresh one for this round."""
        self.cancel(room_code)
        timer = RoundTimer(round_number)
        self._timers[room_code] = timer

        async def on_expire() -> None:
            await self._fire(room_code, timer)

        on_tick = None
        if self._on_tick is not None and tick_interval > 0:
            tick_callback = self._on_tick

            async def on_tick(remaining: float) -> None:
                await tick_callback(room_code, round_number, remaining)

        timer.start(seconds, on_expire, tick_interval=tick_interval, on_tick=on_tick)
        logger.debug("round timer armed for room %s round %d (%.1fs)", room_code, round_number, seconds)

    def cancel(self, room_code: str) -> bool:
        """Cancel and forget the room's timer. Return True if one was armed."""
        timer = self._timers.pop(room_code, None)
        if timer is None:
            return False
        was_armed = timer.armed
        timer.cancel()
        return was_armed

    def cancel_all(self) -> None:
        """Cancel every timer (server shutdown)."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    async def _fire(self, room_code: str, timer: RoundTimer) -> None:
        if self._timers.get(room_code) is timer:
            del self._timers[room_code]
        await self._on_timeout(room_code, timer.round_number)
