"""
Server-side round countdown.

A RoundTimer is the cancellation token of one round: it runs a single asyncio
task that sleeps until the round deadline and then invokes the expiry
callback. When a tick interval is configured the same task also reports the
remaining time at that interval, so cancelling the timer stops both.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class RoundTimer:
    """One-shot countdown with an optional periodic tick."""

    def __init__(self, round_number: int) -> None:
        self._round_number = round_number
        self._active_task: asyncio.Task[None] | None = None

    @property
    def round_number(self) -> int:
        return self._round_number

    @property
    def armed(self) -> bool:
        """True until the timer fires or is cancelled."""
        return self._active_task is not None and not self._active_task.done()

    def start(
        self,
        seconds: float,
        on_expire: Callable[[], Awaitable[None]],
        *,
        tick_interval: float = 0,
        on_tick: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Start counting down, replacing any countdown already running."""
        self.cancel()
        self._active_task = asyncio.create_task(self._run_timer(seconds, on_expire, tick_interval, on_tick))

    def cancel(self) -> None:
        """Cancel the countdown. Safe to call repeatedly."""
        if self._active_task is not None and not self._active_task.done():
            self._active_task.cancel()
        self._active_task = None

    async def _run_timer(
        self,
        seconds: float,
        on_expire: Callable[[], Awaitable[None]],
        tick_interval: float,
        on_tick: Callable[[float], Awaitable[None]] | None,
    ) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + seconds
        try:
            if on_tick is not None and tick_interval > 0:
                while deadline - loop.time() > tick_interval:
                    await asyncio.sleep(tick_interval)
                    await on_tick(max(0.0, deadline - loop.time()))
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            # The expiry callback closes the round, which cancels this timer;
            # detach first so that cancel() does not abort the callback itself.
            self._active_task = None
            await on_expire()
        except asyncio.CancelledError:
            pass
        except (RuntimeError, OSError, ConnectionError, ValueError):  # fmt: skip
            logger.exception("round timer callback failed", round_number=self._round_number)
