"""
Fixed-delay rate limiting for outbound upstream calls.

The ESPN site API enforces an undocumented rate limit, so the backfill
spaces its calls with fixed sleeps rather than a token bucket:

- 200 ms after each per-event detail call
- 300 ms after each event on a scoreboard date
- 200 ms between weekly windows
- 1000 ms between year batches

A CancellationToken can be shared with the gate; a cancelled token wakes
any pending wait immediately and raises IngestCancelled.
"""
import asyncio
from typing import Optional

from sportsfeed.core.logging import get_logger

logger = get_logger(__name__)

EVENT_DETAIL_DELAY_MS = 200
EVENT_LIST_DELAY_MS = 300
WINDOW_DELAY_MS = 200
YEAR_BATCH_DELAY_MS = 1000


class IngestCancelled(Exception):
    """Raised when a backfill run is cancelled cooperatively."""


class CancellationToken:
    """Cooperative cancellation flag shared by the scheduler and delay gate."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.warning("Cancellation requested")
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise IngestCancelled("Ingest run cancelled")

    async def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True


class DelayGate:
    """
    Suspend the current unit of work before the next outbound call.

    Usage:
        gate = DelayGate()
        await gate.wait(EVENT_DETAIL_DELAY_MS)
    """

    def __init__(self, token: Optional[CancellationToken] = None):
        self.token = token

    async def wait(self, milliseconds: int) -> None:
        """
        Wait at least ``milliseconds`` (unless cancelled).

        Raises:
            IngestCancelled: if the shared token is cancelled before or
                during the wait
        """
        if self.token is not None:
            self.token.raise_if_cancelled()

        seconds = max(milliseconds, 0) / 1000.0

        if self.token is None:
            await asyncio.sleep(seconds)
            return

        if await self.token.wait(seconds):
            raise IngestCancelled("Ingest run cancelled during delay")
