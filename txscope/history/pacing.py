"""
Cooperative request pacing: a fixed minimum interval between consecutive requests.

Advisory only; not a token bucket and not adaptive.
"""

from __future__ import annotations

import asyncio
import time


class RequestPacer:
    """Min interval between acquires, shared by every task holding the pacer."""

    def __init__(self, interval_sec: float = 0.0) -> None:
        if interval_sec < 0:
            raise ValueError("interval_sec must be non-negative")
        self._interval = interval_sec
        self._last_acquire: float | None = None
        self._lock = asyncio.Lock()

    @property
    def interval_sec(self) -> float:
        return self._interval

    async def acquire(self) -> None:
        """Wait until interval_sec has passed since the previous acquire. The first acquire never waits."""
        if self._interval <= 0:
            return
        async with self._lock:
            if self._last_acquire is not None:
                elapsed = time.monotonic() - self._last_acquire
                if elapsed < self._interval:
                    await asyncio.sleep(self._interval - elapsed)
            self._last_acquire = time.monotonic()
