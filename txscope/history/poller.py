"""
Continuous signature polling for one address.

Walks the full history first, then keeps re-reading the newest page and
yields each signature exactly once. Transient node failures are logged and
retried; stop() ends the walk at the next wait or page boundary.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Awaitable, Callable

from txscope.core.exceptions import RpcUnavailable
from txscope.history.traverser import SignatureTraverser
from txscope.rpc.models import SignatureRecord
from txscope.txscope_logging import get_logger

logger = get_logger(__name__)

DEFAULT_RETRY_DELAY_SEC = 2.0


class SignaturePoller:
    def __init__(
        self,
        traverser: SignatureTraverser,
        *,
        interval_sec: float | None = None,
        retry_delay_sec: float = DEFAULT_RETRY_DELAY_SEC,
    ) -> None:
        interval = traverser.config.page_delay_sec if interval_sec is None else interval_sec
        if interval < 0 or retry_delay_sec < 0:
            raise ValueError("delays must be non-negative")
        self._traverser = traverser
        self._interval = interval
        self._retry_delay = retry_delay_sec
        self._stop = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    async def _wait(self, seconds: float) -> None:
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def watch(self, address: str) -> AsyncIterator[SignatureRecord]:
        """
        Yield every signature of `address` once, oldest pages last, then new
        arrivals as they appear. The cursor is followed only while a page is
        entirely unseen; otherwise the next read starts from the newest page.
        Page-size and address errors propagate.
        """
        seen: set[str] = set()
        cursor: str | None = None
        history_done = False
        page_size = self._traverser.config.page_size
        while not self.stopped:
            try:
                page = await self._traverser.fetch_page(address, cursor, page_size)
            except RpcUnavailable as e:
                logger.warning("poll_page_failed", address=address, error=e.message)
                await self._wait(self._retry_delay)
                continue

            new = [r for r in page.items if r.signature not in seen]
            for record in new:
                seen.add(record.signature)
                yield record
                if self.stopped:
                    return

            if new and len(new) == len(page.items) and page.next_cursor is not None:
                cursor = page.next_cursor
            else:
                cursor = None
                if not history_done:
                    history_done = True
                    logger.info("poll_history_complete", address=address, items=len(seen))
            await self._wait(self._interval if new else self._interval * 2)

    async def poll(self, address: str, callback: Callable[[SignatureRecord], Awaitable[None]]) -> None:
        """Run watch() and await `callback` for each new signature until stop()."""
        async for record in self.watch(address):
            await callback(record)
