"""
Account activity summaries over the newest part of a signature history.

All counts are taken over at most `limit` records, newest first, fetched
with the traverser's bounded walk.
"""

from __future__ import annotations

import time
from typing import Callable

from txscope.history.traverser import SignatureTraverser, within_block_time
from txscope.rpc.models import SignatureRecord
from txscope.txscope_logging import get_logger

logger = get_logger(__name__)

DEFAULT_ACTIVITY_LIMIT = 10
SECONDS_PER_DAY = 86_400


class AccountActivity:
    def __init__(
        self,
        traverser: SignatureTraverser,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._traverser = traverser
        self._clock = clock

    async def _recent(self, address: str, limit: int) -> list[SignatureRecord]:
        return await self._traverser.fetch_bounded(address, limit)

    async def transaction_count(self, address: str, limit: int = DEFAULT_ACTIVITY_LIMIT) -> int:
        return len(await self._recent(address, limit))

    async def successful_count(self, address: str, limit: int = DEFAULT_ACTIVITY_LIMIT) -> int:
        return sum(1 for r in await self._recent(address, limit) if r.is_successful)

    async def failed_count(self, address: str, limit: int = DEFAULT_ACTIVITY_LIMIT) -> int:
        return sum(1 for r in await self._recent(address, limit) if not r.is_successful)

    async def success_rate(self, address: str, limit: int = DEFAULT_ACTIVITY_LIMIT) -> float:
        """Percentage (0-100) of successful records; 0.0 for an empty history."""
        records = await self._recent(address, limit)
        if not records:
            return 0.0
        ok = sum(1 for r in records if r.is_successful)
        return ok * 100.0 / len(records)

    async def has_transactions(self, address: str) -> bool:
        return bool(await self._traverser.fetch_recent(address, 1))

    async def last_transaction_time(self, address: str) -> int | None:
        """Block time of the newest record, or None when there is none or the node omitted it."""
        records = await self._traverser.fetch_recent(address, 1)
        return records[0].block_time if records else None

    async def count_in_time_range(
        self,
        address: str,
        start: int,
        end: int,
        limit: int = DEFAULT_ACTIVITY_LIMIT,
    ) -> int:
        """Records among the newest `limit` whose block time lies in [start, end]."""
        predicate = within_block_time(start=start, end=end)
        return sum(1 for r in await self._recent(address, limit) if predicate(r))

    async def is_active(self, address: str, days: float) -> bool:
        """True when the newest record's block time is within `days` of now."""
        if days < 0:
            raise ValueError("days must be non-negative")
        last = await self.last_transaction_time(address)
        if last is None:
            return False
        active = self._clock() - last <= days * SECONDS_PER_DAY
        logger.debug("activity_checked", address=address, last_block_time=last, days=days, active=active)
        return active
