"""
Payment relationships between an address pair, derived from the recipient's history.

A transaction matches when its classified payer is `payer` and its classified
recipient is `recipient`. Nothing is cached between calls.
"""

from __future__ import annotations

import math
import time
from typing import Callable

from txscope.decoder.models import ClassifiedTransaction
from txscope.history.enricher import BatchEnricher
from txscope.history.traverser import within_block_time
from txscope.txscope_logging import get_logger

logger = get_logger(__name__)


def _matches(record: ClassifiedTransaction, recipient: str, payer: str) -> bool:
    return record.is_payer(payer) and record.is_recipient(recipient)


class RelationshipAnalyzer:
    """Existence and aggregate queries over classified history."""

    def __init__(self, enricher: BatchEnricher, *, clock: Callable[[], float] = time.time) -> None:
        self._enricher = enricher
        self._traverser = enricher.traverser
        self._clock = clock

    async def has_payment_relationship(self, recipient: str, payer: str) -> str | None:
        """
        Signature of the newest transaction where payer paid recipient, or None.

        Classifies lazily one signature at a time and stops on the first match.
        """
        checked = 0
        async for record in self._traverser.iter_signatures(recipient):
            (result,) = await self._enricher.enrich([record], concurrency_limit=1)
            checked += 1
            if result.ok and _matches(result.transaction, recipient, payer):
                logger.info(
                    "payment_relationship_found",
                    recipient=recipient,
                    payer=payer,
                    signature=result.signature,
                    checked=checked,
                )
                return result.signature
        logger.info("payment_relationship_absent", recipient=recipient, payer=payer, checked=checked)
        return None

    async def total_payment_amount(
        self,
        recipient: str,
        payer: str,
        window_seconds: float | None = None,
    ) -> int:
        """
        Sum of native_amount (lamports) over every matching transaction.

        With a window, only transactions whose block time is at or after
        now - window_seconds count; those without a block time never count.
        """
        in_window = None
        cutoff = 0.0
        if window_seconds is not None:
            if window_seconds < 0:
                raise ValueError("window_seconds must be non-negative")
            cutoff = self._clock() - window_seconds
            in_window = within_block_time(start=math.ceil(cutoff))

        total = 0
        matched = 0
        async for page in self._traverser.iter_pages(recipient):
            items = [r for r in page.items if in_window is None or in_window(r)]
            for result in await self._enricher.enrich(items):
                if not result.ok or not _matches(result.transaction, recipient, payer):
                    continue
                tx = result.transaction
                if in_window is not None and (tx.block_time is None or tx.block_time < cutoff):
                    continue
                total += tx.native_amount
                matched += 1
        logger.info(
            "payment_total_computed",
            recipient=recipient,
            payer=payer,
            window_seconds=window_seconds,
            matches=matched,
            total=total,
        )
        return total

    async def payments_between(
        self,
        recipient: str,
        payer: str,
        limit: int | None = None,
    ) -> list[ClassifiedTransaction]:
        """Matching classified records, newest first, at most `limit` of them."""
        out: list[ClassifiedTransaction] = []
        async for batch in self._enricher.iter_address_batches(recipient):
            for result in batch:
                if result.ok and _matches(result.transaction, recipient, payer):
                    out.append(result.transaction)
                    if limit is not None and len(out) >= limit:
                        return out
        return out
