"""
Bounded-concurrency batch enrichment: fetch + classify many signatures.

Output order always matches input order; one signature's failure is captured
in its result and never aborts the batch.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Iterable

from txscope.core.exceptions import FetchError, MalformedTransaction, TxScopeError
from txscope.decoder.classifier import classify
from txscope.decoder.models import ClassifiedTransaction
from txscope.history.pacing import RequestPacer
from txscope.history.traverser import LedgerSource, SignatureTraverser
from txscope.rpc.models import SignatureRecord
from txscope.txscope_logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 50


@dataclass(frozen=True)
class EnrichmentResult:
    """Outcome for one signature: a classified record or the error that stopped it."""

    signature: str
    transaction: ClassifiedTransaction | None = None
    error: TxScopeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.transaction is not None


def _signature_of(item: str | SignatureRecord) -> str:
    return item.signature if isinstance(item, SignatureRecord) else item


class BatchEnricher:
    """
    Drives signatures through fetch_transaction + classify.

    concurrency bounds in-flight fetches; pacer (optional) spaces consecutive
    fetch starts by a fixed interval across the whole batch.
    """

    def __init__(
        self,
        source: LedgerSource,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        pacer: RequestPacer | None = None,
        traverser: SignatureTraverser | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._source = source
        self._concurrency = concurrency
        self._pacer = pacer or RequestPacer(0.0)
        self._traverser = traverser or SignatureTraverser(source)

    @property
    def traverser(self) -> SignatureTraverser:
        return self._traverser

    async def _enrich_one(self, signature: str, sem: asyncio.Semaphore) -> EnrichmentResult:
        async with sem:
            await self._pacer.acquire()
            try:
                tx = await self._source.fetch_transaction(signature)
                record = classify(tx)
            except (FetchError, MalformedTransaction) as e:
                logger.warning(
                    "enrich_item_failed",
                    signature=signature,
                    code=e.code,
                    error=e.message,
                )
                return EnrichmentResult(signature=signature, error=e)
        return EnrichmentResult(signature=signature, transaction=record)

    async def enrich(
        self,
        signatures: Iterable[str | SignatureRecord],
        concurrency_limit: int | None = None,
    ) -> list[EnrichmentResult]:
        """One result per input, in input order."""
        limit = self._concurrency if concurrency_limit is None else concurrency_limit
        if limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        sigs = [_signature_of(s) for s in signatures]
        if not sigs:
            return []
        sem = asyncio.Semaphore(limit)
        results = await asyncio.gather(*(self._enrich_one(s, sem) for s in sigs))
        failed = sum(1 for r in results if not r.ok)
        logger.debug("enrich_batch_done", items=len(results), failed=failed, concurrency=limit)
        return list(results)

    async def classify_batch(self, signatures: Iterable[str | SignatureRecord]) -> list[EnrichmentResult]:
        return await self.enrich(signatures)

    async def iter_address_batches(
        self,
        address: str,
        limit: int | None = None,
    ) -> AsyncIterator[list[EnrichmentResult]]:
        """Enriched results page by page, newest first. Page failures propagate."""
        seen = 0
        async for page in self._traverser.iter_pages(address, limit):
            items = page.items
            if limit is not None:
                items = items[: max(limit - seen, 0)]
            seen += len(items)
            if items:
                yield await self.enrich(items)

    async def enrich_address(self, address: str, limit: int | None = None) -> list[EnrichmentResult]:
        """Traverse (exhaustively, or up to limit) and enrich everything found."""
        out: list[EnrichmentResult] = []
        async for batch in self.iter_address_batches(address, limit):
            out.extend(batch)
        logger.info(
            "enrich_address_done",
            address=address,
            items=len(out),
            failed=sum(1 for r in out if not r.ok),
        )
        return out
