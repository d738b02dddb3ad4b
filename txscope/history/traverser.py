"""
Cursor-based traversal of an address's signature history (newest first).

Every access pattern is built on fetch_page. Pages are requested strictly
sequentially with an optional fixed delay between them. Page failures
propagate; per-candidate transaction failures in containment queries are
logged and skipped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Protocol

from txscope.core.exceptions import FetchError, MalformedTransaction, PageSizeExceeded
from txscope.rpc.models import ConfirmedTransaction, SignaturePage, SignatureRecord
from txscope.txscope_logging import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_PAGE_DELAY_SEC = 0.2
MAX_PAGE_SIZE = 1000

SignaturePredicate = Callable[[SignatureRecord], bool]


class SignatureSource(Protocol):
    async def fetch_signature_page(self, address: str, before: str | None, limit: int) -> SignaturePage: ...


class LedgerSource(SignatureSource, Protocol):
    async def fetch_transaction(self, signature: str) -> ConfirmedTransaction: ...


@dataclass(frozen=True)
class TraversalConfig:
    """Paging knobs. Defaults are configuration, not protocol."""

    page_size: int = DEFAULT_PAGE_SIZE
    page_delay_sec: float = DEFAULT_PAGE_DELAY_SEC
    max_page_size: int = MAX_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError("page_size must be positive")
        if self.page_delay_sec < 0:
            raise ValueError("page_delay_sec must be non-negative")


def within_block_time(start: int | None = None, end: int | None = None) -> SignaturePredicate:
    """Records whose block time lies in [start, end]. Records without a block time never match."""

    def predicate(record: SignatureRecord) -> bool:
        if record.block_time is None:
            return False
        if start is not None and record.block_time < start:
            return False
        if end is not None and record.block_time > end:
            return False
        return True

    return predicate


def successful_only(record: SignatureRecord) -> bool:
    return record.is_successful


class SignatureTraverser:
    """
    Exhaustive, bounded, recent-only, filtered and containment walks over one
    collaborator. Holds no per-walk state; safe to share between tasks.
    """

    def __init__(self, source: SignatureSource, config: TraversalConfig | None = None) -> None:
        self._source = source
        self._config = config or TraversalConfig()

    @property
    def config(self) -> TraversalConfig:
        return self._config

    async def fetch_page(
        self,
        address: str,
        cursor: str | None = None,
        page_size: int | None = None,
    ) -> SignaturePage:
        """One page strictly before cursor. Raises PageSizeExceeded before any request if page_size is too large."""
        size = self._config.page_size if page_size is None else page_size
        if size > self._config.max_page_size:
            raise PageSizeExceeded(
                f"page size {size} above {self._config.max_page_size}",
                address=address,
                page_size=size,
            )
        if size < 1:
            raise ValueError("page_size must be positive")
        return await self._source.fetch_signature_page(address, cursor, size)

    async def iter_pages(self, address: str, limit: int | None = None) -> AsyncIterator[SignaturePage]:
        """
        Pages newest first until next_cursor is None, an empty page, or `limit`
        items have been requested. Each page request asks for at most the
        remaining item count.
        """
        cursor: str | None = None
        remaining = limit
        page_no = 0
        while remaining is None or remaining > 0:
            if page_no and self._config.page_delay_sec:
                await asyncio.sleep(self._config.page_delay_sec)
            size = self._config.page_size if remaining is None else min(self._config.page_size, remaining)
            page = await self.fetch_page(address, cursor, size)
            page_no += 1
            logger.debug(
                "traversal_page_fetched",
                address=address,
                page=page_no,
                items=len(page),
                exhausted=page.exhausted,
            )
            yield page
            if page.next_cursor is None or not page.items:
                return
            cursor = page.next_cursor
            if remaining is not None:
                remaining -= len(page.items)

    async def iter_signatures(self, address: str, limit: int | None = None) -> AsyncIterator[SignatureRecord]:
        """Lazy walk over records, newest first, never yielding more than `limit`."""
        yielded = 0
        async for page in self.iter_pages(address, limit):
            for record in page.items:
                if limit is not None and yielded >= limit:
                    return
                yielded += 1
                yield record

    async def fetch_all(self, address: str) -> list[SignatureRecord]:
        """Exhaustive walk. Unbounded cost; the caller accepts it."""
        out = [r async for r in self.iter_signatures(address)]
        logger.info("traversal_complete", address=address, items=len(out))
        return out

    async def fetch_bounded(self, address: str, limit: int) -> list[SignatureRecord]:
        """At most `limit` records; exactly min(limit, available). Early exhaustion is not an error."""
        if limit < 0:
            raise ValueError("limit must be non-negative")
        return [r async for r in self.iter_signatures(address, limit)]

    async def fetch_recent(self, address: str, count: int) -> list[SignatureRecord]:
        """Single page of `count` records with no cursor; never pages further."""
        if count < 0:
            raise ValueError("count must be non-negative")
        if count == 0:
            return []
        page = await self.fetch_page(address, None, count)
        return list(page.items[:count])

    async def fetch_filtered(
        self,
        address: str,
        predicate: SignaturePredicate,
        limit: int | None = None,
    ) -> list[SignatureRecord]:
        """Records matching predicate, newest first; stops once `limit` matches are collected."""
        out: list[SignatureRecord] = []
        async for record in self.iter_signatures(address):
            if predicate(record):
                out.append(record)
                if limit is not None and len(out) >= limit:
                    break
        return out

    # --- containment

    async def _contains(self, record: SignatureRecord, target: str, address: str) -> bool:
        if not hasattr(self._source, "fetch_transaction"):
            raise TypeError("containment queries need a source with fetch_transaction")
        try:
            tx = await self._source.fetch_transaction(record.signature)  # type: ignore[attr-defined]
        except (FetchError, MalformedTransaction) as e:
            logger.warning(
                "containment_candidate_skipped",
                address=address,
                signature=record.signature,
                code=e.code,
                error=e.message,
            )
            return False
        return tx.contains_address(target)

    async def last_containing(self, address: str, target: str) -> SignatureRecord | None:
        """Newest record whose transaction lists `target` among its accounts; short-circuits."""
        async for record in self.iter_signatures(address):
            if await self._contains(record, target, address):
                return record
        return None

    async def all_containing(self, address: str, target: str) -> list[SignatureRecord]:
        """Every record whose transaction lists `target`, newest first. Full walk."""
        out: list[SignatureRecord] = []
        async for record in self.iter_signatures(address):
            if await self._contains(record, target, address):
                out.append(record)
        logger.info("containment_complete", address=address, target=target, matches=len(out))
        return out
