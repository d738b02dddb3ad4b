"""
TxScope facade: one object wiring the RPC client, traverser, enricher and
relationship analyzer from Settings.

    async with TxScope.from_env() as scope:
        record = await scope.describe(signature)
        sigs = await scope.traverser.fetch_bounded(address, 100)
"""

from __future__ import annotations

from typing import Any

import httpx

from txscope.config.env import mask_rpc_url
from txscope.config.settings import Settings, get_settings
from txscope.decoder.classifier import classify
from txscope.decoder.models import ClassifiedTransaction
from txscope.history.activity import AccountActivity
from txscope.history.enricher import BatchEnricher
from txscope.history.pacing import RequestPacer
from txscope.history.poller import SignaturePoller
from txscope.history.relationships import RelationshipAnalyzer
from txscope.history.traverser import SignatureTraverser
from txscope.rpc.client import SolanaRpcClient
from txscope.txscope_logging import get_logger

logger = get_logger(__name__)


class TxScope:
    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.client = SolanaRpcClient(
            settings.rpc_url,
            timeout_sec=settings.request_timeout_sec,
            transport=transport,
        )
        self.traverser = SignatureTraverser(self.client, settings.traversal_config())
        self.enricher = BatchEnricher(
            self.client,
            concurrency=settings.enrich_concurrency,
            pacer=RequestPacer(settings.item_delay_sec),
            traverser=self.traverser,
        )
        self.relationships = RelationshipAnalyzer(self.enricher)
        self.activity = AccountActivity(self.traverser)
        logger.debug(
            "txscope_initialized",
            rpc_url=mask_rpc_url(settings.rpc_url),
            page_size=settings.page_size,
            concurrency=settings.enrich_concurrency,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "TxScope":
        return cls(get_settings(), **kwargs)

    async def __aenter__(self) -> "TxScope":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def describe(self, signature: str, label: str | None = None) -> ClassifiedTransaction:
        """Fetch and classify one transaction. Errors propagate."""
        tx = await self.client.fetch_transaction(signature)
        return classify(tx, label=label)

    async def estimate_fee(self, payer: str | None = None) -> int:
        return await self.client.estimate_fee(payer)

    def is_high_value(self, record: ClassifiedTransaction) -> bool:
        """High-value check against the configured threshold."""
        return record.is_high_value(self.settings.high_value_threshold_lamports)

    def poller(self, **kwargs: Any) -> SignaturePoller:
        """A new SignaturePoller over this client's traverser."""
        return SignaturePoller(self.traverser, **kwargs)
