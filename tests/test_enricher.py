"""
Tests for bounded-concurrency batch enrichment (history.enricher.BatchEnricher)
and request pacing.
"""

from __future__ import annotations

import asyncio
import time

import pytest

from txscope.history.enricher import BatchEnricher
from txscope.history.pacing import RequestPacer
from txscope.history.traverser import SignatureTraverser, TraversalConfig

PAYER = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
ADDR = "CzVqatmaK6GfyEWZUcWromDvpq3MFxqSrUweZgbjHngh"


def _payment(make_tx, signature: str, amount: int = 1_000_000):
    return make_tx([PAYER, ADDR], [10 * amount, 0], [9 * amount - 5000, amount], signature=signature)


def test_order_preserved_regardless_of_completion(ledger_factory, make_tx):
    sigs = [f"s{i}" for i in range(6)]
    txs = {s: _payment(make_tx, s, amount=(i + 1) * 1000) for i, s in enumerate(sigs)}
    # earlier inputs finish last
    delays = {s: 0.01 * (len(sigs) - i) for i, s in enumerate(sigs)}
    ledger = ledger_factory({}, txs, tx_delays=delays)
    results = asyncio.run(BatchEnricher(ledger).enrich(sigs))
    assert [r.signature for r in results] == sigs
    assert [r.transaction.native_amount for r in results] == [(i + 1) * 1000 for i in range(6)]


def test_failures_are_isolated(ledger_factory, make_tx):
    txs = {
        "ok1": _payment(make_tx, "ok1"),
        "bad": make_tx([PAYER, ADDR], [1], [1, 2], signature="bad"),
        "ok2": _payment(make_tx, "ok2"),
    }
    ledger = ledger_factory({}, txs)
    results = asyncio.run(BatchEnricher(ledger).enrich(["ok1", "missing", "bad", "ok2"]))
    assert [r.ok for r in results] == [True, False, False, True]
    assert results[1].error.code == "not_found"
    assert results[1].transaction is None
    assert results[2].error.code == "malformed_transaction"
    assert results[3].transaction.payer == PAYER


def test_concurrency_limit_respected(ledger_factory, make_tx):
    sigs = [f"s{i}" for i in range(12)]
    txs = {s: _payment(make_tx, s) for s in sigs}
    ledger = ledger_factory({}, txs, tx_delays={s: 0.01 for s in sigs})
    results = asyncio.run(BatchEnricher(ledger).enrich(sigs, concurrency_limit=3))
    assert all(r.ok for r in results)
    assert 1 < ledger.max_in_flight <= 3


def test_classify_batch_same_contract(ledger_factory, make_tx):
    ledger = ledger_factory({}, {"a": _payment(make_tx, "a")})
    results = asyncio.run(BatchEnricher(ledger, concurrency=2).classify_batch(["a", "b"]))
    assert [r.signature for r in results] == ["a", "b"]
    assert results[0].ok and not results[1].ok


def test_empty_batch(ledger_factory):
    assert asyncio.run(BatchEnricher(ledger_factory()).enrich([])) == []


def test_invalid_concurrency(ledger_factory):
    with pytest.raises(ValueError):
        BatchEnricher(ledger_factory(), concurrency=0)
    with pytest.raises(ValueError):
        asyncio.run(BatchEnricher(ledger_factory()).enrich(["a"], concurrency_limit=0))


def test_enrich_address_with_limit(ledger_factory, make_records, make_tx):
    history = make_records(25)
    txs = {r.signature: _payment(make_tx, r.signature) for r in history}
    ledger = ledger_factory({ADDR: history}, txs)
    traverser = SignatureTraverser(ledger, TraversalConfig(page_size=10, page_delay_sec=0))
    enricher = BatchEnricher(ledger, traverser=traverser)
    results = asyncio.run(enricher.enrich_address(ADDR, limit=15))
    assert [r.signature for r in results] == [r.signature for r in history[:15]]
    assert all(r.ok for r in results)


def test_iter_address_batches_yields_per_page(ledger_factory, make_records, make_tx):
    history = make_records(25)
    txs = {r.signature: _payment(make_tx, r.signature) for r in history}
    ledger = ledger_factory({ADDR: history}, txs)
    traverser = SignatureTraverser(ledger, TraversalConfig(page_size=10, page_delay_sec=0))
    enricher = BatchEnricher(ledger, traverser=traverser)

    async def sizes():
        return [len(batch) async for batch in enricher.iter_address_batches(ADDR)]

    assert asyncio.run(sizes()) == [10, 10, 5]


def test_pacer_spaces_requests():
    pacer = RequestPacer(0.05)

    async def three():
        start = time.monotonic()
        for _ in range(3):
            await pacer.acquire()
        return time.monotonic() - start

    assert asyncio.run(three()) >= 0.09


def test_pacer_zero_interval_never_waits():
    pacer = RequestPacer(0.0)

    async def many():
        start = time.monotonic()
        for _ in range(100):
            await pacer.acquire()
        return time.monotonic() - start

    assert asyncio.run(many()) < 0.5


def test_pacer_rejects_negative_interval():
    with pytest.raises(ValueError):
        RequestPacer(-1)
