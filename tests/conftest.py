"""
Pytest fixtures for txscope tests: transaction builders and an in-memory ledger
standing in for the RPC collaborator.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from txscope.core.exceptions import NotFound, PageSizeExceeded
from txscope.rpc.models import (
    ConfirmedTransaction,
    InstructionRecord,
    SignaturePage,
    SignatureRecord,
    TokenBalance,
)


def _make_tx(
    account_keys: list[str],
    pre: list[int],
    post: list[int],
    *,
    fee: int = 5000,
    signature: str = "sig-1",
    num_signers: int = 1,
    writable: list[bool] | None = None,
    instructions: list[InstructionRecord] | None = None,
    pre_tokens: list[TokenBalance] | None = None,
    post_tokens: list[TokenBalance] | None = None,
    err: Any = None,
    block_time: int | None = 1_700_000_000,
    slot: int = 100,
) -> ConfirmedTransaction:
    instructions = instructions or []
    if writable is None:
        programs = {ix.program_id for ix in instructions}
        writable = [k not in programs for k in account_keys]
    return ConfirmedTransaction(
        signature=signature,
        slot=slot,
        block_time=block_time,
        fee=fee,
        err=err,
        account_keys=tuple(account_keys),
        writable=tuple(writable),
        num_signers=num_signers,
        pre_balances=tuple(pre),
        post_balances=tuple(post),
        pre_token_balances=tuple(pre_tokens or ()),
        post_token_balances=tuple(post_tokens or ()),
        instructions=tuple(instructions),
    )


@pytest.fixture
def make_tx():
    """Factory: make_tx(account_keys, pre, post, fee=..., ...) -> ConfirmedTransaction."""
    return _make_tx


def _make_records(
    count: int,
    *,
    prefix: str = "sig",
    top_slot: int = 10_000,
    top_block_time: int = 1_700_000_000,
    failed: set[int] | None = None,
) -> list[SignatureRecord]:
    """Newest-first history: index 0 has the highest slot."""
    failed = failed or set()
    return [
        SignatureRecord(
            signature=f"{prefix}{i}",
            slot=top_slot - i,
            err={"InstructionError": [0, "Custom"]} if i in failed else None,
            block_time=top_block_time - i * 10,
        )
        for i in range(count)
    ]


@pytest.fixture
def make_records():
    return _make_records


class FakeLedger:
    """
    In-memory collaborator. next_cursor is None exactly when no older
    signatures exist. Records every call for assertions.
    """

    def __init__(
        self,
        histories: dict[str, list[SignatureRecord]] | None = None,
        transactions: dict[str, ConfirmedTransaction | Exception] | None = None,
        *,
        max_page_size: int = 1000,
        tx_delays: dict[str, float] | None = None,
        page_error: Exception | None = None,
    ) -> None:
        self.histories = histories or {}
        self.transactions = transactions or {}
        self.max_page_size = max_page_size
        self.tx_delays = tx_delays or {}
        self.page_error = page_error
        self.page_calls: list[tuple[str, str | None, int]] = []
        self.tx_calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_signature_page(self, address: str, before: str | None, limit: int) -> SignaturePage:
        self.page_calls.append((address, before, limit))
        if self.page_error is not None:
            raise self.page_error
        if limit > self.max_page_size:
            raise PageSizeExceeded("limit too large", limit=limit)
        items = self.histories.get(address, [])
        start = 0
        if before is not None:
            start = next(i for i, r in enumerate(items) if r.signature == before) + 1
        chunk = items[start : start + limit]
        more = start + limit < len(items)
        return SignaturePage(items=tuple(chunk), next_cursor=chunk[-1].signature if more and chunk else None)

    async def fetch_transaction(self, signature: str) -> ConfirmedTransaction:
        self.tx_calls.append(signature)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.tx_delays.get(signature, 0))
            value = self.transactions.get(signature)
            if value is None:
                raise NotFound(f"transaction not found: {signature}", signature=signature)
            if isinstance(value, Exception):
                raise value
            return value
        finally:
            self.in_flight -= 1

    async def estimate_fee(self, payer: str | None = None) -> int:
        return 5000


@pytest.fixture
def ledger_factory():
    """Factory: ledger_factory(histories, transactions, ...) -> FakeLedger."""
    return FakeLedger
