"""
Transaction classification: counterparties, amount, asset kind, protocol facts.

Deterministic for a fixed transaction; the only caller-controlled input is the label.
"""

from __future__ import annotations

from txscope.decoder.heuristics import pool_sides, trade_legs
from txscope.decoder.models import (
    AssetDelta,
    AssetKind,
    ClassifiedTransaction,
    LAMPORTS_PER_SOL,
    TransactionStatus,
)
from txscope.decoder.protocols import SpecialCase, resolve_special_cases
from txscope.decoder.reconciler import reconcile
from txscope.rpc.models import ConfirmedTransaction
from txscope.txscope_logging import get_logger

logger = get_logger(__name__)


def _adjusted_native(tx: ConfirmedTransaction, deltas: list[AssetDelta]) -> dict[int, int]:
    """Native net per account position, with the fee added back on position 0."""
    nets = {i: 0 for i in range(len(tx.account_keys))}
    for d in deltas:
        if d.mint is None:
            nets[d.account_index] = nets.get(d.account_index, 0) + d.net
    if nets:
        nets[0] = nets.get(0, 0) + tx.fee
    return nets


def resolve_payer(tx: ConfirmedTransaction, adjusted: dict[int, int]) -> int:
    """
    Position of the paying account.

    Position 0 unless its fee-adjusted net is non-negative while another signer
    lost native funds; then the signer with the largest loss (lowest position on ties).
    """
    if adjusted.get(0, 0) < 0:
        return 0
    signers = range(1, min(tx.num_signers, len(tx.account_keys)))
    losers = [(adjusted.get(i, 0), i) for i in signers if adjusted.get(i, 0) < 0]
    if not losers:
        return 0
    return min(losers)[1]


def resolve_recipient(
    tx: ConfirmedTransaction,
    adjusted: dict[int, int],
    payer_index: int,
) -> tuple[int, int, bool]:
    """
    (recipient position, native amount, ambiguous).

    The non-payer account with the largest positive net. Ties go to the earliest
    writable, non-program account and are reported as ambiguous. No gain at
    all yields (payer, 0, False).
    """
    gains = {i: net for i, net in adjusted.items() if i != payer_index and net > 0}
    if not gains:
        return payer_index, 0, False
    top = max(gains.values())
    tied = sorted(i for i, net in gains.items() if net == top)
    if len(tied) == 1:
        return tied[0], top, False
    programs = tx.program_account_indices
    preferred = [i for i in tied if tx.is_writable(i) and i not in programs]
    chosen = preferred[0] if preferred else tied[0]
    logger.warning(
        "recipient_ambiguous",
        signature=tx.signature,
        candidates=[tx.account_keys[i] for i in tied],
        recipient=tx.account_keys[chosen],
        amount=top,
    )
    return chosen, top, True


def resolve_asset_kind(
    deltas: list[AssetDelta],
    adjusted: dict[int, int],
) -> tuple[AssetKind, str | None]:
    """TOKEN(mint) when the largest token change strictly exceeds the largest fee-adjusted native change, in display units."""
    tokens = [d for d in deltas if d.mint is not None]
    if not tokens:
        return AssetKind.NATIVE, None
    top = min(tokens, key=lambda d: (-abs(d.ui_net), d.mint, d.account_index))
    native_mag = max((abs(n) for n in adjusted.values()), default=0) / LAMPORTS_PER_SOL
    if abs(top.ui_net) > native_mag:
        return AssetKind.TOKEN, top.mint
    return AssetKind.NATIVE, None


def classify(
    tx: ConfirmedTransaction,
    deltas: list[AssetDelta] | None = None,
    label: str | None = None,
) -> ClassifiedTransaction:
    """
    Build the fact record for one transaction.

    deltas default to reconcile(tx). Raises MalformedTransaction for
    inconsistent snapshots; never returns a partial record.
    """
    if deltas is None:
        deltas = reconcile(tx)
    adjusted = _adjusted_native(tx, deltas)

    payer_index = resolve_payer(tx, adjusted)
    recipient_index, amount, ambiguous = resolve_recipient(tx, adjusted, payer_index)
    asset_kind, asset_mint = resolve_asset_kind(deltas, adjusted)

    special = resolve_special_cases(tx.program_ids)
    payer = tx.account_keys[payer_index]
    sides = pool_sides(tx, deltas) if SpecialCase.LIQUIDITY_POOL in special else None
    legs = trade_legs(tx, deltas, payer) if special else None

    return ClassifiedTransaction(
        signature=tx.signature,
        slot=tx.slot,
        block_time=tx.block_time,
        fee=tx.fee,
        payer=payer,
        recipient=tx.account_keys[recipient_index],
        native_amount=amount,
        status=TransactionStatus.SUCCESS if tx.err is None else TransactionStatus.FAILED,
        error=tx.err,
        asset_kind=asset_kind,
        asset_mint=asset_mint,
        pool_sides=sides,
        bond_curve_legs=legs if SpecialCase.BOND_CURVE in special else None,
        trade_legs=legs,
        special_cases=special,
        recipient_ambiguous=ambiguous,
        label=label,
    )
