"""
Protocol heuristics: liquidity-pool side assignment and trader leg extraction.

Both work on reconciled deltas only; they never decode instruction data.
"""

from __future__ import annotations

import math

from txscope.decoder.models import AssetDelta, Leg, PoolSide, PoolSides, TradeLegs
from txscope.decoder.protocols import NATIVE_DECIMALS, SpecialCase, special_case_for
from txscope.rpc.models import ConfirmedTransaction


def _largest_per_mint(deltas: list[AssetDelta]) -> dict[str, AssetDelta]:
    """Largest-magnitude token delta for each mint; ties keep the earliest account."""
    best: dict[str, AssetDelta] = {}
    for d in deltas:
        if d.mint is None or d.net == 0:
            continue
        cur = best.get(d.mint)
        if cur is None or abs(d.ui_net) > abs(cur.ui_net):
            best[d.mint] = d
    return best


def _pool_account_order(tx: ConfirmedTransaction) -> list[int]:
    """Account positions of the first liquidity-pool instruction, in instruction order."""
    for ix in tx.instructions:
        if special_case_for(ix.program_id) is SpecialCase.LIQUIDITY_POOL:
            return list(ix.accounts)
    return []


def pool_sides(tx: ConfirmedTransaction, deltas: list[AssetDelta]) -> PoolSides | None:
    """
    Left/right pool sides from the two mints with the largest display-unit deltas.

    Left is the mint whose token account appears first in the pool
    instruction's account list. None when fewer than two mints moved.
    """
    best = _largest_per_mint(deltas)
    if len(best) < 2:
        return None
    ranked = sorted(best.values(), key=lambda d: (-abs(d.ui_net), d.mint))[:2]

    order = _pool_account_order(tx)
    position = {acc: i for i, acc in reversed(list(enumerate(order)))}

    def first_seen(d: AssetDelta) -> tuple[float, int]:
        held = [x.account_index for x in deltas if x.mint == d.mint]
        pos = min((position[i] for i in held if i in position), default=math.inf)
        return (pos, min(held))

    left, right = sorted(ranked, key=first_seen)
    return PoolSides(left=_side(left), right=_side(right))


def _side(d: AssetDelta) -> PoolSide:
    return PoolSide(mint=d.mint or "", amount=abs(d.ui_net), raw_amount=abs(d.net), decimals=d.decimals)


def trade_legs(
    tx: ConfirmedTransaction,
    deltas: list[AssetDelta],
    trader: str,
) -> TradeLegs | None:
    """
    Received/spent legs on the trader: the trader's native change (fee added
    back when the trader paid it) and token changes on accounts the trader owns.

    received is the largest gain, spent the largest loss, by display units.
    None unless both exist.
    """
    candidates: list[Leg] = []
    for d in deltas:
        if d.mint is None and d.account == trader:
            net = d.net + (tx.fee if d.account_index == 0 else 0)
            if net != 0:
                candidates.append(_leg(None, net, NATIVE_DECIMALS))
        elif d.mint is not None and d.owner == trader:
            candidates.append(_leg(d.mint, d.net, d.decimals))

    gains = [c for c in candidates if c.amount > 0]
    losses = [c for c in candidates if c.amount < 0]
    if not gains or not losses:
        return None
    received = max(gains, key=lambda c: (c.amount, c.mint or ""))
    spent = min(losses, key=lambda c: (c.amount, c.mint or ""))
    return TradeLegs(
        received=received,
        spent=Leg(mint=spent.mint, amount=-spent.amount, raw_amount=-spent.raw_amount, decimals=spent.decimals),
    )


def _leg(mint: str | None, net: int, decimals: int) -> Leg:
    # signed while ranking; spent is flipped positive on the way out
    return Leg(mint=mint, amount=net / (10 ** decimals), raw_amount=net, decimals=decimals)
