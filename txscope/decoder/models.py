"""
Decoder output: per-account asset deltas and the classified transaction record.

All records are frozen; a ClassifiedTransaction is derived once per transaction
and its predicates are pure functions of its fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from txscope.core.exceptions import DivisionUndefined
from txscope.decoder.protocols import NATIVE_DECIMALS, SpecialCase, is_quote_mint

LAMPORTS_PER_SOL = 1_000_000_000
DEFAULT_HIGH_VALUE_LAMPORTS = 1000 * LAMPORTS_PER_SOL


class AssetKind(str, Enum):
    NATIVE = "native"
    TOKEN = "token"


class TransactionStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class AssetDelta:
    """Balance change of one asset on one account position. mint None is the native asset."""

    account: str
    account_index: int
    mint: str | None
    pre: int
    post: int
    decimals: int = NATIVE_DECIMALS
    owner: str | None = None

    @property
    def net(self) -> int:
        return self.post - self.pre

    @property
    def is_native(self) -> bool:
        return self.mint is None

    @property
    def ui_net(self) -> float:
        """Net change in display units."""
        return self.net / (10 ** self.decimals)


@dataclass(frozen=True)
class PoolSide:
    mint: str
    amount: float
    raw_amount: int
    decimals: int


@dataclass(frozen=True)
class PoolSides:
    left: PoolSide
    right: PoolSide


@dataclass(frozen=True)
class Leg:
    """One side of a trade on the trader's account. mint None is the native asset."""

    mint: str | None
    amount: float
    raw_amount: int
    decimals: int


@dataclass(frozen=True)
class TradeLegs:
    received: Leg
    spent: Leg


BondCurveLegs = TradeLegs


@dataclass(frozen=True)
class ClassifiedTransaction:
    """
    Structured facts about one confirmed transaction.

    native_amount is the recipient's native gain in lamports (0 when no account
    gained). pool_sides / bond_curve_legs are populated only when the matching
    protocol program was invoked; trade_legs is the trader's view for either.
    """

    signature: str
    slot: int
    block_time: int | None
    fee: int
    payer: str
    recipient: str
    native_amount: int
    status: TransactionStatus
    error: Any = None
    asset_kind: AssetKind = AssetKind.NATIVE
    asset_mint: str | None = None
    pool_sides: PoolSides | None = None
    bond_curve_legs: BondCurveLegs | None = None
    trade_legs: TradeLegs | None = None
    special_cases: frozenset[SpecialCase] = field(default_factory=frozenset)
    recipient_ambiguous: bool = False
    label: str | None = None

    # --- predicates

    @property
    def is_successful(self) -> bool:
        return self.status is TransactionStatus.SUCCESS

    @property
    def is_token_transfer(self) -> bool:
        return self.asset_kind is AssetKind.TOKEN

    def is_high_value(self, threshold_lamports: int | None = None) -> bool:
        threshold = DEFAULT_HIGH_VALUE_LAMPORTS if threshold_lamports is None else threshold_lamports
        return self.native_amount >= threshold

    def is_recipient(self, address: str) -> bool:
        return self.recipient == address

    def is_payer(self, address: str) -> bool:
        return self.payer == address

    @property
    def payment_amount(self) -> int:
        return self.native_amount

    @property
    def payment_amount_sol(self) -> float:
        return self.native_amount / LAMPORTS_PER_SOL

    def net_amount(self, address: str) -> int:
        """Payment minus fee for the payer; the plain payment for anyone else. May be negative."""
        if self.is_payer(address):
            return self.native_amount - self.fee
        return self.native_amount

    def quote_ratio(self) -> float:
        """right.amount / left.amount of the pool sides."""
        if self.pool_sides is None:
            raise DivisionUndefined("no pool sides on record", signature=self.signature)
        left = self.pool_sides.left.amount
        if left == 0:
            raise DivisionUndefined("left pool side is zero", signature=self.signature)
        return self.pool_sides.right.amount / left

    # --- trade view

    @property
    def received(self) -> Leg | None:
        return self.trade_legs.received if self.trade_legs else None

    @property
    def spent(self) -> Leg | None:
        return self.trade_legs.spent if self.trade_legs else None

    @property
    def direction(self) -> str | None:
        """'buy' when the trader spent a quote asset (SOL, USDC, USDT), 'sell' otherwise; None if no trade."""
        if self.trade_legs is None:
            return None
        return "buy" if is_quote_mint(self.trade_legs.spent.mint) else "sell"

    def to_dict(self) -> dict[str, Any]:
        def leg(x: Leg | PoolSide) -> dict[str, Any]:
            return {"mint": x.mint, "amount": x.amount, "raw_amount": x.raw_amount, "decimals": x.decimals}

        return {
            "signature": self.signature,
            "label": self.label,
            "slot": self.slot,
            "block_time": self.block_time,
            "fee": self.fee,
            "payer": self.payer,
            "recipient": self.recipient,
            "native_amount": self.native_amount,
            "status": self.status.value,
            "error": self.error,
            "asset_kind": self.asset_kind.value,
            "asset_mint": self.asset_mint,
            "pool_sides": (
                {"left": leg(self.pool_sides.left), "right": leg(self.pool_sides.right)}
                if self.pool_sides
                else None
            ),
            "bond_curve_legs": (
                {"received": leg(self.bond_curve_legs.received), "spent": leg(self.bond_curve_legs.spent)}
                if self.bond_curve_legs
                else None
            ),
            "direction": self.direction,
            "special_cases": sorted(c.value for c in self.special_cases),
            "recipient_ambiguous": self.recipient_ambiguous,
        }
