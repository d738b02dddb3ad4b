"""
Transaction decoder: balance reconciliation, classification and protocol heuristics.
"""

from txscope.decoder.classifier import classify
from txscope.decoder.models import (
    AssetDelta,
    AssetKind,
    BondCurveLegs,
    ClassifiedTransaction,
    Leg,
    PoolSide,
    PoolSides,
    TradeLegs,
    TransactionStatus,
)
from txscope.decoder.protocols import SpecialCase, resolve_special_cases
from txscope.decoder.reconciler import reconcile

__all__ = [
    "AssetDelta",
    "AssetKind",
    "BondCurveLegs",
    "ClassifiedTransaction",
    "Leg",
    "PoolSide",
    "PoolSides",
    "SpecialCase",
    "TradeLegs",
    "TransactionStatus",
    "classify",
    "reconcile",
    "resolve_special_cases",
]
