"""
Known program ids and the special-case table used to pick classification heuristics.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

# Quote assets
SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
QUOTE_MINTS = frozenset({SOL_MINT, USDC_MINT, USDT_MINT})

NATIVE_DECIMALS = 9

SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
COMPUTE_BUDGET_PROGRAM_ID = "ComputeBudget111111111111111111111111111111"

RAYDIUM_AMM_V4 = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
RAYDIUM_CPMM = "CPMMoo8L3F4NbTegBCKVNunggL7H1ZpdTHKxQB5qKP1C"
RAYDIUM_CLMM = "CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK"
ORCA_WHIRLPOOL = "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc"
METEORA_DLMM = "LBUZKhRxPF3XUpBCjp4YzTKgLccjZhTSDM9YuVaPwxo"
PUMP_AMM = "pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA"

PUMP_FUN = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"
RAYDIUM_LAUNCHPAD = "LanMV9sAd7wArD4vJFi2qDdfnVhFxYSUg6eADduJ3uj"


class SpecialCase(str, Enum):
    """Protocol family a transaction touches."""

    NONE = "none"
    LIQUIDITY_POOL = "liquidity_pool"
    BOND_CURVE = "bond_curve"


PROGRAM_SPECIAL_CASES: dict[str, SpecialCase] = {
    RAYDIUM_AMM_V4: SpecialCase.LIQUIDITY_POOL,
    RAYDIUM_CPMM: SpecialCase.LIQUIDITY_POOL,
    RAYDIUM_CLMM: SpecialCase.LIQUIDITY_POOL,
    ORCA_WHIRLPOOL: SpecialCase.LIQUIDITY_POOL,
    METEORA_DLMM: SpecialCase.LIQUIDITY_POOL,
    PUMP_AMM: SpecialCase.LIQUIDITY_POOL,
    PUMP_FUN: SpecialCase.BOND_CURVE,
    RAYDIUM_LAUNCHPAD: SpecialCase.BOND_CURVE,
}


def special_case_for(program_id: str) -> SpecialCase:
    return PROGRAM_SPECIAL_CASES.get(program_id, SpecialCase.NONE)


def resolve_special_cases(program_ids: Iterable[str]) -> frozenset[SpecialCase]:
    """
    Every special case touched by the given program ids.

    Empty when no known protocol program is present; NONE is never included.
    """
    found = {special_case_for(p) for p in program_ids}
    found.discard(SpecialCase.NONE)
    return frozenset(found)


def is_quote_mint(mint: str | None) -> bool:
    """True for the native asset (mint None) and the stable quote mints."""
    return mint is None or mint in QUOTE_MINTS
