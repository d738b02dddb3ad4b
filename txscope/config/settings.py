"""
Application settings and environment configuration.

Loads paging, pacing and classification knobs from environment variables
(and .env via config.env), validates them and exposes a single frozen
Settings object. Defaults are configuration, not protocol.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from txscope.config.env import get_solana_rpc_url, load_txscope_env
from txscope.decoder.models import LAMPORTS_PER_SOL
from txscope.history.traverser import DEFAULT_PAGE_DELAY_SEC, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, TraversalConfig

DEFAULT_ENRICH_CONCURRENCY = 50
DEFAULT_ITEM_DELAY_SEC = 0.0
DEFAULT_HIGH_VALUE_SOL = 1000.0
DEFAULT_REQUEST_TIMEOUT_SEC = 30.0


@dataclass(frozen=True)
class Settings:
    """Typed settings for the RPC collaborator, traversal and enrichment."""

    rpc_url: str
    page_size: int = DEFAULT_PAGE_SIZE
    page_delay_sec: float = DEFAULT_PAGE_DELAY_SEC
    enrich_concurrency: int = DEFAULT_ENRICH_CONCURRENCY
    item_delay_sec: float = DEFAULT_ITEM_DELAY_SEC
    high_value_sol: float = DEFAULT_HIGH_VALUE_SOL
    request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC

    def __post_init__(self) -> None:
        if not self.rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        if not (1 <= self.page_size <= MAX_PAGE_SIZE):
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        if self.page_delay_sec < 0 or self.item_delay_sec < 0:
            raise ValueError("delays must be non-negative")
        if self.enrich_concurrency < 1:
            raise ValueError("enrich_concurrency must be at least 1")
        if self.request_timeout_sec <= 0:
            raise ValueError("request_timeout_sec must be positive")

    @property
    def high_value_threshold_lamports(self) -> int:
        return int(self.high_value_sol * LAMPORTS_PER_SOL)

    def traversal_config(self) -> TraversalConfig:
        return TraversalConfig(page_size=self.page_size, page_delay_sec=self.page_delay_sec)


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def get_settings() -> Settings:
    """
    Return the current application settings.

    Env: TXSCOPE_PAGE_SIZE, TXSCOPE_PAGE_DELAY_SEC, TXSCOPE_ENRICH_CONCURRENCY,
    TXSCOPE_ITEM_DELAY_SEC, TXSCOPE_HIGH_VALUE_SOL, TXSCOPE_REQUEST_TIMEOUT_SEC,
    plus the RPC URL resolution of config.env.get_solana_rpc_url().
    """
    load_txscope_env()
    return Settings(
        rpc_url=get_solana_rpc_url(),
        page_size=_env_int("TXSCOPE_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        page_delay_sec=_env_float("TXSCOPE_PAGE_DELAY_SEC", DEFAULT_PAGE_DELAY_SEC),
        enrich_concurrency=_env_int("TXSCOPE_ENRICH_CONCURRENCY", DEFAULT_ENRICH_CONCURRENCY),
        item_delay_sec=_env_float("TXSCOPE_ITEM_DELAY_SEC", DEFAULT_ITEM_DELAY_SEC),
        high_value_sol=_env_float("TXSCOPE_HIGH_VALUE_SOL", DEFAULT_HIGH_VALUE_SOL),
        request_timeout_sec=_env_float("TXSCOPE_REQUEST_TIMEOUT_SEC", DEFAULT_REQUEST_TIMEOUT_SEC),
    )
