"""
Print classified transactions as JSON.

How to run:
    From project root (with .env configured):
        python -m txscope.tools.inspect_transaction tx <SIGNATURE>
        python -m txscope.tools.inspect_transaction history <ADDRESS> --limit 20
        python -m txscope.tools.inspect_transaction activity <ADDRESS> --limit 50
        python -m txscope.tools.inspect_transaction fee

Required env vars:
    SOLANA_RPC_URL or HELIUS_API_KEY  (falls back to the public cluster endpoint)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from txscope.core.exceptions import TxScopeError
from txscope.engine import TxScope
from txscope.txscope_logging import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 20


async def _run(args: argparse.Namespace, scope: TxScope) -> Any:
    if args.command == "tx":
        record = await scope.describe(args.signature)
        return record.to_dict()
    if args.command == "history":
        results = await scope.enricher.enrich_address(args.address, limit=args.limit)
        return [
            r.transaction.to_dict() if r.ok else {"signature": r.signature, "error": r.error.to_dict()}
            for r in results
        ]
    if args.command == "activity":
        activity = scope.activity
        return {
            "address": args.address,
            "transactions": await activity.transaction_count(args.address, args.limit),
            "failed": await activity.failed_count(args.address, args.limit),
            "success_rate": await activity.success_rate(args.address, args.limit),
            "last_block_time": await activity.last_transaction_time(args.address),
        }
    return {"fee_lamports": await scope.estimate_fee(args.payer)}


async def run(args: argparse.Namespace, scope: TxScope | None = None) -> Any:
    own = scope is None
    scope = scope or TxScope.from_env()
    try:
        return await _run(args, scope)
    finally:
        if own:
            await scope.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Decode Solana transactions into payment facts.")
    sub = parser.add_subparsers(dest="command", required=True)
    tx = sub.add_parser("tx", help="Classify one transaction")
    tx.add_argument("signature")
    history = sub.add_parser("history", help="Classify an address's recent history")
    history.add_argument("address")
    history.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help=f"Max transactions (default: {DEFAULT_LIMIT})")
    activity = sub.add_parser("activity", help="Summarise an address's recent activity")
    activity.add_argument("address")
    activity.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help=f"Records to summarise (default: {DEFAULT_LIMIT})")
    fee = sub.add_parser("fee", help="Estimate the network fee for an empty message")
    fee.add_argument("--payer", default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        out = asyncio.run(run(args))
    except TxScopeError as e:
        logger.error("inspect_failed", command=args.command, code=e.code, error=e.message)
        print(json.dumps(e.to_dict(), indent=2))
        return 1
    print(json.dumps(out, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
