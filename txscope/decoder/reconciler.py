"""
Balance reconciliation: per-account, per-asset deltas from pre/post snapshots.

Pure function of the transaction. Inconsistent snapshots raise
MalformedTransaction; nothing is patched or inferred from instructions.
"""

from __future__ import annotations

from txscope.core.exceptions import MalformedTransaction
from txscope.decoder.models import AssetDelta
from txscope.rpc.models import ConfirmedTransaction, TokenBalance


def _native_deltas(tx: ConfirmedTransaction) -> list[AssetDelta]:
    n = len(tx.account_keys)
    if len(tx.pre_balances) != n or len(tx.post_balances) != n:
        raise MalformedTransaction(
            "native balance arrays do not match account list",
            signature=tx.signature,
            accounts=n,
            pre=len(tx.pre_balances),
            post=len(tx.post_balances),
        )
    out: list[AssetDelta] = []
    for i, (pre, post) in enumerate(zip(tx.pre_balances, tx.post_balances)):
        if pre != post:
            out.append(AssetDelta(account=tx.account_keys[i], account_index=i, mint=None, pre=pre, post=post))
    return out


def _index_token_balances(
    tx: ConfirmedTransaction,
    balances: tuple[TokenBalance, ...],
) -> dict[tuple[int, str], TokenBalance]:
    n = len(tx.account_keys)
    out: dict[tuple[int, str], TokenBalance] = {}
    for b in balances:
        if not (0 <= b.account_index < n):
            raise MalformedTransaction(
                "token balance references unknown account",
                signature=tx.signature,
                account_index=b.account_index,
                accounts=n,
            )
        key = (b.account_index, b.mint)
        if key in out:
            raise MalformedTransaction(
                "duplicate token balance entry",
                signature=tx.signature,
                account_index=b.account_index,
                mint=b.mint,
            )
        out[key] = b
    return out


def _token_deltas(tx: ConfirmedTransaction) -> list[AssetDelta]:
    pre = _index_token_balances(tx, tx.pre_token_balances)
    post = _index_token_balances(tx, tx.post_token_balances)
    out: list[AssetDelta] = []
    for key in sorted(pre.keys() | post.keys()):
        before, after = pre.get(key), post.get(key)
        ref = after or before
        pre_amount = before.amount if before else 0
        post_amount = after.amount if after else 0
        if pre_amount == post_amount:
            continue
        index, mint = key
        out.append(
            AssetDelta(
                account=tx.account_keys[index],
                account_index=index,
                mint=mint,
                pre=pre_amount,
                post=post_amount,
                decimals=ref.decimals,
                owner=(after.owner if after and after.owner else before.owner if before else None),
            )
        )
    return out


def reconcile(tx: ConfirmedTransaction) -> list[AssetDelta]:
    """
    Nonzero native deltas by account position, then nonzero token deltas
    ordered by (account position, mint).

    A token account present only in the post snapshot counts as pre 0 (opened);
    present only in the pre snapshot counts as post 0 (closed).
    """
    return _native_deltas(tx) + _token_deltas(tx)
