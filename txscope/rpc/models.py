"""
Data models for the RPC collaborator's output.

SignatureRecord / SignaturePage mirror getSignaturesForAddress; ConfirmedTransaction
is the already-deserialized view of a getTransaction result (json or jsonParsed
encoding, legacy or v0 with loaded addresses) that the decoder consumes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from txscope.core.exceptions import MalformedTransaction


@dataclass(frozen=True)
class SignatureRecord:
    """
    One getSignaturesForAddress item: the minimal paging unit.

    Deliberately lighter than a classified transaction; cheap to fetch in bulk.
    """

    signature: str
    slot: int
    err: Any  # None if success; dict/object from RPC if failed
    block_time: int | None  # Unix timestamp; None if not available
    memo: str | None = None
    confirmation_status: str | None = None  # processed | confirmed | finalized

    @property
    def is_successful(self) -> bool:
        return self.err is None

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "SignatureRecord":
        """Build from a single getSignaturesForAddress result item."""
        block_time = item.get("blockTime")
        return cls(
            signature=item["signature"],
            slot=int(item["slot"]),
            err=item.get("err"),
            block_time=int(block_time) if block_time is not None else None,
            memo=item.get("memo"),
            confirmation_status=item.get("confirmationStatus"),
        )


@dataclass(frozen=True)
class SignaturePage:
    """A page of signatures, newest first. next_cursor is None only when history is exhausted."""

    items: tuple[SignatureRecord, ...]
    next_cursor: str | None = None

    def __len__(self) -> int:
        return len(self.items)

    @property
    def exhausted(self) -> bool:
        return self.next_cursor is None


@dataclass(frozen=True)
class TokenBalance:
    """One entry of meta.preTokenBalances / meta.postTokenBalances."""

    account_index: int
    mint: str
    amount: int
    """Raw amount in the mint's smallest unit."""
    decimals: int
    owner: str | None = None

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "TokenBalance":
        try:
            ui = item["uiTokenAmount"]
            return cls(
                account_index=int(item["accountIndex"]),
                mint=str(item["mint"]),
                amount=int(ui["amount"]),
                decimals=int(ui["decimals"]),
                owner=item.get("owner"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedTransaction(f"invalid token balance entry: {e}", entry=item) from e


@dataclass(frozen=True)
class InstructionRecord:
    """Program invocation with account positions resolved against the transaction's account list."""

    program_id: str
    accounts: tuple[int, ...]
    inner: bool = False


@dataclass(frozen=True)
class ConfirmedTransaction:
    """
    A confirmed transaction with its status meta.

    Account-indexed arrays (writable, pre_balances, post_balances) are kept as
    delivered; consistency is checked by the reconciler, never patched here.
    """

    signature: str
    slot: int
    block_time: int | None
    fee: int
    err: Any
    account_keys: tuple[str, ...]
    writable: tuple[bool, ...]
    num_signers: int
    pre_balances: tuple[int, ...]
    post_balances: tuple[int, ...]
    pre_token_balances: tuple[TokenBalance, ...] = ()
    post_token_balances: tuple[TokenBalance, ...] = ()
    instructions: tuple[InstructionRecord, ...] = ()
    log_messages: tuple[str, ...] = ()

    @property
    def fee_payer(self) -> str:
        return self.account_keys[0]

    @property
    def signers(self) -> tuple[str, ...]:
        return self.account_keys[: self.num_signers]

    @property
    def program_ids(self) -> tuple[str, ...]:
        """Invoked program ids (top-level then inner), first occurrence order."""
        seen: dict[str, None] = {}
        for ix in self.instructions:
            seen.setdefault(ix.program_id, None)
        return tuple(seen)

    @property
    def program_account_indices(self) -> frozenset[int]:
        keys = {k: i for i, k in enumerate(self.account_keys)}
        return frozenset(keys[p] for p in self.program_ids if p in keys)

    def is_writable(self, index: int) -> bool:
        return 0 <= index < len(self.writable) and self.writable[index]

    def contains_address(self, address: str) -> bool:
        return address in self.account_keys

    @classmethod
    def from_rpc_result(cls, raw: dict[str, Any], signature: str | None = None) -> "ConfirmedTransaction":
        """
        Build from a getTransaction result.

        Raises MalformedTransaction if the message, meta, account list,
        signature, slot, fee or a balance snapshot is missing. Absent fields are
        never defaulted.
        """
        message, meta = _get_message_and_meta(raw)
        if message is None:
            raise MalformedTransaction("transaction message missing", signature=signature)
        if meta is None:
            raise MalformedTransaction("transaction meta missing", signature=signature)

        account_keys, writable, num_signers = _get_account_keys(message, meta)
        if not account_keys:
            raise MalformedTransaction("account list is empty", signature=signature)

        if signature is None:
            sigs = (raw.get("transaction") or {}).get("signatures") or []
            signature = sigs[0] if sigs else None
        if not signature:
            raise MalformedTransaction("transaction signature missing")

        instructions = _get_instructions(message, meta, account_keys)
        block_time = raw.get("blockTime")
        try:
            return cls(
                signature=signature,
                slot=int(raw["slot"]),
                block_time=int(block_time) if block_time is not None else None,
                fee=int(meta["fee"]),
                err=meta.get("err"),
                account_keys=tuple(account_keys),
                writable=tuple(writable),
                num_signers=num_signers,
                pre_balances=tuple(int(b) for b in meta["preBalances"]),
                post_balances=tuple(int(b) for b in meta["postBalances"]),
                pre_token_balances=tuple(
                    TokenBalance.from_rpc_item(b) for b in meta.get("preTokenBalances") or []
                ),
                post_token_balances=tuple(
                    TokenBalance.from_rpc_item(b) for b in meta.get("postTokenBalances") or []
                ),
                instructions=tuple(instructions),
                log_messages=tuple(meta.get("logMessages") or []),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedTransaction(f"invalid balance snapshot: {e}", signature=signature) from e


def _get_message_and_meta(raw: dict[str, Any]) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
    """Return (transaction.message, meta) from a getTransaction-style result."""
    tx_obj = raw.get("transaction")
    if not tx_obj or not isinstance(tx_obj, dict):
        return None, None
    message = tx_obj.get("message")
    if not message or not isinstance(message, dict):
        return None, None
    meta = raw.get("meta")
    if not isinstance(meta, dict):
        meta = None
    return message, meta


def _get_account_keys(
    message: dict[str, Any],
    meta: dict[str, Any],
) -> tuple[list[str], list[bool], int]:
    """
    Resolve accountKeys to (keys, writable flags, signer count).

    json encoding: plain strings + message header; v0 transactions get
    meta.loadedAddresses appended (writable, then readonly).
    jsonParsed encoding: dicts carrying pubkey/signer/writable, lookups included.
    """
    keys = message.get("accountKeys") or []
    if keys and isinstance(keys[0], dict):
        out = [str(k.get("pubkey", "")) for k in keys]
        writable = [bool(k.get("writable")) for k in keys]
        num_signers = sum(1 for k in keys if k.get("signer"))
        return out, writable, num_signers

    out = [str(k) for k in keys]
    header = message.get("header") or {}
    num_signers = int(header.get("numRequiredSignatures", 1 if out else 0))
    readonly_signed = int(header.get("numReadonlySignedAccounts", 0))
    readonly_unsigned = int(header.get("numReadonlyUnsignedAccounts", 0))
    static_len = len(out)
    writable = [
        i < num_signers - readonly_signed
        or num_signers <= i < static_len - readonly_unsigned
        for i in range(static_len)
    ]
    loaded = meta.get("loadedAddresses") or {}
    for addr in loaded.get("writable") or []:
        out.append(str(addr))
        writable.append(True)
    for addr in loaded.get("readonly") or []:
        out.append(str(addr))
        writable.append(False)
    return out, writable, num_signers


def _resolve_instruction(
    ix: dict[str, Any],
    account_keys: list[str],
    positions: dict[str, int],
    inner: bool,
) -> InstructionRecord | None:
    idx = ix.get("programIdIndex")
    if idx is not None:
        if not (0 <= idx < len(account_keys)):
            return None
        program_id = account_keys[idx]
    else:
        program_id = ix.get("programId")
        if not program_id:
            return None
    accounts: list[int] = []
    for acc in ix.get("accounts") or []:
        if isinstance(acc, int):
            accounts.append(acc)
        elif isinstance(acc, str) and acc in positions:
            accounts.append(positions[acc])
    return InstructionRecord(program_id=str(program_id), accounts=tuple(accounts), inner=inner)


def _get_instructions(
    message: dict[str, Any],
    meta: dict[str, Any],
    account_keys: list[str],
) -> list[InstructionRecord]:
    """Top-level instructions followed by inner (CPI) instructions."""
    positions: dict[str, int] = {}
    for i, k in enumerate(account_keys):
        positions.setdefault(k, i)
    out: list[InstructionRecord] = []
    for ix in message.get("instructions") or []:
        rec = _resolve_instruction(ix, account_keys, positions, inner=False)
        if rec is not None:
            out.append(rec)
    for block in meta.get("innerInstructions") or []:
        for ix in block.get("instructions") or []:
            rec = _resolve_instruction(ix, account_keys, positions, inner=True)
            if rec is not None:
                out.append(rec)
    return out
