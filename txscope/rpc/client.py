"""
Solana JSON-RPC collaborator over httpx.

Implements the three calls the core needs: a page of getSignaturesForAddress,
one getTransaction, and a fee estimate. Errors are mapped onto the txscope
error taxonomy; nothing here retries. Safe to share between concurrent tasks.
"""

from __future__ import annotations

import base64
import itertools
from typing import Any

import httpx
from solders.hash import Hash
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature

from txscope.config.env import mask_rpc_url
from txscope.core.exceptions import (
    InvalidAddress,
    NotFound,
    PageSizeExceeded,
    RpcUnavailable,
)
from txscope.rpc.models import ConfirmedTransaction, SignaturePage, SignatureRecord
from txscope.txscope_logging import get_logger

logger = get_logger(__name__)

MAX_SIGNATURES_PER_REQUEST = 1000

# JSON-RPC "invalid params"
_INVALID_PARAMS = -32602

_request_ids = itertools.count(1)


def _build_rpc_body(method: str, params: list[Any]) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": next(_request_ids),
        "method": method,
        "params": params,
    }


def validate_address(address: str) -> str:
    """Return address unchanged if it parses as a public key; raise InvalidAddress otherwise."""
    try:
        Pubkey.from_string(address)
    except Exception as e:
        raise InvalidAddress(f"invalid address: {address!r}", address=address) from e
    return address


class SolanaRpcClient:
    """
    Async Solana RPC client.

        async with SolanaRpcClient(url) as rpc:
            page = await rpc.fetch_signature_page(address, None, 1000)
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_sec: float = 30.0,
        commitment: str = "confirmed",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not rpc_url or not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url.strip()
        self._commitment = commitment
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_sec),
            transport=transport,
        )

    async def __aenter__(self) -> "SolanaRpcClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, params: list[Any]) -> Any:
        """Perform one JSON-RPC call; return `result` or raise a mapped error."""
        body = _build_rpc_body(method, params)
        try:
            resp = await self._client.post(self._rpc_url, json=body)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            logger.warning(
                "rpc_transport_error",
                method=method,
                rpc_url=mask_rpc_url(self._rpc_url),
                error=str(e),
            )
            raise RpcUnavailable(f"{method} failed: {e}", method=method) from e
        except ValueError as e:
            raise RpcUnavailable(f"{method} returned invalid JSON", method=method) from e

        if not isinstance(data, dict):
            logger.warning("rpc_invalid_response", method=method, body_type=type(data).__name__)
            raise RpcUnavailable(f"{method} returned a non-object body", method=method)
        if "error" in data:
            err = data["error"]
            if not isinstance(err, dict):
                err = {"message": err}
            code = err.get("code")
            message = str(err.get("message", err))
            logger.debug("rpc_error_response", method=method, code=code, rpc_message=message)
            if code == _INVALID_PARAMS and "limit" in message.lower():
                raise PageSizeExceeded(message, method=method, rpc_code=code)
            if code == _INVALID_PARAMS and method == "getSignaturesForAddress":
                raise InvalidAddress(message, method=method, rpc_code=code)
            raise RpcUnavailable(
                f"Solana RPC error: {message} (code={code})", method=method, rpc_code=code
            )
        return data.get("result")

    async def fetch_signature_page(
        self,
        address: str,
        before: str | None,
        limit: int,
    ) -> SignaturePage:
        """
        One page of getSignaturesForAddress, newest first.

        next_cursor is the last signature when a full page came back, else None.
        """
        validate_address(address)
        if limit > MAX_SIGNATURES_PER_REQUEST:
            raise PageSizeExceeded(
                f"limit {limit} above {MAX_SIGNATURES_PER_REQUEST}", limit=limit
            )
        if limit < 1:
            raise ValueError("limit must be positive")
        opts: dict[str, Any] = {"limit": limit, "commitment": self._commitment}
        if before is not None:
            opts["before"] = before
        result = await self._call("getSignaturesForAddress", [address, opts])
        if not isinstance(result, list):
            raise RpcUnavailable("getSignaturesForAddress returned no result list", address=address)
        try:
            items = tuple(SignatureRecord.from_rpc_item(item) for item in result)
        except (KeyError, TypeError, ValueError) as e:
            raise RpcUnavailable(f"invalid signature item: {e}", address=address) from e
        next_cursor = items[-1].signature if len(items) == limit else None
        return SignaturePage(items=items, next_cursor=next_cursor)

    async def fetch_transaction(self, signature: str) -> ConfirmedTransaction:
        """getTransaction (json encoding, v0 supported). Raises NotFound for unknown signatures."""
        try:
            Signature.from_string(signature)
        except Exception as e:
            raise NotFound(f"malformed signature: {signature!r}", signature=signature) from e
        params = [
            signature,
            {
                "encoding": "json",
                "commitment": self._commitment,
                "maxSupportedTransactionVersion": 0,
            },
        ]
        result = await self._call("getTransaction", params)
        if result is None:
            raise NotFound(f"transaction not found: {signature}", signature=signature)
        if not isinstance(result, dict):
            raise RpcUnavailable("getTransaction returned a non-object result", signature=signature)
        return ConfirmedTransaction.from_rpc_result(result, signature=signature)

    async def estimate_fee(self, payer: str | None = None) -> int:
        """Fee in lamports for an empty message against the latest blockhash."""
        payer_key = Pubkey.from_string(validate_address(payer)) if payer else None
        latest = await self._call("getLatestBlockhash", [{"commitment": self._commitment}])
        try:
            blockhash = Hash.from_string(latest["value"]["blockhash"])
        except Exception as e:
            raise RpcUnavailable("getLatestBlockhash returned no blockhash") from e
        message = Message.new_with_blockhash([], payer_key, blockhash)
        encoded = base64.b64encode(bytes(message)).decode("ascii")
        result = await self._call("getFeeForMessage", [encoded, {"commitment": self._commitment}])
        value = result.get("value") if isinstance(result, dict) else None
        if value is None:
            raise RpcUnavailable("fee unavailable for message")
        return int(value)
