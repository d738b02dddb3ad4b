"""
Application-level exceptions.

Every public operation either returns its result or raises one of these.
Each error carries a stable `code` so callers (and batch results) can report
failures without string matching.
"""

from __future__ import annotations

from typing import Any


class TxScopeError(Exception):
    """Base class for all txscope errors."""

    code = "txscope_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            out["details"] = dict(self.details)
        return out


class MalformedTransaction(TxScopeError):
    """Balance snapshots are inconsistent with the account list. Never patched."""

    code = "malformed_transaction"


class FetchError(TxScopeError):
    """A collaborator call (page or transaction fetch) failed."""

    code = "fetch_error"


class NotFound(FetchError):
    """Unknown or unconfirmed signature."""

    code = "not_found"


class InvalidAddress(FetchError):
    """Address failed base58 / length validation."""

    code = "invalid_address"


class RpcUnavailable(FetchError):
    """Transport failure or timeout. Not retried inside txscope."""

    code = "rpc_unavailable"


class PageSizeExceeded(FetchError):
    """Requested page size is above the node-imposed ceiling."""

    code = "page_size_exceeded"


class DivisionUndefined(TxScopeError, ZeroDivisionError):
    """A ratio was requested with an absent or zero denominator."""

    code = "division_undefined"
