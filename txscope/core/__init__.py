"""
Core utilities: shared error types used across the decoder, the history
traversal engine and the RPC collaborator.
"""

from txscope.core.exceptions import (
    DivisionUndefined,
    FetchError,
    InvalidAddress,
    MalformedTransaction,
    NotFound,
    PageSizeExceeded,
    RpcUnavailable,
    TxScopeError,
)

__all__ = [
    "DivisionUndefined",
    "FetchError",
    "InvalidAddress",
    "MalformedTransaction",
    "NotFound",
    "PageSizeExceeded",
    "RpcUnavailable",
    "TxScopeError",
]
