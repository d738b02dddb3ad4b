"""
Solana RPC collaborator: JSON-RPC client and the data models it produces.
"""

from txscope.rpc.client import SolanaRpcClient, validate_address
from txscope.rpc.models import (
    ConfirmedTransaction,
    InstructionRecord,
    SignaturePage,
    SignatureRecord,
    TokenBalance,
)

__all__ = [
    "ConfirmedTransaction",
    "InstructionRecord",
    "SignaturePage",
    "SignatureRecord",
    "SolanaRpcClient",
    "TokenBalance",
    "validate_address",
]
