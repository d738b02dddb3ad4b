"""
txscope: transaction decoding and history traversal for Solana.

Turns confirmed transactions into structured payment facts (payer, recipient,
amount, fee, asset kind, pool sides, bonding-curve legs) and walks an address's
signature history with bounded, rate-limited paging and batch enrichment.
"""

__version__ = "0.1.0"
