"""
History traversal: signature paging, batch enrichment, activity summaries,
polling and payment relationships.
"""

from txscope.history.activity import AccountActivity
from txscope.history.enricher import BatchEnricher, EnrichmentResult
from txscope.history.pacing import RequestPacer
from txscope.history.poller import SignaturePoller
from txscope.history.relationships import RelationshipAnalyzer
from txscope.history.traverser import (
    SignatureTraverser,
    TraversalConfig,
    successful_only,
    within_block_time,
)

__all__ = [
    "AccountActivity",
    "BatchEnricher",
    "EnrichmentResult",
    "RelationshipAnalyzer",
    "RequestPacer",
    "SignaturePoller",
    "SignatureTraverser",
    "TraversalConfig",
    "successful_only",
    "within_block_time",
]
