"""
Merkle Explorer - Metrics Module

Prometheus metrics for hash tree operations.

Exports:
- Tree build times and sizes
- Proof generation times
- Verification results
- Rejected requests
"""

from merkle_explorer.metrics.tree_metrics import (
    TreeMetrics,
    get_tree_metrics,
)

__all__ = [
    "TreeMetrics",
    "get_tree_metrics",
]
