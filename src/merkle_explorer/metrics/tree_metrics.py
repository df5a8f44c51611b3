"""
Merkle Explorer - Tree Metrics

Prometheus metrics for the hash tree service.

Metrics Categories:
- Tree building
- Proof generation
- Proof verification
- Request rejection
"""

from prometheus_client import Counter, Histogram, Info

import structlog

logger = structlog.get_logger(__name__)


class TreeMetrics:
    """
    Centralized metrics for hash tree operations.

    Provides visibility into:
    - Build latency and tree sizes
    - Proof generation latency
    - Valid/invalid verification counts
    """

    def __init__(self) -> None:
        """Initialize all tree metrics."""
        self._init_build_metrics()
        self._init_proof_metrics()
        self._init_info_metrics()

    def _init_build_metrics(self) -> None:
        """Initialize tree build metrics."""
        self.build_duration = Histogram(
            "merkle_tree_build_duration_seconds",
            "Hash tree build time",
            buckets=[0.0001, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
        )

        self.tree_size = Histogram(
            "merkle_tree_size",
            "Number of leaves in built trees",
            buckets=[1, 2, 10, 50, 100, 500, 1000, 5000, 10000],
        )

        self.rejected = Counter(
            "merkle_tree_rejected_total",
            "Requests rejected before or during tree building",
            ["reason"],
        )

    def _init_proof_metrics(self) -> None:
        """Initialize proof metrics."""
        self.proof_generation = Histogram(
            "merkle_tree_proof_duration_seconds",
            "Membership proof generation time",
            buckets=[0.00001, 0.0001, 0.0005, 0.001, 0.005, 0.01],
        )

        self.verifications = Counter(
            "merkle_tree_verifications_total",
            "Membership proof verifications",
            ["result"],
        )

    def _init_info_metrics(self) -> None:
        """Initialize info metrics."""
        self.service_info = Info(
            "merkle_explorer_service",
            "Merkle Explorer service information",
        )

    # Convenience methods

    def record_build(self, duration: float, tree_size: int) -> None:
        """Record hash tree build."""
        self.build_duration.observe(duration)
        self.tree_size.observe(tree_size)

    def record_proof(self, duration: float) -> None:
        """Record proof generation."""
        self.proof_generation.observe(duration)

    def record_verification(self, valid: bool) -> None:
        """Record proof verification."""
        result = "valid" if valid else "invalid"
        self.verifications.labels(result=result).inc()

    def record_rejected(self, reason: str) -> None:
        """Record rejected request."""
        self.rejected.labels(reason=reason).inc()

    def set_service_info(self, version: str, environment: str) -> None:
        """Set service info labels."""
        self.service_info.info({
            "version": version,
            "environment": environment,
        })


# Singleton instance
_tree_metrics: TreeMetrics | None = None


def get_tree_metrics() -> TreeMetrics:
    """Get global tree metrics instance."""
    global _tree_metrics
    if _tree_metrics is None:
        _tree_metrics = TreeMetrics()
        logger.debug("Tree metrics registered")
    return _tree_metrics
