"""
Merkle Explorer - Tree Service

Wraps hash tree construction, proof generation, and verification with
request limits, structured logging, and metrics.
"""

import time
from collections.abc import Sequence

import structlog

from merkle_explorer.core.config import settings
from merkle_explorer.crypto.merkle import (
    EmptyInputError,
    HashTree,
    InclusionProof,
    ProofStep,
    digest_to_hex,
    verify_proof,
)
from merkle_explorer.metrics import TreeMetrics, get_tree_metrics

logger = structlog.get_logger(__name__)


class TreeServiceError(Exception):
    """Base exception for tree service errors."""

    pass


class TooManyItemsError(TreeServiceError):
    """Raised when a build request exceeds the configured item limit."""

    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(f"Too many items: {count} (limit {limit})")


class TreeService:
    """
    Hash tree service.

    Provides:
    - Tree builds bounded by MAX_ITEMS
    - Optional parallel leaf hashing
    - Inclusion proofs for a leaf index
    - Stateless proof verification
    """

    def __init__(
        self,
        max_items: int | None = None,
        hash_workers: int | None = None,
        metrics: TreeMetrics | None = None,
    ) -> None:
        """
        Initialize tree service.

        Args:
            max_items: Largest accepted item count (defaults to settings)
            hash_workers: Thread pool size for leaf hashing (defaults to settings)
            metrics: Metrics sink (defaults to the global instance)
        """
        self._max_items = max_items if max_items is not None else settings.MAX_ITEMS
        self._hash_workers = hash_workers if hash_workers is not None else settings.LEAF_HASH_WORKERS
        self._metrics = metrics or get_tree_metrics()

    @property
    def max_items(self) -> int:
        return self._max_items

    def build_tree(self, items: Sequence[str]) -> HashTree:
        """
        Build a hash tree from items.

        Raises:
            EmptyInputError: If items is empty
            TooManyItemsError: If items exceeds the configured limit
        """
        if len(items) > self._max_items:
            self._metrics.record_rejected("too_many_items")
            raise TooManyItemsError(len(items), self._max_items)

        started = time.perf_counter()
        try:
            tree = HashTree.build(items, max_workers=self._hash_workers)
        except EmptyInputError:
            self._metrics.record_rejected("empty_input")
            raise
        duration = time.perf_counter() - started

        self._metrics.record_build(duration, tree.leaf_count)

        logger.info(
            "Hash tree built",
            leaf_count=tree.leaf_count,
            height=tree.height,
            root=tree.root_hex[:16] + "...",
            duration=round(duration, 6),
        )

        return tree

    def get_proof(self, items: Sequence[str], index: int) -> InclusionProof:
        """
        Build a tree from items and return the inclusion proof for index.

        Raises:
            EmptyInputError: If items is empty
            TooManyItemsError: If items exceeds the configured limit
            IndexOutOfRangeError: If index is outside the tree
        """
        tree = self.build_tree(items)

        started = time.perf_counter()
        proof = tree.get_inclusion_proof(index)
        self._metrics.record_proof(time.perf_counter() - started)

        logger.debug(
            "Generated inclusion proof",
            leaf_index=index,
            steps=len(proof.steps),
            root=tree.root_hex[:16] + "...",
        )

        return proof

    def verify(self, data: str, steps: Sequence[ProofStep], root_digest: bytes) -> bool:
        """Verify a membership proof against root_digest."""
        verified = verify_proof(data, steps, root_digest)
        self._metrics.record_verification(verified)

        if verified:
            logger.info(
                "Proof verified",
                steps=len(steps),
                root=digest_to_hex(root_digest)[:16] + "...",
            )
        else:
            logger.warning(
                "Proof verification failed",
                steps=len(steps),
                root=digest_to_hex(root_digest)[:16] + "...",
            )

        return verified
