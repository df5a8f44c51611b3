"""
Merkle Explorer - Hash Tree Implementation

Builds a binary SHA-256 hash tree over an ordered list of string items,
extracts membership proofs for individual leaves and verifies them.

Hashing conventions:
- Leaf digest = SHA256(utf8(item))
- Parent digest = SHA256(left_digest || right_digest), raw bytes, left first

For odd-sized levels the last node is paired with a synthetic padding
sibling carrying the same digest (one fresh padding node per level).
"""

import hashlib
import hmac
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any

DIGEST_SIZE = 32


class HashTreeError(Exception):
    """Base exception for hash tree errors."""

    pass


class EmptyInputError(HashTreeError, ValueError):
    """Raised when a tree is built from zero items."""

    pass


class IndexOutOfRangeError(HashTreeError, IndexError):
    """Raised when a leaf index is outside the tree."""

    pass


class MalformedTreeError(HashTreeError, RuntimeError):
    """Raised when the node graph violates the tree invariants."""

    pass


class InvalidDigestError(HashTreeError, ValueError):
    """Raised when a hex digest cannot be decoded."""

    pass


class InvalidProofError(HashTreeError, ValueError):
    """Raised when a serialized proof cannot be decoded."""

    pass


class ProofDirection(str, Enum):
    """Side occupied by the sibling relative to the path node."""

    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True, eq=False)
class LeafNode:
    """
    Leaf of the tree, one per input item.

    Attributes:
        digest: SHA-256 of the UTF-8 encoded item
        data: The original item
        position: Index of the item in the input sequence
    """

    digest: bytes
    data: str
    position: int


@dataclass(frozen=True, eq=False)
class PaddingNode:
    """Synthetic sibling for the last node of an odd-sized level."""

    digest: bytes


@dataclass(frozen=True, eq=False)
class InternalNode:
    """
    Internal node with exactly two children.

    Attributes:
        digest: SHA-256 of left.digest || right.digest
        left: Left child
        right: Right child
        start: First leaf position covered by this subtree
        stop: One past the last leaf position covered by this subtree
    """

    digest: bytes
    left: "Node"
    right: "Node"
    start: int
    stop: int


Node = LeafNode | PaddingNode | InternalNode


def digest_to_hex(digest: bytes) -> str:
    """Encode a digest as lowercase hex."""
    return digest.hex()


def digest_from_hex(value: str) -> bytes:
    """
    Decode a lowercase hex digest.

    Args:
        value: 64 lowercase hex characters

    Returns:
        32-byte digest

    Raises:
        InvalidDigestError: If the value is not a lowercase hex SHA-256 digest
    """
    if not isinstance(value, str) or len(value) != DIGEST_SIZE * 2:
        raise InvalidDigestError(f"Digest must be {DIGEST_SIZE * 2} hex characters")
    if any(c not in "0123456789abcdef" for c in value):
        raise InvalidDigestError("Digest must be lowercase hex")
    return bytes.fromhex(value)


@dataclass(frozen=True)
class ProofStep:
    """
    One level of a membership proof.

    Attributes:
        sibling_digest: Digest of the sibling at this level
        direction: Whether the sibling is LEFT or RIGHT of the path
    """

    sibling_digest: bytes
    direction: ProofDirection

    def __post_init__(self) -> None:
        if not isinstance(self.direction, ProofDirection):
            try:
                object.__setattr__(self, "direction", ProofDirection(self.direction))
            except ValueError as e:
                raise InvalidProofError(f"Unknown proof direction: {self.direction!r}") from e

    def to_dict(self) -> dict[str, str]:
        """Serialize to dictionary."""
        return {
            "sibling_digest": digest_to_hex(self.sibling_digest),
            "direction": self.direction.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> "ProofStep":
        """Deserialize from dictionary."""
        try:
            sibling_hex = data["sibling_digest"]
            direction = data["direction"]
        except KeyError as e:
            raise InvalidProofError(f"Proof step missing key: {e.args[0]}") from e
        return cls(sibling_digest=digest_from_hex(sibling_hex), direction=direction)

    def to_compact(self) -> str:
        """Serialize as "direction:hex"."""
        return f"{self.direction.value}:{digest_to_hex(self.sibling_digest)}"

    @classmethod
    def from_compact(cls, item: str) -> "ProofStep":
        """Deserialize from "direction:hex"."""
        direction, sep, sibling_hex = item.partition(":")
        if not sep:
            raise InvalidProofError(f"Malformed compact proof step: {item!r}")
        return cls(sibling_digest=digest_from_hex(sibling_hex), direction=direction)


Proof = list[ProofStep]


@dataclass
class InclusionProof:
    """
    Membership proof bundled with the context needed to transport it.

    Attributes:
        leaf_index: Index of the proven leaf
        leaf_digest: Digest of the proven leaf
        steps: Sibling digests from the leaf up to just below the root
        root_digest: Expected root digest
        tree_size: Number of leaves in the tree
    """

    leaf_index: int
    leaf_digest: bytes
    steps: Proof
    root_digest: bytes
    tree_size: int

    def verify(self, data: str) -> bool:
        """Check that data, folded with the steps, reaches the root."""
        return verify_proof(data, self.steps, self.root_digest)

    def to_dict(self) -> dict[str, Any]:
        """Serialize proof to dictionary for transport."""
        return {
            "leaf_index": self.leaf_index,
            "leaf_digest": digest_to_hex(self.leaf_digest),
            "steps": [step.to_dict() for step in self.steps],
            "root_digest": digest_to_hex(self.root_digest),
            "tree_size": self.tree_size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InclusionProof":
        """Deserialize proof from dictionary."""
        try:
            return cls(
                leaf_index=data["leaf_index"],
                leaf_digest=digest_from_hex(data["leaf_digest"]),
                steps=[ProofStep.from_dict(s) for s in data["steps"]],
                root_digest=digest_from_hex(data["root_digest"]),
                tree_size=data["tree_size"],
            )
        except KeyError as e:
            raise InvalidProofError(f"Proof missing key: {e.args[0]}") from e

    def to_compact(self) -> list[str]:
        """
        Serialize the steps to compact format.

        Format: ["left:hash1", "right:hash2", ...]
        """
        return [step.to_compact() for step in self.steps]

    @classmethod
    def from_compact(
        cls,
        leaf_index: int,
        leaf_digest: bytes,
        compact_steps: list[str],
        root_digest: bytes,
        tree_size: int,
    ) -> "InclusionProof":
        """Create proof from compact format."""
        return cls(
            leaf_index=leaf_index,
            leaf_digest=leaf_digest,
            steps=[ProofStep.from_compact(item) for item in compact_steps],
            root_digest=root_digest,
            tree_size=tree_size,
        )


def sha256(data: bytes) -> bytes:
    """Raw SHA-256 digest of data."""
    return hashlib.sha256(data).digest()


def compute_leaf_digest(item: str) -> bytes:
    """
    Compute the digest of a leaf item.

    Args:
        item: Leaf data, encoded as UTF-8 before hashing

    Returns:
        32-byte SHA-256 digest

    Raises:
        TypeError: If item is not a string
    """
    if not isinstance(item, str):
        raise TypeError(f"Leaf items must be str, got {type(item).__name__}")
    return sha256(item.encode("utf-8"))


def compute_parent_digest(left: bytes, right: bytes) -> bytes:
    """Digest of an internal node: SHA256(left || right)."""
    return sha256(left + right)


def _leaf_range(node: Node) -> tuple[int, int]:
    """Half-open range of leaf positions under node (empty for padding)."""
    if isinstance(node, LeafNode):
        return node.position, node.position + 1
    if isinstance(node, InternalNode):
        return node.start, node.stop
    return 0, 0


def _contains(node: Node, index: int) -> bool:
    start, stop = _leaf_range(node)
    return start <= index < stop


class HashTree:
    """
    Immutable binary hash tree over string items.

    Features:
    - Deterministic construction from ordered items
    - Odd levels padded by duplicating the last digest
    - Identity-based proof extraction (duplicate items get distinct proofs)
    - Optional parallel leaf hashing

    Example:
        >>> tree = HashTree.build(["a", "b", "c"])
        >>> proof = tree.proof(2)
        >>> verify_proof("c", proof, tree.root_digest)
        True
    """

    def __init__(self, root: Node, leaves: list[LeafNode], height: int = 0) -> None:
        """
        Initialize hash tree (internal use).

        Use build() to construct trees.
        """
        self._root = root
        self._leaves = leaves
        self._height = height
        self._by_digest: dict[bytes, list[LeafNode]] = {}
        for leaf in leaves:
            self._by_digest.setdefault(leaf.digest, []).append(leaf)

    @classmethod
    def build(cls, items: Sequence[str], *, max_workers: int | None = None) -> "HashTree":
        """
        Construct a hash tree from items.

        Args:
            items: Ordered leaf data
            max_workers: Hash leaves on a thread pool of this size when > 1

        Returns:
            Constructed HashTree

        Raises:
            EmptyInputError: If items is empty
            TypeError: If an item is not a string
        """
        if not items:
            raise EmptyInputError("Cannot build hash tree from empty items")

        if max_workers is not None and max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                digests = list(pool.map(compute_leaf_digest, items))
        else:
            digests = [compute_leaf_digest(item) for item in items]

        leaves = [
            LeafNode(digest=digest, data=item, position=i)
            for i, (item, digest) in enumerate(zip(items, digests))
        ]

        return cls._reduce(leaves)

    @classmethod
    def _reduce(cls, leaves: list[LeafNode]) -> "HashTree":
        """Collapse levels pairwise until one node remains."""
        current_level: list[Node] = list(leaves)
        height = 0

        while len(current_level) > 1:
            next_level: list[Node] = []

            for i in range(0, len(current_level), 2):
                left = current_level[i]
                if i + 1 < len(current_level):
                    right = current_level[i + 1]
                else:
                    # Odd level: fresh padding sibling with the same digest
                    right = PaddingNode(digest=left.digest)

                start, stop = _leaf_range(left)
                if not isinstance(right, PaddingNode):
                    stop = _leaf_range(right)[1]

                next_level.append(
                    InternalNode(
                        digest=compute_parent_digest(left.digest, right.digest),
                        left=left,
                        right=right,
                        start=start,
                        stop=stop,
                    )
                )

            current_level = next_level
            height += 1

        return cls(current_level[0], leaves, height)

    @property
    def root(self) -> Node:
        """Get the root node."""
        return self._root

    @property
    def root_digest(self) -> bytes:
        """Get the root digest."""
        return self._root.digest

    @property
    def root_hex(self) -> str:
        """Get the root digest as lowercase hex."""
        return digest_to_hex(self._root.digest)

    @property
    def leaves(self) -> list[LeafNode]:
        """Get all leaf nodes in input order."""
        return list(self._leaves)

    @property
    def leaf_count(self) -> int:
        """Get the number of leaves."""
        return len(self._leaves)

    @property
    def height(self) -> int:
        """Number of hashing levels above the leaves."""
        return self._height

    def leaf_digests(self) -> list[bytes]:
        """Leaf digests in input order."""
        return [leaf.digest for leaf in self._leaves]

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self._leaves):
            raise IndexOutOfRangeError(f"Leaf index {index} out of bounds")

    def get_leaf_digest(self, index: int) -> bytes:
        """
        Get the digest of a leaf by index.

        Raises:
            IndexOutOfRangeError: If index out of bounds
        """
        self._check_index(index)
        return self._leaves[index].digest

    def leaves_with_digest(self, digest: bytes) -> list[LeafNode]:
        """All leaves whose digest equals digest, in input order."""
        return list(self._by_digest.get(digest, ()))

    def indices_of(self, item: str) -> list[int]:
        """Positions of every leaf holding item."""
        return [leaf.position for leaf in self.leaves_with_digest(compute_leaf_digest(item))]

    def proof(self, index: int) -> Proof:
        """
        Generate the membership proof for a leaf.

        Args:
            index: Leaf index (0-based)

        Returns:
            Proof steps ordered from the leaf's sibling up to the root

        Raises:
            IndexOutOfRangeError: If index out of bounds
            MalformedTreeError: If the node graph is inconsistent
        """
        self._check_index(index)
        target = self._leaves[index]

        steps: Proof = []
        node = self._root

        while isinstance(node, InternalNode):
            left, right = node.left, node.right
            if left is None or right is None:
                raise MalformedTreeError("Internal node is missing a child")

            if _contains(left, index):
                steps.append(ProofStep(sibling_digest=right.digest, direction=ProofDirection.RIGHT))
                node = left
            elif _contains(right, index):
                steps.append(ProofStep(sibling_digest=left.digest, direction=ProofDirection.LEFT))
                node = right
            else:
                raise MalformedTreeError(f"No subtree contains leaf {index}")

        if node is not target:
            raise MalformedTreeError(f"Descent for leaf {index} reached the wrong node")

        steps.reverse()
        return steps

    def get_inclusion_proof(self, index: int) -> InclusionProof:
        """
        Generate a transportable inclusion proof for a leaf.

        Raises:
            IndexOutOfRangeError: If index out of bounds
        """
        steps = self.proof(index)
        return InclusionProof(
            leaf_index=index,
            leaf_digest=self._leaves[index].digest,
            steps=steps,
            root_digest=self.root_digest,
            tree_size=len(self._leaves),
        )

    def get_all_proofs(self) -> list[InclusionProof]:
        """Generate inclusion proofs for all leaves."""
        return [self.get_inclusion_proof(i) for i in range(len(self._leaves))]

    def to_dict(self) -> dict[str, Any]:
        """Nested hex representation of the node graph."""
        return _node_to_dict(self._root)


def _node_to_dict(node: Node) -> dict[str, Any]:
    if isinstance(node, LeafNode):
        return {
            "kind": "leaf",
            "digest": digest_to_hex(node.digest),
            "data": node.data,
            "position": node.position,
        }
    if isinstance(node, PaddingNode):
        return {"kind": "padding", "digest": digest_to_hex(node.digest)}
    return {
        "kind": "internal",
        "digest": digest_to_hex(node.digest),
        "left": _node_to_dict(node.left),
        "right": _node_to_dict(node.right),
    }


def compute_root_from_proof(leaf_digest: bytes, steps: Sequence[ProofStep]) -> bytes:
    """
    Fold proof steps onto an already-hashed leaf.

    Args:
        leaf_digest: Digest of the leaf
        steps: Proof steps, leaf first

    Returns:
        Computed root digest
    """
    current = leaf_digest

    for step in steps:
        if step.direction == ProofDirection.LEFT:
            # Sibling is on the left
            current = compute_parent_digest(step.sibling_digest, current)
        else:
            current = compute_parent_digest(current, step.sibling_digest)

    return current


def verify_proof(data: str, proof: Sequence[ProofStep], root_digest: bytes) -> bool:
    """
    Verify a membership proof without access to the tree.

    Args:
        data: Claimed leaf item
        proof: Proof steps, leaf first
        root_digest: Expected root digest

    Returns:
        True if the proof reconstructs root_digest
    """
    computed = compute_root_from_proof(compute_leaf_digest(data), proof)
    return hmac.compare_digest(computed, root_digest)
