"""
Merkle Explorer - Cryptographic Utilities

Provides hash tree construction, proof generation, and verification.
"""

from merkle_explorer.crypto.merkle import (
    EmptyInputError,
    HashTree,
    HashTreeError,
    InclusionProof,
    IndexOutOfRangeError,
    InternalNode,
    InvalidDigestError,
    InvalidProofError,
    LeafNode,
    MalformedTreeError,
    PaddingNode,
    Proof,
    ProofDirection,
    ProofStep,
    compute_leaf_digest,
    compute_parent_digest,
    compute_root_from_proof,
    digest_from_hex,
    digest_to_hex,
    verify_proof,
)

__all__ = [
    "HashTree",
    "LeafNode",
    "InternalNode",
    "PaddingNode",
    "Proof",
    "ProofStep",
    "ProofDirection",
    "InclusionProof",
    "HashTreeError",
    "EmptyInputError",
    "IndexOutOfRangeError",
    "MalformedTreeError",
    "InvalidDigestError",
    "InvalidProofError",
    "compute_leaf_digest",
    "compute_parent_digest",
    "compute_root_from_proof",
    "digest_from_hex",
    "digest_to_hex",
    "verify_proof",
]
