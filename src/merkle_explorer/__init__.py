"""
Merkle Explorer - SHA-256 hash trees with membership proofs.
"""

__version__ = "1.0.0"
