"""
Merkle Explorer - Services Package

Provides the tree service used by the API.
"""

from merkle_explorer.services.tree_service import (
    TooManyItemsError,
    TreeService,
    TreeServiceError,
)

__all__ = [
    "TreeService",
    "TreeServiceError",
    "TooManyItemsError",
]
