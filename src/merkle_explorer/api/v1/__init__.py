"""
Merkle Explorer API v1

Endpoints:
- POST /trees - Build hash tree
- POST /trees/proof - Generate membership proof
- POST /trees/verify - Verify membership proof
"""

from fastapi import APIRouter

from merkle_explorer.api.v1.endpoints import trees

router = APIRouter()
router.include_router(trees.router, prefix="/trees", tags=["Trees"])
