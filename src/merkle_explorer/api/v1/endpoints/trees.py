"""
Merkle Explorer API - Tree Endpoints

Stateless hash tree APIs:
- POST /trees: Build a tree and return its root and leaf digests
- POST /trees/proof: Build a tree and return the proof for one leaf
- POST /trees/verify: Verify a membership proof against a root
"""

from typing import Any, NoReturn

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from merkle_explorer.crypto.merkle import (
    EmptyInputError,
    HashTreeError,
    IndexOutOfRangeError,
    InvalidDigestError,
    InvalidProofError,
    ProofDirection,
    ProofStep,
    compute_leaf_digest,
    compute_root_from_proof,
    digest_from_hex,
    digest_to_hex,
)
from merkle_explorer.services.tree_service import TooManyItemsError, TreeService

logger = structlog.get_logger(__name__)
router = APIRouter()

HEX_DIGEST_PATTERN = r"^[0-9a-f]{64}$"


# Request/Response Models
class TreeBuildRequest(BaseModel):
    """Request to build a hash tree."""

    items: list[str] = Field(
        ...,
        description="Ordered leaf items, hashed as UTF-8",
    )


class LeafResponse(BaseModel):
    """A single leaf of a built tree."""

    position: int
    data: str
    digest: str


class TreeResponse(BaseModel):
    """Built tree summary."""

    root: str
    leaf_count: int
    height: int
    leaves: list[LeafResponse]
    tree: dict[str, Any] | None = None


class ProofRequest(BaseModel):
    """Request for the membership proof of one leaf."""

    items: list[str] = Field(..., description="Ordered leaf items")
    index: int = Field(..., description="Leaf index to prove")


class ProofStepModel(BaseModel):
    """One proof step in transport form."""

    sibling_digest: str = Field(..., pattern=HEX_DIGEST_PATTERN)
    direction: ProofDirection


class ProofResponse(BaseModel):
    """Inclusion proof for a leaf."""

    leaf_index: int
    leaf_digest: str
    steps: list[ProofStepModel]
    root_digest: str
    tree_size: int
    compact: list[str]


class VerifyRequest(BaseModel):
    """Request to verify a membership proof."""

    data: str = Field(..., description="Claimed leaf item")
    proof: list[ProofStepModel] = Field(
        default_factory=list,
        description="Proof steps, leaf sibling first",
    )
    root: str = Field(
        ...,
        description="Expected root digest (lowercase hex)",
        pattern=HEX_DIGEST_PATTERN,
    )


class VerifyResponse(BaseModel):
    """Verification result."""

    verified: bool
    computed_root: str
    message: str


def _get_service(req: Request) -> TreeService:
    service = getattr(req.app.state, "tree_service", None)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Tree service not initialized",
        )
    return service


def _raise_for(error: Exception) -> NoReturn:
    """Translate a domain error into an HTTPException."""
    if isinstance(error, EmptyInputError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Enter at least one data item",
        ) from error
    if isinstance(error, IndexOutOfRangeError):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(error),
        ) from error
    if isinstance(error, TooManyItemsError):
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(error),
        ) from error
    if isinstance(error, (InvalidDigestError, InvalidProofError)):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(error),
        ) from error

    logger.error("Hash tree operation failed", error=str(error), error_type=type(error).__name__)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Hash tree operation failed: {error}",
    ) from error


# Endpoints
@router.post(
    "",
    response_model=TreeResponse,
    summary="Build hash tree",
    description="Build a hash tree from the given items and return its root and leaves.",
    responses={
        200: {"description": "Tree built"},
        413: {"description": "Too many items"},
        422: {"description": "No items supplied"},
    },
)
async def build_tree(
    request: TreeBuildRequest,
    req: Request,
    include_nodes: bool = Query(default=False, description="Include the full node graph"),
) -> TreeResponse:
    """Build a tree and summarize it."""
    service = _get_service(req)

    try:
        tree = service.build_tree(request.items)
    except (HashTreeError, TooManyItemsError) as e:
        _raise_for(e)

    return TreeResponse(
        root=tree.root_hex,
        leaf_count=tree.leaf_count,
        height=tree.height,
        leaves=[
            LeafResponse(
                position=leaf.position,
                data=leaf.data,
                digest=digest_to_hex(leaf.digest),
            )
            for leaf in tree.leaves
        ],
        tree=tree.to_dict() if include_nodes else None,
    )


@router.post(
    "/proof",
    response_model=ProofResponse,
    summary="Generate membership proof",
    description="Build a hash tree from the given items and return the proof for one leaf.",
    responses={
        200: {"description": "Proof generated"},
        404: {"description": "Leaf index out of range"},
        413: {"description": "Too many items"},
        422: {"description": "No items supplied"},
    },
)
async def generate_proof(
    request: ProofRequest,
    req: Request,
) -> ProofResponse:
    """Generate the inclusion proof for request.index."""
    service = _get_service(req)

    try:
        proof = service.get_proof(request.items, request.index)
    except (HashTreeError, TooManyItemsError) as e:
        _raise_for(e)

    data = proof.to_dict()
    return ProofResponse(
        leaf_index=data["leaf_index"],
        leaf_digest=data["leaf_digest"],
        steps=[ProofStepModel(**step) for step in data["steps"]],
        root_digest=data["root_digest"],
        tree_size=data["tree_size"],
        compact=proof.to_compact(),
    )


@router.post(
    "/verify",
    response_model=VerifyResponse,
    summary="Verify membership proof",
    description="Check that a data item and proof reconstruct the given root.",
    responses={
        200: {"description": "Verification result"},
        422: {"description": "Malformed digest or proof"},
    },
)
async def verify_membership(
    request: VerifyRequest,
    req: Request,
) -> VerifyResponse:
    """
    Verify a membership proof.

    Steps:
    1. Decode root and sibling digests
    2. Fold the proof onto the data digest
    3. Compare with the expected root
    """
    service = _get_service(req)

    logger.info(
        "Verifying membership",
        root=request.root[:16] + "...",
        steps=len(request.proof),
    )

    try:
        root_digest = digest_from_hex(request.root)
        steps = [
            ProofStep(
                sibling_digest=digest_from_hex(step.sibling_digest),
                direction=step.direction,
            )
            for step in request.proof
        ]
        verified = service.verify(request.data, steps, root_digest)
    except HashTreeError as e:
        _raise_for(e)

    computed = compute_root_from_proof(compute_leaf_digest(request.data), steps)

    return VerifyResponse(
        verified=verified,
        computed_root=digest_to_hex(computed),
        message="Proof is valid" if verified else "Proof is invalid",
    )
