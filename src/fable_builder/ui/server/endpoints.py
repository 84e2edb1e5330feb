"""HTTP API endpoints for the builder server."""

from fastapi import APIRouter, HTTPException, Query

from fable_builder.engine import (
    Catalogue,
    PipelineModel,
    ValidationReport,
    VisualGraph,
    compression_stats,
    decode,
    encode,
    generate_plugin_pipeline,
    is_too_large,
    to_graph,
    validate,
    without_block,
    without_block_cascade,
)

from . import state
from .models import BuilderState, RemoveBlockRequest, ShareResponse, ShareStats

# Create router for API endpoints
router = APIRouter()


@router.get("/api/state")
def get_state() -> BuilderState:
    """Get current builder configuration."""
    return BuilderState(
        cataloguePath=str(state.catalogue_path) if state.catalogue_path else None,
        plugins=list(state.catalogue),
        maxTokenLength=state.max_token_length,
    )


@router.get("/api/catalogue")
def get_catalogue() -> Catalogue:
    """Return the block factory catalogue."""
    return state.catalogue


@router.post("/api/graph")
def get_graph(pipeline: PipelineModel) -> VisualGraph:
    """Project a pipeline into React Flow nodes and edges."""
    return to_graph(pipeline, state.catalogue)


@router.post("/api/validate")
def validate_pipeline(pipeline: PipelineModel) -> ValidationReport:
    """Validate a pipeline and list possible expansions per block."""
    return validate(pipeline, state.catalogue)


@router.post("/api/share")
def share_pipeline(pipeline: PipelineModel) -> ShareResponse:
    """Encode a pipeline into a token for a shareable link."""
    token = encode(pipeline)
    return ShareResponse(
        token=token,
        tooLarge=is_too_large(token, state.max_token_length),
        stats=ShareStats.from_stats(compression_stats(pipeline)),
    )


@router.get("/api/share/{token}")
def load_shared_pipeline(token: str) -> PipelineModel:
    """Decode a pipeline from a shared token."""
    pipeline = decode(token)
    if pipeline is None:
        raise HTTPException(400, "Invalid or corrupted pipeline token")
    return pipeline


@router.post("/api/blocks/{block_id}/remove")
def remove_block(block_id: str, request: RemoveBlockRequest) -> PipelineModel:
    """Remove a block and unset every input that referenced it."""
    if block_id not in request.pipeline.blocks:
        raise HTTPException(404, f"Block not found: {block_id}")
    if request.cascade:
        return without_block_cascade(request.pipeline, block_id)
    return without_block(request.pipeline, block_id)


@router.post("/api/generate")
def generate_pipeline(plugin: str = Query(...)) -> PipelineModel:
    """Generate a pre-wired pipeline from all blocks of a plugin."""
    if plugin not in state.catalogue:
        raise HTTPException(404, f"Plugin not found: {plugin}")
    return generate_plugin_pipeline(state.catalogue, plugin).model
