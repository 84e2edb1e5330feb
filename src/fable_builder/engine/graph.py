"""Projection of a pipeline into React Flow nodes and edges.

Projection is one-directional: edits made on the canvas are written back to
the pipeline through the helpers in ``model.py``, never by re-deriving the
pipeline from the graph.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from .catalogue import BlockFactory, Catalogue, NotFound, resolve
from .model import BlockInstance, PipelineModel, is_connected

logger = logging.getLogger(__name__)

NODE_TYPE_MAP: dict[str, str] = {
    "source": "sourceBlock",
    "transform": "transformBlock",
    "product": "productBlock",
    "sink": "sinkBlock",
}

DEFAULT_NODE_TYPE = "default"
EDGE_TYPE = "fableEdge"
OUTPUT_HANDLE = "output"


class NodeData(BaseModel):
    """Payload attached to a block node."""

    instanceId: str  # noqa: N815 - React Flow node data uses camelCase
    instance: BlockInstance
    factory: BlockFactory
    label: str
    # In-process back-reference for node renderers; never serialized
    catalogue: Catalogue = Field(default_factory=dict, exclude=True, repr=False)


class VisualNode(BaseModel):
    """React Flow node for one block."""

    id: str
    type: str
    position: dict[str, float]
    data: NodeData


class VisualEdge(BaseModel):
    """React Flow edge from a producer's output to a consumer's input slot."""

    id: str
    source: str
    target: str
    sourceHandle: str = OUTPUT_HANDLE  # noqa: N815 - React Flow requires camelCase
    targetHandle: str  # noqa: N815 - React Flow requires camelCase
    type: str = EDGE_TYPE
    data: dict[str, Any] = {}


class VisualGraph(BaseModel):
    """Pipeline as React Flow graph."""

    nodes: list[VisualNode]
    edges: list[VisualEdge]


def node_type_for_kind(kind: str) -> str:
    """Map a block kind to its node renderer, ``default`` for unknown kinds."""
    return NODE_TYPE_MAP.get(kind, DEFAULT_NODE_TYPE)


def to_nodes(model: PipelineModel, catalogue: Catalogue) -> list[VisualNode]:
    """Create one node per block whose factory is in the catalogue.

    Blocks with an unknown factory cannot be rendered and are skipped; the
    validator is where they get reported.
    """
    nodes: list[VisualNode] = []
    for block_id, block in model.blocks.items():
        result = resolve(catalogue, block.factory_id)
        if isinstance(result, NotFound):
            logger.debug(
                "Skipping block %s: %s not found for %s",
                block_id,
                result.missing,
                block.factory_id,
            )
            continue
        factory = result.factory
        nodes.append(
            VisualNode(
                id=block_id,
                type=node_type_for_kind(factory.kind),
                position={"x": 0, "y": 0},
                data=NodeData(
                    instanceId=block_id,
                    instance=block,
                    factory=factory,
                    label=factory.title,
                    catalogue=catalogue,
                ),
            )
        )
    return nodes


def to_edges(model: PipelineModel, catalogue: Catalogue) -> list[VisualEdge]:
    """Create one edge per connected input slot.

    Unconnected slots produce no edge. Edges are grouped per consumer block,
    in the order of that block's input slots.
    """
    edges: list[VisualEdge] = []
    for target_id, block in model.blocks.items():
        for input_name, source_id in block.input_ids.items():
            if not is_connected(source_id):
                continue
            edges.append(
                VisualEdge(
                    id=f"{source_id}-{target_id}-{input_name}",
                    source=source_id,
                    target=target_id,
                    targetHandle=input_name,
                    data={"inputName": input_name},
                )
            )
    return edges


def to_graph(model: PipelineModel, catalogue: Catalogue) -> VisualGraph:
    """Project a pipeline into nodes and edges."""
    return VisualGraph(nodes=to_nodes(model, catalogue), edges=to_edges(model, catalogue))
