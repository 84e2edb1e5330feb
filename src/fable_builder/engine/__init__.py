"""Pipeline builder graph engine."""

from .catalogue import (
    BLOCK_KIND_ORDER,
    BlockConfigurationOption,
    BlockFactory,
    Catalogue,
    CatalogueEntry,
    FactoryId,
    NotFound,
    PluginCatalogue,
    PluginId,
    Resolution,
    Resolved,
    can_feed,
    factory_id_to_key,
    flatten_catalogue,
    get_factory,
    group_catalogue_by_kind,
    key_to_factory_id,
    resolve,
)
from .codec import (
    MAX_SAFE_TOKEN_LENGTH,
    CompressionStats,
    canonical_json,
    compression_stats,
    decode,
    encode,
    is_too_large,
)
from .config import BuilderSettings, ConfigError, load_catalogue, load_pipeline
from .generator import GeneratedPipeline, generate_plugin_pipeline
from .graph import (
    VisualEdge,
    VisualGraph,
    VisualNode,
    node_type_for_kind,
    to_edges,
    to_graph,
    to_nodes,
)
from .model import (
    BlockInstance,
    PipelineModel,
    blocks_by_kind,
    connect_blocks,
    create_block_instance,
    create_empty_pipeline,
    disconnect_block,
    downstream_blocks,
    duplicate_block,
    duplicate_block_with_children,
    is_connected,
    next_block_id,
    update_block_config,
    with_block,
    without_block,
    without_block_cascade,
)
from .validation import BlockValidationState, ValidationReport, validate

__all__ = [
    # Catalogue
    "BLOCK_KIND_ORDER",
    "BlockConfigurationOption",
    "BlockFactory",
    "Catalogue",
    "CatalogueEntry",
    "FactoryId",
    "NotFound",
    "PluginCatalogue",
    "PluginId",
    "Resolution",
    "Resolved",
    "can_feed",
    "factory_id_to_key",
    "flatten_catalogue",
    "get_factory",
    "group_catalogue_by_kind",
    "key_to_factory_id",
    "resolve",
    # Model
    "BlockInstance",
    "PipelineModel",
    "blocks_by_kind",
    "connect_blocks",
    "create_block_instance",
    "create_empty_pipeline",
    "disconnect_block",
    "downstream_blocks",
    "duplicate_block",
    "duplicate_block_with_children",
    "is_connected",
    "next_block_id",
    "update_block_config",
    "with_block",
    "without_block",
    "without_block_cascade",
    # Graph
    "VisualEdge",
    "VisualGraph",
    "VisualNode",
    "node_type_for_kind",
    "to_edges",
    "to_graph",
    "to_nodes",
    # Validation
    "BlockValidationState",
    "ValidationReport",
    "validate",
    # Codec
    "MAX_SAFE_TOKEN_LENGTH",
    "CompressionStats",
    "canonical_json",
    "compression_stats",
    "decode",
    "encode",
    "is_too_large",
    # Generator
    "GeneratedPipeline",
    "generate_plugin_pipeline",
    # Config
    "BuilderSettings",
    "ConfigError",
    "load_catalogue",
    "load_pipeline",
]
