"""Generate a pre-wired pipeline showcasing every block of one plugin."""

from dataclasses import dataclass, field

from .catalogue import BLOCK_KIND_ORDER, BlockFactory, Catalogue, FactoryId, plugin_ref
from .model import (
    PipelineModel,
    connect_blocks,
    create_block_instance,
    create_empty_pipeline,
    next_block_id,
    with_block,
)


@dataclass
class GeneratedPipeline:
    """A generated pipeline and the ids its factories were instantiated under.

    ``block_mapping`` is keyed ``plugin:factory``; sinks generated once per
    product are keyed ``plugin:factory:index``.
    """

    model: PipelineModel
    block_mapping: dict[str, str] = field(default_factory=dict)


def _add_block(
    model: PipelineModel,
    factory_id: FactoryId,
    factory: BlockFactory,
    upstream_id: str | None,
) -> tuple[PipelineModel, str]:
    block_id = next_block_id(model, factory.kind)
    model = with_block(model, block_id, create_block_instance(factory_id, factory))
    if upstream_id is not None and factory.inputs:
        model = connect_blocks(model, block_id, factory.inputs[0], upstream_id)
    return model, block_id


def generate_plugin_pipeline(catalogue: Catalogue, plugin_key: str) -> GeneratedPipeline:
    """Instantiate every factory of a plugin and wire them in kind order.

    Algorithm:
    1. Group the plugin's factories by kind, alphabetically within each kind
    2. Sources, transforms and products each get one block; a block's first
       input is wired to the first block of the nearest earlier kind
    3. Every product gets its own sink (first sink factory); without products
       a single sink is wired to the first transform, or else the first source
    """
    plugin = catalogue.get(plugin_key)
    if plugin is None:
        return GeneratedPipeline(model=create_empty_pipeline())

    ref = plugin_ref(plugin_key)
    by_kind: dict[str, list[tuple[str, BlockFactory]]] = {kind: [] for kind in BLOCK_KIND_ORDER}
    for name, factory in sorted(plugin.factories.items()):
        if factory.kind in by_kind:
            by_kind[factory.kind].append((name, factory))

    model = create_empty_pipeline()
    block_mapping: dict[str, str] = {}
    first_of_kind: dict[str, str] = {}
    products: list[str] = []

    for kind in ("source", "transform", "product"):
        earlier = BLOCK_KIND_ORDER[: BLOCK_KIND_ORDER.index(kind)]
        for name, factory in by_kind[kind]:
            upstream = next(
                (first_of_kind[k] for k in reversed(earlier) if k in first_of_kind), None
            )
            factory_id = FactoryId(plugin=ref, factory=name)
            model, block_id = _add_block(model, factory_id, factory, upstream)
            block_mapping[f"{plugin_key}:{name}"] = block_id
            first_of_kind.setdefault(kind, block_id)
            if kind == "product":
                products.append(block_id)

    if by_kind["sink"]:
        sink_name, sink_factory = by_kind["sink"][0]
        if products:
            upstreams = products
        else:
            fallback = first_of_kind.get("transform") or first_of_kind.get("source")
            upstreams = [fallback] if fallback else []
        factory_id = FactoryId(plugin=ref, factory=sink_name)
        for index, upstream in enumerate(upstreams):
            model, block_id = _add_block(model, factory_id, sink_factory, upstream)
            key = f"{plugin_key}:{sink_name}"
            block_mapping[f"{key}:{index}" if len(upstreams) > 1 else key] = block_id

    return GeneratedPipeline(model=model, block_mapping=block_mapping)
