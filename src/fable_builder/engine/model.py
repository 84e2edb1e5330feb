"""Pipeline ("fable") model and the helpers the editing surface mutates it with.

Every helper returns a new ``PipelineModel`` and leaves its argument alone, so
a store holding the model can detect changes by identity. None of them raise:
operating on an id that is not in the pipeline is a no-op.
"""

from collections import deque
from collections.abc import Mapping

from pydantic import BaseModel, JsonValue

from .catalogue import BlockFactory, Catalogue, FactoryId, Resolved, resolve


class BlockInstance(BaseModel):
    """One block of a pipeline."""

    model_config = {"extra": "forbid"}

    factory_id: FactoryId
    configuration_values: dict[str, JsonValue]
    input_ids: dict[str, str | None]  # slot name -> producer block id (None/"" = unconnected)


def is_connected(source: str | None) -> bool:
    """Check whether an input slot value names a producer (None and "" do not)."""
    return bool(source)


class PipelineModel(BaseModel):
    """A full pipeline: block id -> block instance."""

    model_config = {"extra": "forbid"}

    blocks: dict[str, BlockInstance]


def create_empty_pipeline() -> PipelineModel:
    """Create a pipeline with no blocks."""
    return PipelineModel(blocks={})


def create_block_instance(factory_id: FactoryId, factory: BlockFactory) -> BlockInstance:
    """Create a fresh, unconnected instance of a factory with blank configuration."""
    return BlockInstance(
        factory_id=factory_id,
        configuration_values={key: "" for key in factory.configuration_options},
        input_ids={name: None for name in factory.inputs},
    )


def next_block_id(model: PipelineModel, prefix: str = "block") -> str:
    """Return the first ``{prefix}_{n}`` id not used in the pipeline."""
    n = 1
    while f"{prefix}_{n}" in model.blocks:
        n += 1
    return f"{prefix}_{n}"


def _replace_blocks(model: PipelineModel, blocks: dict[str, BlockInstance]) -> PipelineModel:
    return model.model_copy(update={"blocks": blocks})


def _scrub_inputs(block: BlockInstance, removed: set[str]) -> BlockInstance:
    """Unset every input of ``block`` whose producer is in ``removed``."""
    if not any(source in removed for source in block.input_ids.values()):
        return block
    input_ids = {
        name: (None if source in removed else source) for name, source in block.input_ids.items()
    }
    return block.model_copy(update={"input_ids": input_ids})


def with_block(model: PipelineModel, block_id: str, instance: BlockInstance) -> PipelineModel:
    """Insert or replace a block."""
    blocks = dict(model.blocks)
    blocks[block_id] = instance
    return _replace_blocks(model, blocks)


def without_block(model: PipelineModel, block_id: str) -> PipelineModel:
    """Remove a block and unset every input that pointed at it."""
    if block_id not in model.blocks:
        return model
    removed = {block_id}
    blocks = {
        other_id: _scrub_inputs(block, removed)
        for other_id, block in model.blocks.items()
        if other_id != block_id
    }
    return _replace_blocks(model, blocks)


def downstream_blocks(model: PipelineModel, block_id: str) -> list[str]:
    """Return every block that transitively consumes ``block_id``, breadth first.

    The start block itself is never part of the result, even on a cycle.
    """
    found: list[str] = []
    seen = {block_id}
    queue = deque([block_id])
    while queue:
        current = queue.popleft()
        for other_id, block in model.blocks.items():
            if other_id in seen:
                continue
            if current in block.input_ids.values():
                seen.add(other_id)
                found.append(other_id)
                queue.append(other_id)
    return found


def without_block_cascade(model: PipelineModel, block_id: str) -> PipelineModel:
    """Remove a block together with everything downstream of it."""
    if block_id not in model.blocks:
        return model
    removed = {block_id, *downstream_blocks(model, block_id)}
    blocks = {
        other_id: _scrub_inputs(block, removed)
        for other_id, block in model.blocks.items()
        if other_id not in removed
    }
    return _replace_blocks(model, blocks)


def connect_blocks(
    model: PipelineModel, target_id: str, input_name: str, source_id: str
) -> PipelineModel:
    """Wire ``source_id``'s output into ``target_id``'s ``input_name`` slot."""
    block = model.blocks.get(target_id)
    if block is None:
        return model
    input_ids = {**block.input_ids, input_name: source_id}
    return with_block(model, target_id, block.model_copy(update={"input_ids": input_ids}))


def disconnect_block(model: PipelineModel, target_id: str, input_name: str) -> PipelineModel:
    """Unset one input slot of a block."""
    block = model.blocks.get(target_id)
    if block is None or input_name not in block.input_ids:
        return model
    input_ids = {**block.input_ids, input_name: None}
    return with_block(model, target_id, block.model_copy(update={"input_ids": input_ids}))


def update_block_config(
    model: PipelineModel, block_id: str, values: Mapping[str, JsonValue]
) -> PipelineModel:
    """Merge configuration values into a block."""
    block = model.blocks.get(block_id)
    if block is None:
        return model
    configuration_values = {**block.configuration_values, **values}
    return with_block(
        model, block_id, block.model_copy(update={"configuration_values": configuration_values})
    )


def _copy_block(block: BlockInstance, id_mapping: Mapping[str, str]) -> BlockInstance:
    return BlockInstance(
        factory_id=block.factory_id,
        configuration_values=dict(block.configuration_values),
        input_ids={
            name: id_mapping.get(source, source) if is_connected(source) else source
            for name, source in block.input_ids.items()
        },
    )


def duplicate_block(model: PipelineModel, block_id: str) -> tuple[PipelineModel, str | None]:
    """Copy a single block, keeping its inputs wired to the same producers.

    Returns the new pipeline and the id of the copy (None if ``block_id`` is unknown).
    """
    block = model.blocks.get(block_id)
    if block is None:
        return model, None
    new_id = next_block_id(model)
    return with_block(model, new_id, _copy_block(block, {})), new_id


def duplicate_block_with_children(
    model: PipelineModel, block_id: str
) -> tuple[PipelineModel, dict[str, str]]:
    """Copy a block and its whole downstream subgraph.

    Inputs of the copies are re-pointed at the copied producers; inputs fed
    from outside the subgraph keep their original producer. Returns the new
    pipeline and the old id -> new id mapping.
    """
    if block_id not in model.blocks:
        return model, {}
    to_copy = [block_id, *downstream_blocks(model, block_id)]
    id_mapping: dict[str, str] = {}
    result = model
    for old_id in to_copy:
        new_id = next_block_id(result)
        id_mapping[old_id] = new_id
        # Reserve the id so the next call to next_block_id skips it
        result = with_block(result, new_id, model.blocks[old_id])
    blocks = dict(result.blocks)
    for old_id, new_id in id_mapping.items():
        blocks[new_id] = _copy_block(model.blocks[old_id], id_mapping)
    return _replace_blocks(result, blocks), id_mapping


def blocks_by_kind(
    model: PipelineModel, catalogue: Catalogue, kind: str
) -> list[tuple[str, BlockInstance]]:
    """Return the blocks whose resolved factory is of ``kind``, in pipeline order."""
    matches: list[tuple[str, BlockInstance]] = []
    for block_id, block in model.blocks.items():
        result = resolve(catalogue, block.factory_id)
        if isinstance(result, Resolved) and result.factory.kind == kind:
            matches.append((block_id, block))
    return matches
