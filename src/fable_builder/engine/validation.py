"""Structural validation of a pipeline against the block catalogue.

``validate`` accepts any pipeline, including ones that are half-edited:
unknown factories, unconnected or dangling inputs and even dependency cycles
all come back as findings in the report. It never raises.

Checks:
1. Every block's factory exists in the catalogue
2. Every declared input slot is connected to a block that exists
3. Every connected producer is of a kind the consumer accepts
4. No block is part of a dependency cycle
5. The pipeline has a source, and something downstream of it
"""

import logging

from pydantic import BaseModel

from .catalogue import (
    BLOCK_KIND_ORDER,
    BlockFactory,
    Catalogue,
    FactoryId,
    NotFound,
    Resolved,
    can_feed,
    factory_id_to_key,
    flatten_catalogue,
    resolve,
)
from .model import PipelineModel, is_connected

logger = logging.getLogger(__name__)

NO_SOURCE_ERROR = "Pipeline needs at least one source block"
NO_OUTPUT_ERROR = "Pipeline has no product or sink connected to a source"
CYCLE_ERROR = "Block is part of a dependency cycle"

# Kinds that count as a pipeline result
_OUTPUT_KINDS = frozenset({"product", "sink"})


class BlockValidationState(BaseModel):
    """Validation outcome for one block."""

    hasErrors: bool  # noqa: N815 - matches frontend naming
    errors: list[str] = []
    possibleExpansions: list[FactoryId] = []  # noqa: N815 - matches frontend naming


class ValidationReport(BaseModel):
    """Validation outcome for a whole pipeline."""

    isValid: bool  # noqa: N815 - matches frontend naming
    globalErrors: list[str] = []  # noqa: N815 - matches frontend naming
    possibleSources: list[FactoryId] = []  # noqa: N815 - matches frontend naming
    blockStates: dict[str, BlockValidationState] = {}  # noqa: N815 - matches frontend naming


def _declared_producers(
    model: PipelineModel, factories: dict[str, BlockFactory]
) -> dict[str, set[str]]:
    """Map each block to the existing producers wired into its declared slots.

    Input keys the factory does not declare are stale and ignored; blocks
    whose factory is unknown contribute no edges.
    """
    producers: dict[str, set[str]] = {}
    for block_id, block in model.blocks.items():
        factory = factories.get(block_id)
        slots = factory.inputs if factory is not None else []
        producers[block_id] = {
            source
            for source in (block.input_ids.get(slot) for slot in slots)
            if is_connected(source) and source in model.blocks
        }
    return producers


def _blocks_on_cycles(producers: dict[str, set[str]]) -> set[str]:
    """Return ids of every block that lies on a dependency cycle.

    Kahn's algorithm: whatever cannot be peeled off in topological order is on
    a cycle or downstream of one; a block only downstream of a cycle is not
    reported, so the leftovers are trimmed to blocks that can reach themselves.
    """
    remaining = {block_id: set(sources) for block_id, sources in producers.items()}
    ready = [block_id for block_id, sources in remaining.items() if not sources]
    while ready:
        done = ready.pop()
        del remaining[done]
        for block_id, sources in remaining.items():
            if done in sources:
                sources.discard(done)
                if not sources:
                    ready.append(block_id)

    on_cycle: set[str] = set()
    for start in remaining:
        stack = list(producers[start])
        seen: set[str] = set()
        while stack:
            current = stack.pop()
            if current == start:
                on_cycle.add(start)
                break
            if current in seen or current not in remaining:
                continue
            seen.add(current)
            stack.extend(producers[current])
    return on_cycle


def _reaches_output(producers: dict[str, set[str]], kinds: dict[str, str]) -> bool:
    """Check whether any product or sink is reachable downstream of a source."""
    consumers: dict[str, list[str]] = {block_id: [] for block_id in producers}
    for block_id, sources in producers.items():
        for source in sources:
            consumers[source].append(block_id)

    stack = [block_id for block_id, kind in kinds.items() if kind == "source"]
    seen = set(stack)
    while stack:
        current = stack.pop()
        for consumer in consumers[current]:
            if kinds.get(consumer) in _OUTPUT_KINDS:
                return True
            if consumer not in seen:
                seen.add(consumer)
                stack.append(consumer)
    return False


def _is_kind_mismatch(upstream_kind: str | None, downstream_kind: str) -> bool:
    """Only two known kinds can clash; kinds from newer backends are tolerated."""
    if upstream_kind not in BLOCK_KIND_ORDER or downstream_kind not in BLOCK_KIND_ORDER:
        return False
    return not can_feed(upstream_kind, downstream_kind)


def validate(model: PipelineModel, catalogue: Catalogue) -> ValidationReport:
    """Validate a pipeline and compute the possible expansions of every block."""
    entries = flatten_catalogue(catalogue)
    possible_sources = [entry.factory_id for entry in entries if entry.factory.kind == "source"]

    factories: dict[str, BlockFactory] = {}
    for block_id, block in model.blocks.items():
        result = resolve(catalogue, block.factory_id)
        if isinstance(result, Resolved):
            factories[block_id] = result.factory
    kinds = {block_id: factory.kind for block_id, factory in factories.items()}

    producers = _declared_producers(model, factories)
    on_cycle = _blocks_on_cycles(producers)
    block_states: dict[str, BlockValidationState] = {}

    for block_id, block in model.blocks.items():
        errors: list[str] = []
        result = resolve(catalogue, block.factory_id)
        if isinstance(result, NotFound):
            errors.append(f"Unknown block type '{factory_id_to_key(block.factory_id)}'")
            block_states[block_id] = BlockValidationState(hasErrors=True, errors=errors)
            continue

        factory = result.factory
        for slot in factory.inputs:
            source = block.input_ids.get(slot)
            if not is_connected(source):
                errors.append(f"Input '{slot}' is not connected")
            elif source not in model.blocks:
                errors.append(f"Input '{slot}' references missing block '{source}'")
            elif _is_kind_mismatch(kinds.get(source), factory.kind):
                errors.append(
                    f"Input '{slot}' cannot take output of {kinds[source]} block '{source}'"
                )
        if block_id in on_cycle:
            errors.append(CYCLE_ERROR)

        expansions = [
            entry.factory_id
            for entry in entries
            if entry.factory.inputs and can_feed(factory.kind, entry.factory.kind)
        ]
        block_states[block_id] = BlockValidationState(
            hasErrors=bool(errors), errors=errors, possibleExpansions=expansions
        )

    global_errors: list[str] = []
    if "source" not in kinds.values():
        global_errors.append(NO_SOURCE_ERROR)
    elif not _reaches_output(producers, kinds):
        global_errors.append(NO_OUTPUT_ERROR)

    is_valid = not global_errors and not any(state.hasErrors for state in block_states.values())
    logger.debug(
        "Validated %d blocks: valid=%s, %d global errors",
        len(model.blocks),
        is_valid,
        len(global_errors),
    )
    return ValidationReport(
        isValid=is_valid,
        globalErrors=global_errors,
        possibleSources=possible_sources,
        blockStates=block_states,
    )
