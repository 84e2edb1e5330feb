"""Block factory catalogue: ids, factory descriptors and factory resolution.

The catalogue is supplied by the plugin-listing backend and is read-only here.
It maps a plugin key to the factories that plugin contributes::

    {
      "ecmwf/ecmwf-base": {
        "factories": {
          "ekdSource": {"kind": "source", "title": "...", "inputs": []},
          "meanProduct": {"kind": "product", "title": "...", "inputs": ["dataset"]}
        }
      }
    }

Block instances reference a factory by ``FactoryId``. Looking a factory up
never raises: ``resolve`` returns either ``Resolved`` or ``NotFound`` and the
caller decides what a missing factory means (the graph projector skips the
block, the validator reports it).
"""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, TypeAdapter

# Known block kinds, in pipeline order
BLOCK_KIND_ORDER: tuple[str, ...] = ("source", "transform", "product", "sink")

# Which kinds may consume the output of a given kind
_CONSUMERS: dict[str, frozenset[str]] = {
    "source": frozenset({"transform", "product", "sink"}),
    "transform": frozenset({"transform", "product", "sink"}),
    "product": frozenset({"transform", "product", "sink"}),
    "sink": frozenset(),
}


class PluginId(BaseModel):
    """Composite plugin id as returned by the plugin store."""

    model_config = {"frozen": True, "extra": "forbid"}

    store: str
    local: str

    def __str__(self) -> str:
        return f"{self.store}/{self.local}"


class FactoryId(BaseModel):
    """Reference to a block factory: plugin qualifier plus local factory name."""

    model_config = {"frozen": True, "extra": "forbid"}

    plugin: str | PluginId
    factory: str

    @property
    def plugin_key(self) -> str:
        """Key of the owning plugin in the catalogue."""
        return str(self.plugin)


class BlockConfigurationOption(BaseModel):
    """A single configuration option declared by a factory."""

    title: str = ""
    description: str = ""
    value_type: str = "str"


class BlockFactory(BaseModel):
    """Template for a kind of block.

    ``kind`` is one of ``BLOCK_KIND_ORDER`` for every factory the backend ships
    today; other strings are accepted so that newer backends do not break
    older editors.
    """

    kind: str
    title: str = ""
    description: str = ""
    configuration_options: dict[str, BlockConfigurationOption] = {}
    inputs: list[str] = []


class PluginCatalogue(BaseModel):
    """Factories contributed by one plugin."""

    factories: dict[str, BlockFactory] = {}


Catalogue = dict[str, PluginCatalogue]

catalogue_adapter: TypeAdapter[Catalogue] = TypeAdapter(Catalogue)


@dataclass(frozen=True)
class Resolved:
    """Factory lookup succeeded."""

    factory_id: FactoryId
    factory: BlockFactory


@dataclass(frozen=True)
class NotFound:
    """Factory lookup failed; ``missing`` says which half of the id was unknown."""

    factory_id: FactoryId
    missing: Literal["plugin", "factory"]


Resolution = Resolved | NotFound


@dataclass(frozen=True)
class CatalogueEntry:
    """A factory together with the id that addresses it."""

    factory_id: FactoryId
    factory: BlockFactory


def resolve(catalogue: Catalogue, factory_id: FactoryId) -> Resolution:
    """Look up the factory a block instance refers to."""
    plugin = catalogue.get(factory_id.plugin_key)
    if plugin is None:
        return NotFound(factory_id, "plugin")
    factory = plugin.factories.get(factory_id.factory)
    if factory is None:
        return NotFound(factory_id, "factory")
    return Resolved(factory_id, factory)


def get_factory(catalogue: Catalogue, factory_id: FactoryId) -> BlockFactory | None:
    """Return the factory for an id, or None when it is not in the catalogue."""
    result = resolve(catalogue, factory_id)
    if isinstance(result, NotFound):
        return None
    return result.factory


def factory_id_to_key(factory_id: FactoryId) -> str:
    """Flatten a factory id into a ``plugin:factory`` string key."""
    return f"{factory_id.plugin_key}:{factory_id.factory}"


def key_to_factory_id(key: str) -> FactoryId:
    """Parse a ``plugin:factory`` key back into a factory id.

    A plugin part of the form ``store/local`` becomes a ``PluginId``.
    """
    plugin, _, factory = key.rpartition(":")
    return FactoryId(plugin=plugin_ref(plugin), factory=factory)


def plugin_ref(plugin_key: str) -> str | PluginId:
    """Turn a catalogue key into the plugin part of a factory id."""
    if "/" in plugin_key:
        store, _, local = plugin_key.partition("/")
        return PluginId(store=store, local=local)
    return plugin_key


def flatten_catalogue(catalogue: Catalogue) -> list[CatalogueEntry]:
    """List every factory in the catalogue, in catalogue order."""
    entries: list[CatalogueEntry] = []
    for plugin_key, plugin in catalogue.items():
        ref = plugin_ref(plugin_key)
        for factory_name, factory in plugin.factories.items():
            entries.append(
                CatalogueEntry(FactoryId(plugin=ref, factory=factory_name), factory)
            )
    return entries


def group_catalogue_by_kind(catalogue: Catalogue) -> dict[str, list[CatalogueEntry]]:
    """Group catalogue entries by kind.

    Every known kind is present (possibly empty); unknown kinds get their own
    group after the known ones.
    """
    groups: dict[str, list[CatalogueEntry]] = {kind: [] for kind in BLOCK_KIND_ORDER}
    for entry in flatten_catalogue(catalogue):
        groups.setdefault(entry.factory.kind, []).append(entry)
    return groups


def can_feed(upstream_kind: str, downstream_kind: str) -> bool:
    """Check whether a block of ``downstream_kind`` may consume ``upstream_kind`` output."""
    return downstream_kind in _CONSUMERS.get(upstream_kind, frozenset())
