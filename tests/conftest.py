"""Shared fixtures for fable builder tests."""

import pytest

from fable_builder.engine import BlockInstance, Catalogue, FactoryId, PipelineModel
from fable_builder.engine.catalogue import catalogue_adapter

CATALOGUE_DATA = {
    "core": {
        "factories": {
            "model": {
                "kind": "source",
                "title": "Model Forecast",
                "configuration_options": {
                    "param1": {"title": "Param 1", "description": "", "value_type": "str"},
                },
                "inputs": [],
            },
            "regrid": {"kind": "transform", "title": "Regrid", "inputs": ["data"]},
            "mean": {"kind": "product", "title": "Mean", "inputs": ["dataset"]},
            "combine": {"kind": "product", "title": "Combine", "inputs": ["a", "b"]},
            "plot": {"kind": "sink", "title": "Plot", "inputs": ["data"]},
            "future": {"kind": "reducer", "title": "From The Future", "inputs": ["data"]},
        }
    },
    "ecmwf/base": {
        "factories": {
            "ekd": {"kind": "source", "title": "Earthkit Data", "inputs": []},
        }
    },
}


def fid(factory: str, plugin: str = "core") -> FactoryId:
    """Shorthand for a factory id in the test catalogue."""
    return FactoryId(plugin=plugin, factory=factory)


def block(factory: str, plugin: str = "core", **inputs: str | None) -> BlockInstance:
    """Shorthand for a block instance wired through keyword inputs."""
    return BlockInstance(
        factory_id=fid(factory, plugin),
        configuration_values={},
        input_ids=dict(inputs),
    )


@pytest.fixture
def sample_catalogue() -> Catalogue:
    """Catalogue with one factory of every kind plus an unknown kind."""
    return catalogue_adapter.validate_python(CATALOGUE_DATA)


@pytest.fixture
def chain_pipeline() -> PipelineModel:
    """Valid source -> product -> sink pipeline."""
    return PipelineModel(
        blocks={
            "src": block("model"),
            "avg": block("mean", dataset="src"),
            "out": block("plot", data="avg"),
        }
    )
