"""Loading catalogues, pipelines and builder settings from YAML files.

YAML is a superset of JSON, so the same loaders read catalogue dumps fetched
from the plugin backend as well as hand-written YAML files.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .catalogue import Catalogue, catalogue_adapter
from .codec import MAX_SAFE_TOKEN_LENGTH
from .model import PipelineModel


class ConfigError(ValueError):
    """A catalogue, pipeline or settings file could not be loaded."""


def _read_yaml(path: Path) -> Any:
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e.strerror}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def load_catalogue(path: Path) -> Catalogue:
    """Load a block factory catalogue.

    The document is either the catalogue itself (plugin key -> factories) or
    a mapping with a top-level ``catalogue`` key.
    """
    data = _read_yaml(path) or {}
    if isinstance(data, dict) and "catalogue" in data:
        data = data["catalogue"]
    try:
        return catalogue_adapter.validate_python(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid catalogue in {path}: {e}") from e


def load_pipeline(path: Path) -> PipelineModel:
    """Load a pipeline definition (a mapping with a ``blocks`` key)."""
    data = _read_yaml(path)
    try:
        return PipelineModel.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid pipeline in {path}: {e}") from e


@dataclass
class BuilderSettings:
    """Settings shared by the CLI and the editor server."""

    catalogue_path: Path | None = None
    max_token_length: int = MAX_SAFE_TOKEN_LENGTH

    @classmethod
    def from_yaml(cls, path: Path) -> "BuilderSettings":
        """Load settings from YAML.

        A relative ``catalogue`` path is resolved against the directory
        containing the settings file.
        """
        data = _read_yaml(path) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Settings in {path} must be a mapping")

        catalogue_path: Path | None = None
        if data.get("catalogue"):
            catalogue_path = Path(data["catalogue"])
            if not catalogue_path.is_absolute():
                catalogue_path = path.parent / catalogue_path

        max_token_length = data.get("max_token_length", MAX_SAFE_TOKEN_LENGTH)
        if (
            not isinstance(max_token_length, int)
            or isinstance(max_token_length, bool)
            or max_token_length <= 0
        ):
            raise ConfigError(f"'max_token_length' in {path} must be a positive integer")

        return cls(catalogue_path=catalogue_path, max_token_length=max_token_length)
