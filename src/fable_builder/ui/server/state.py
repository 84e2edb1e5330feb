"""Global state management for the builder server."""

from pathlib import Path

from fable_builder.engine import MAX_SAFE_TOKEN_LENGTH, Catalogue

# Server configuration
catalogue_path: Path | None = None
catalogue: Catalogue = {}
max_token_length: int = MAX_SAFE_TOKEN_LENGTH


def configure(
    catalogue_data: Catalogue | None = None,
    path: Path | None = None,
    max_length: int | None = None,
) -> None:
    """Configure the server with the block catalogue and token limit."""
    global catalogue, catalogue_path, max_token_length
    catalogue = catalogue_data if catalogue_data is not None else {}
    catalogue_path = path
    max_token_length = max_length or MAX_SAFE_TOKEN_LENGTH
