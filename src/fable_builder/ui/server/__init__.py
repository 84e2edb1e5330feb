"""FastAPI server for the fable builder.

This package exposes the graph engine to the editing surface over HTTP.
The server is organized into:
- models.py: Pydantic models for API request/response
- state.py: Global state management (catalogue, token limit)
- endpoints.py: HTTP API endpoints
"""

from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fable_builder.engine import Catalogue

from . import state
from .endpoints import router

# Re-export models (used by tests and other modules)
from .models import BuilderState, RemoveBlockRequest, ShareResponse, ShareStats

# Create FastAPI app
app = FastAPI(title="Fable Builder")

# CORS for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include HTTP endpoints
app.include_router(router)


def configure(
    catalogue: Catalogue | None = None,
    catalogue_path: Path | None = None,
    max_token_length: int | None = None,
) -> None:
    """Configure the server with the block catalogue."""
    state.configure(catalogue_data=catalogue, path=catalogue_path, max_length=max_token_length)


__all__ = [
    # Main exports
    "app",
    "configure",
    # Models
    "BuilderState",
    "RemoveBlockRequest",
    "ShareResponse",
    "ShareStats",
]
