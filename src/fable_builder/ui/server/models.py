"""Pydantic models for the builder server API."""

from pydantic import BaseModel

from fable_builder.engine import CompressionStats, PipelineModel


class ShareStats(BaseModel):
    """Token size statistics."""

    originalSize: int  # noqa: N815 - matches frontend naming
    compressedSize: int  # noqa: N815 - matches frontend naming
    ratio: float

    @classmethod
    def from_stats(cls, stats: CompressionStats) -> "ShareStats":
        """Convert codec statistics to the API shape."""
        return cls(
            originalSize=stats.original_size,
            compressedSize=stats.compressed_size,
            ratio=stats.ratio,
        )


class ShareResponse(BaseModel):
    """A shareable token for a pipeline."""

    token: str
    tooLarge: bool  # noqa: N815 - matches frontend naming
    stats: ShareStats


class RemoveBlockRequest(BaseModel):
    """Request to remove a block from a pipeline."""

    pipeline: PipelineModel
    cascade: bool = False  # Also remove everything downstream


class BuilderState(BaseModel):
    """Current server configuration."""

    cataloguePath: str | None = None  # noqa: N815 - matches frontend naming
    plugins: list[str]
    maxTokenLength: int  # noqa: N815 - matches frontend naming
