"""Compact, URL-safe tokens for sharing a pipeline in a link.

A token is the pipeline's canonical JSON, deflated with zlib and encoded as
unpadded base64url, so it only ever contains ``A-Z a-z 0-9 - _`` and can be
placed in a query string verbatim. Encoding is deterministic: the same
pipeline always yields the same token.
"""

import base64
import json
import logging
import zlib
from dataclasses import dataclass

from pydantic import ValidationError

from .model import PipelineModel

logger = logging.getLogger(__name__)

# Tokens longer than this may be cut by browsers, proxies or chat clients
# when embedded in a link. Advisory only: longer tokens still encode/decode.
# zlib packs repetitive pipelines tighter than lz-string, so a pipeline
# reaches this limit later than it would with lz-string tokens.
MAX_SAFE_TOKEN_LENGTH = 1800

# Upper bound on the inflated payload, guards against decompression bombs
MAX_DECODED_SIZE = 1024 * 1024

COMPRESSION_LEVEL = 9


@dataclass
class CompressionStats:
    """Size of a pipeline before and after encoding."""

    original_size: int
    compressed_size: int
    ratio: float


def canonical_json(model: PipelineModel) -> str:
    """Render a pipeline as compact JSON, keeping block order."""
    return json.dumps(
        model.model_dump(mode="json"),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def encode(model: PipelineModel) -> str:
    """Encode a pipeline into a URL-safe token."""
    compressed = zlib.compress(canonical_json(model).encode("utf-8"), COMPRESSION_LEVEL)
    return base64.urlsafe_b64encode(compressed).decode("ascii").rstrip("=")


def _inflate(token: str) -> bytes | None:
    """Undo the base64url + zlib layers, or None if the token is damaged."""
    padded = token + "=" * (-len(token) % 4)
    compressed = base64.urlsafe_b64decode(padded.encode("ascii"))
    inflater = zlib.decompressobj()
    data = inflater.decompress(compressed, MAX_DECODED_SIZE)
    if inflater.unconsumed_tail:
        logger.warning("Pipeline token expands beyond %d bytes", MAX_DECODED_SIZE)
        return None
    if not inflater.eof:
        logger.warning("Pipeline token is truncated")
        return None
    if inflater.unused_data:
        logger.warning("Pipeline token has trailing data")
        return None
    return data


def decode(token: str) -> PipelineModel | None:
    """Decode a token back into a pipeline.

    Returns None for anything that is not a complete, well-formed pipeline
    token: empty or truncated tokens, foreign strings, and payloads that are
    valid JSON but not a pipeline.
    """
    if not token:
        return None
    try:
        data = _inflate(token)
        if data is None:
            return None
        return PipelineModel.model_validate(json.loads(data.decode("utf-8")))
    except (ValueError, zlib.error, RecursionError) as e:
        # binascii, JSON, unicode and pydantic validation errors are all ValueErrors
        reason = "does not describe a pipeline" if isinstance(e, ValidationError) else str(e)
        logger.warning("Failed to decode pipeline token: %s", reason)
        return None


def is_too_large(token: str, limit: int = MAX_SAFE_TOKEN_LENGTH) -> bool:
    """Check whether a token is too long to share safely in a URL."""
    return len(token) > limit


def compression_stats(model: PipelineModel) -> CompressionStats:
    """Compare the canonical JSON size of a pipeline with its token length.

    ``original_size`` is the UTF-8 byte length of the canonical JSON and
    ``compressed_size`` the token length in characters (one byte each, as
    tokens are ASCII).
    """
    original_size = len(canonical_json(model).encode("utf-8"))
    compressed_size = len(encode(model))
    return CompressionStats(
        original_size=original_size,
        compressed_size=compressed_size,
        ratio=compressed_size / original_size,
    )
