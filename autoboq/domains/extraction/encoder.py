"""
Artifact Encoder - Turns source drawings into inline base64 artifacts.

Local I/O only. No retries: a failure here aborts the run before any
model call is made.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Sequence

from autoboq.adapters.gemini.models import InlineArtifact
from autoboq.config.errors import EncodingError

from .models import SourceFile

logger = logging.getLogger(__name__)

__all__ = ["encode_artifact", "encode_sources"]


def encode_artifact(source: SourceFile) -> InlineArtifact:
    """
    Read a source file to completion and base64-encode it.

    Raises:
        EncodingError: The file could not be read
    """
    if source.content is not None:
        data = source.content
    else:
        try:
            data = source.path.read_bytes()  # type: ignore[union-attr]
        except OSError as e:
            raise EncodingError(
                f"Could not read {source.name}: {e}",
                {"path": str(source.path)},
            ) from e

    return InlineArtifact(
        payload=base64.b64encode(data).decode("ascii"),
        media_type=source.media_type,
        name=source.name,
    )


def encode_sources(sources: Sequence[SourceFile]) -> list[InlineArtifact]:
    """Encode all sources, preserving order."""
    artifacts = [encode_artifact(source) for source in sources]
    logger.info(
        "Encoded %d artifact(s), %d base64 chars",
        len(artifacts),
        sum(len(a.payload) for a in artifacts),
    )
    return artifacts
