"""Archive metadata payload adapter."""

from __future__ import annotations

from .schema import (
    ArchiveMetadataPayload,
    MetadataImage,
    MetadataSource,
    MetadataTag,
)
from .translator import (
    MetadataPayloadError,
    load_metadata_file,
    parse_metadata_payload,
    translate_metadata,
)

__all__ = [
    "ArchiveMetadataPayload",
    "MetadataImage",
    "MetadataPayloadError",
    "MetadataSource",
    "MetadataTag",
    "load_metadata_file",
    "parse_metadata_payload",
    "translate_metadata",
]
