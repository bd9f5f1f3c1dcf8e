"""Domain model for archives and their reconciled metadata."""

from __future__ import annotations

from .archive import Archive
from .metadata import (
    DEFAULT_TAG_NAMESPACE,
    ArchiveMetadata,
    ArchiveTagLink,
    Image,
    Source,
    SourceKey,
    StoredTag,
    Tag,
    TagKey,
)

__all__ = [
    "DEFAULT_TAG_NAMESPACE",
    "Archive",
    "ArchiveMetadata",
    "ArchiveTagLink",
    "Image",
    "Source",
    "SourceKey",
    "StoredTag",
    "Tag",
    "TagKey",
]
