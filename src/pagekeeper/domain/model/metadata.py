"""Metadata records exchanged between payload adapters, reconcilers and repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

DEFAULT_TAG_NAMESPACE: Final[str] = "tag"

type SourceKey = tuple[str | None, str | None]
type TagKey = tuple[str, str]


@dataclass(frozen=True, slots=True)
class Source:
    """Attribution for an archive: where it was obtained from."""

    name: str | None = None
    url: str | None = None

    @property
    def key(self) -> SourceKey:
        return (self.name, self.url)


@dataclass(frozen=True, slots=True)
class Image:
    """One page of an archive.

    ``width`` and ``height`` are computed server-side and are usually absent on
    incoming metadata.
    """

    filename: str
    page_number: int
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True, slots=True)
class Tag:
    """A namespaced classification tag as supplied by metadata."""

    name: str
    namespace: str = DEFAULT_TAG_NAMESPACE

    @property
    def key(self) -> TagKey:
        return (self.namespace, self.name)

    @property
    def composite(self) -> str:
        return f"{self.namespace}:{self.name}"


@dataclass(frozen=True, slots=True)
class StoredTag:
    """A row of the global, deduplicated tag table."""

    id: int
    namespace: str
    name: str

    @property
    def key(self) -> TagKey:
        return (self.namespace, self.name)


@dataclass(frozen=True, slots=True)
class ArchiveTagLink:
    """An archive-to-tag association joined with its tag's namespace and name."""

    tag_id: int
    namespace: str
    name: str

    @property
    def key(self) -> TagKey:
        return (self.namespace, self.name)


@dataclass(slots=True)
class ArchiveMetadata:
    """Externally sourced metadata for one archive.

    A collection left as ``None`` is not reconciled at all; an empty collection
    means the archive now has none of them.
    """

    sources: list[Source] | None = None
    images: list[Image] | None = None
    tags: list[Tag] | None = None
