"""Ports for persisting archives and their reconciled metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from pagekeeper.domain.model import Archive, ArchiveTagLink, Image, Source, StoredTag, Tag


@runtime_checkable
class ArchiveRepository(Protocol):
    """Persistence contract for archive rows."""

    def add(self, archive: Archive) -> None: ...

    def get(self, archive_id: int) -> Archive | None: ...

    def get_by_hash(self, archive_hash: str) -> Archive | None: ...


@runtime_checkable
class ArchiveSourceRepository(Protocol):
    """Archive-local attribution rows. ``(name, url)`` identifies a row for diffing."""

    def list_for_archive(self, archive_id: int) -> list[Source]: ...

    def add(self, archive_id: int, source: Source) -> None: ...

    def delete(self, archive_id: int, source: Source) -> None: ...


@runtime_checkable
class ArchiveImageRepository(Protocol):
    """Page images, unique per ``(archive_id, page_number)``."""

    def list_for_archive(self, archive_id: int) -> list[Image]: ...

    def upsert_many(self, archive_id: int, images: Sequence[Image]) -> list[Image]:
        """Insert or update by page number and return the resulting rows."""
        ...

    def delete_pages(self, archive_id: int, page_numbers: Collection[int]) -> None: ...


@runtime_checkable
class TagRepository(Protocol):
    """The global, deduplicated tag table shared by every archive."""

    def find_by_keys(self, tags: Sequence[Tag]) -> list[StoredTag]: ...

    def upsert_many(self, tags: Sequence[Tag]) -> list[StoredTag]:
        """Insert tags, rewriting namespace/name on conflict, and return the rows."""
        ...


@runtime_checkable
class ArchiveTagRepository(Protocol):
    """Archive-to-tag association rows."""

    def list_for_archive(self, archive_id: int) -> list[ArchiveTagLink]: ...

    def delete(self, archive_id: int, tag_id: int) -> None: ...

    def add_many(self, archive_id: int, tag_ids: Sequence[int]) -> None: ...
