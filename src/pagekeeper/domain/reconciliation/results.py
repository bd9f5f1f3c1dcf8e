"""Summaries returned by the reconcilers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SourceReconcileResult:
    inserted: int = 0
    deleted: int = 0
    skipped: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.deleted)


@dataclass(slots=True)
class ImageReconcileResult:
    """``updated`` counts existing pages whose filename changed; ``removed_files``
    counts files deleted from disk for those pages."""

    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    removed_files: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.updated or self.deleted)


@dataclass(slots=True)
class TagReconcileResult:
    """``upserted_tags`` counts global tags sent to the conflict-resolving upsert.

    A tag created by a concurrent import between lookup and upsert is counted
    too, although its row already existed.
    """

    upserted_tags: int = 0
    inserted: int = 0
    deleted: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.upserted_tags or self.inserted or self.deleted)


@dataclass(slots=True)
class ArchiveReconcileResult:
    """Outcome of reconciling every supplied collection of one archive."""

    archive_id: int
    sources: SourceReconcileResult | None = None
    images: ImageReconcileResult | None = None
    tags: TagReconcileResult | None = None
