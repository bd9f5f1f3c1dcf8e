"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from pagekeeper.adapters.filesystem import LocalImageFileStore
from pagekeeper.adapters.metadata import load_metadata_file
from pagekeeper.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyArchiveUnitOfWork,
    is_started,
    startup,
)
from pagekeeper.config import get_settings
from pagekeeper.domain.archive_metadata import (
    ReconcileOptions,
    reconcile_archive_metadata,
    register_archive,
    run_for_archive,
)
from pagekeeper.domain.ports.unit_of_work import ArchiveUnitOfWork
from pagekeeper.domain.reconciliation import reconcile_images, reconcile_sources, reconcile_tags

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from pagekeeper.config import Settings
    from pagekeeper.domain.model import Archive, ArchiveMetadata, Image, Source, Tag
    from pagekeeper.domain.ports import ImageFileStore
    from pagekeeper.domain.reconciliation import (
        ArchiveReconcileResult,
        ImageReconcileResult,
        SourceReconcileResult,
        TagReconcileResult,
    )

UnitOfWorkFactory = Callable[[], ArchiveUnitOfWork]


log = getLogger(__name__)


def _resolve_factory(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyArchiveUnitOfWork


def _options(settings: Settings, *, verbose: bool, merge_sources: bool) -> ReconcileOptions:
    return ReconcileOptions(
        source_rules=settings.metadata.source_mapping,
        tag_rules=settings.metadata.tag_mapping,
        remove_on_update=settings.image.remove_on_update,
        merge_sources=merge_sources,
        verbose=verbose,
    )


def create_archive(
    *,
    archive_hash: str,
    title: str,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Archive:
    """Register a new archive so metadata can be reconciled against it."""

    return register_archive(
        unit_of_work_factory=_resolve_factory(unit_of_work_factory),
        archive_hash=archive_hash,
        title=title,
    )


def reconcile_metadata(  # noqa: PLR0913
    archive_id: int,
    metadata: ArchiveMetadata,
    *,
    settings: Settings | None = None,
    file_store: ImageFileStore | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    verbose: bool = False,
    merge_sources: bool = False,
) -> ArchiveReconcileResult:
    """Reconcile every collection present in ``metadata`` in one transaction."""

    factory = _resolve_factory(unit_of_work_factory)
    effective_settings = settings or get_settings()
    effective_store = file_store or LocalImageFileStore(effective_settings.directories.images)

    log.info(
        "Reconciling archive %s: sources=%s, images=%s, tags=%s",
        archive_id,
        _count(metadata.sources),
        _count(metadata.images),
        _count(metadata.tags),
    )
    result = reconcile_archive_metadata(
        unit_of_work_factory=factory,
        archive_id=archive_id,
        metadata=metadata,
        options=_options(effective_settings, verbose=verbose, merge_sources=merge_sources),
        file_store=effective_store,
    )
    log.info(
        "Finished archive %s: sources=%s, images=%s, tags=%s",
        archive_id,
        result.sources,
        result.images,
        result.tags,
    )
    return result


def _count(items: Sequence[object] | None) -> str:
    return "-" if items is None else str(len(items))


def sync_archive_sources(  # noqa: PLR0913
    archive_id: int,
    sources: Iterable[Source],
    *,
    settings: Settings | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    verbose: bool = False,
    merge: bool = False,
) -> SourceReconcileResult:
    """Reconcile only the archive's sources, in a transaction of their own."""

    factory = _resolve_factory(unit_of_work_factory)
    rules = (settings or get_settings()).metadata.source_mapping
    return run_for_archive(
        unit_of_work_factory=factory,
        archive_id=archive_id,
        operation=lambda repositories, _archive: reconcile_sources(
            repositories,
            archive_id,
            sources,
            rules=rules,
            merge=merge,
            verbose=verbose,
        ),
    )


def sync_archive_images(
    archive_id: int,
    images: Iterable[Image],
    *,
    settings: Settings | None = None,
    file_store: ImageFileStore | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ImageReconcileResult:
    """Reconcile only the archive's pages, in a transaction of their own.

    The archive's content hash is read from storage to scope file lookups.
    """

    factory = _resolve_factory(unit_of_work_factory)
    effective_settings = settings or get_settings()
    effective_store = file_store or LocalImageFileStore(effective_settings.directories.images)
    return run_for_archive(
        unit_of_work_factory=factory,
        archive_id=archive_id,
        operation=lambda repositories, archive: reconcile_images(
            repositories,
            archive_id,
            images,
            archive.hash,
            file_store=effective_store,
            remove_on_update=effective_settings.image.remove_on_update,
        ),
    )


def sync_archive_tags(
    archive_id: int,
    tags: Iterable[Tag],
    *,
    settings: Settings | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> TagReconcileResult:
    """Reconcile only the archive's tags, in a transaction of their own."""

    factory = _resolve_factory(unit_of_work_factory)
    rules = (settings or get_settings()).metadata.tag_mapping
    return run_for_archive(
        unit_of_work_factory=factory,
        archive_id=archive_id,
        operation=lambda repositories, _archive: reconcile_tags(
            repositories,
            archive_id,
            tags,
            rules=rules,
        ),
    )


def import_metadata_file(
    archive_id: int,
    path: Path,
    *,
    settings: Settings | None = None,
    verbose: bool = False,
    merge_sources: bool = False,
) -> ArchiveReconcileResult:
    """Parse a JSON metadata file and reconcile it into the archive."""

    metadata = load_metadata_file(path)
    return reconcile_metadata(
        archive_id,
        metadata,
        settings=settings,
        verbose=verbose,
        merge_sources=merge_sources,
    )
