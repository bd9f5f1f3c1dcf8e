"""Application services for applying archive metadata inside one transaction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pagekeeper.domain.model import Archive
from pagekeeper.domain.reconciliation import (
    ArchiveReconcileResult,
    reconcile_images,
    reconcile_sources,
    reconcile_tags,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from pagekeeper.domain.mapping import SourceMappingRule, TagMappingRule
    from pagekeeper.domain.model import ArchiveMetadata
    from pagekeeper.domain.ports import ArchiveRepositories, ArchiveUnitOfWork, ImageFileStore

log = logging.getLogger(__name__)


class ArchiveNotFoundError(LookupError):
    """Raised when metadata is applied to an archive id that does not exist."""

    def __init__(self, archive_id: int) -> None:
        super().__init__(f"Archive {archive_id} does not exist")
        self.archive_id = archive_id


class DuplicateArchiveError(ValueError):
    """Raised when registering an archive whose content hash is already stored."""


@dataclass(frozen=True, slots=True)
class ReconcileOptions:
    """Rules and policies applied while reconciling one archive."""

    source_rules: tuple[SourceMappingRule, ...] = ()
    tag_rules: tuple[TagMappingRule, ...] = ()
    remove_on_update: bool = False
    merge_sources: bool = False
    verbose: bool = False


def register_archive(
    *,
    unit_of_work_factory: Callable[[], ArchiveUnitOfWork],
    archive_hash: str,
    title: str,
) -> Archive:
    """Create the archive row that metadata is reconciled against."""

    with unit_of_work_factory() as uow:
        archives = uow.repositories.archives
        if archives.get_by_hash(archive_hash) is not None:
            raise DuplicateArchiveError(f"An archive with hash {archive_hash} already exists")
        archive = Archive(hash=archive_hash, title=title)
        archives.add(archive)
        uow.commit()
    log.info("Registered archive %s (%s)", archive.id, archive_hash)
    return archive


def apply_archive_metadata(
    repositories: ArchiveRepositories,
    archive: Archive,
    metadata: ArchiveMetadata,
    *,
    options: ReconcileOptions,
    file_store: ImageFileStore | None = None,
) -> ArchiveReconcileResult:
    """Run every reconciler for the collections present in ``metadata``.

    Image files are touched last so that a failing source or tag pass leaves
    the disk as it was.
    """

    archive_id = archive.resolved_id
    result = ArchiveReconcileResult(archive_id=archive_id)

    if metadata.sources is not None:
        result.sources = reconcile_sources(
            repositories,
            archive_id,
            metadata.sources,
            rules=options.source_rules,
            merge=options.merge_sources,
            verbose=options.verbose,
        )

    if metadata.tags is not None:
        result.tags = reconcile_tags(
            repositories,
            archive_id,
            metadata.tags,
            rules=options.tag_rules,
        )

    if metadata.images is not None:
        result.images = reconcile_images(
            repositories,
            archive_id,
            metadata.images,
            archive.hash,
            file_store=file_store,
            remove_on_update=options.remove_on_update,
        )

    return result


def run_for_archive[TResult](
    *,
    unit_of_work_factory: Callable[[], ArchiveUnitOfWork],
    archive_id: int,
    operation: Callable[[ArchiveRepositories, Archive], TResult],
) -> TResult:
    """Run ``operation`` against an existing archive in one unit of work and commit."""

    with unit_of_work_factory() as uow:
        archive = uow.repositories.archives.get(archive_id)
        if archive is None:
            raise ArchiveNotFoundError(archive_id)
        result = operation(uow.repositories, archive)
        uow.commit()
    return result


def reconcile_archive_metadata(
    *,
    unit_of_work_factory: Callable[[], ArchiveUnitOfWork],
    archive_id: int,
    metadata: ArchiveMetadata,
    options: ReconcileOptions | None = None,
    file_store: ImageFileStore | None = None,
) -> ArchiveReconcileResult:
    """Apply ``metadata`` to one archive atomically.

    Nothing is committed unless every reconciler succeeds; store errors
    propagate after the unit of work has rolled back.
    """

    effective_options = options or ReconcileOptions()
    return run_for_archive(
        unit_of_work_factory=unit_of_work_factory,
        archive_id=archive_id,
        operation=lambda repositories, archive: apply_archive_metadata(
            repositories,
            archive,
            metadata,
            options=effective_options,
            file_store=file_store,
        ),
    )
