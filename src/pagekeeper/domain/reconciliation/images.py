"""Reconcile an archive's ordered page images against storage.

Page number is the identity of an image row. A page whose filename changes is
updated in place so that server-computed dimensions survive; only pages that
disappear from the incoming list are deleted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .results import ImageReconcileResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pagekeeper.domain.model import Image
    from pagekeeper.domain.ports import ArchiveRepositories, ImageFileStore

log = logging.getLogger(__name__)


def reconcile_images(  # noqa: PLR0913
    repositories: ArchiveRepositories,
    archive_id: int,
    incoming: Iterable[Image],
    archive_hash: str,
    *,
    file_store: ImageFileStore | None = None,
    remove_on_update: bool = False,
) -> ImageReconcileResult:
    """Make the archive's stored pages equal ``incoming``.

    When ``remove_on_update`` is set, the files backing pages whose filename
    changed are removed from ``file_store`` before the rows are updated.
    File removal is best-effort and never aborts the reconciliation.
    """

    repository = repositories.images
    result = ImageReconcileResult()

    # a later entry for the same page replaces an earlier one
    by_page: dict[int, Image] = {image.page_number: image for image in incoming}
    targets = list(by_page.values())

    current: dict[int, Image] = {
        image.page_number: image for image in repository.list_for_archive(archive_id)
    }

    replaced = [
        stored
        for page_number, stored in current.items()
        if page_number in by_page and by_page[page_number].filename != stored.filename
    ]
    result.updated = len(replaced)
    result.inserted = sum(1 for page_number in by_page if page_number not in current)

    if remove_on_update and file_store is not None:
        result.removed_files = _remove_replaced_files(file_store, archive_hash, replaced)

    if targets:
        for row in repository.upsert_many(archive_id, targets):
            current[row.page_number] = row

    stale_pages = sorted(page_number for page_number in current if page_number not in by_page)
    if stale_pages:
        repository.delete_pages(archive_id, stale_pages)
        result.deleted = len(stale_pages)

    log.debug(
        "Reconciled images for archive %s: inserted=%s, updated=%s, deleted=%s, files=%s",
        archive_id,
        result.inserted,
        result.updated,
        result.deleted,
        result.removed_files,
    )
    return result


def _remove_replaced_files(
    file_store: ImageFileStore,
    archive_hash: str,
    replaced: list[Image],
) -> int:
    if not replaced:
        return 0
    pages = {image.page_number for image in replaced}
    removed = 0
    for path in file_store.find_pages_files(archive_hash, pages):
        if file_store.remove(path):
            removed += 1
    return removed
