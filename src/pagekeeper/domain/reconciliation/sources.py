"""Reconcile an archive's attribution sources against storage."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pagekeeper.domain.mapping import normalize_sources

from .results import SourceReconcileResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from pagekeeper.domain.mapping import SourceMappingRule
    from pagekeeper.domain.model import Source
    from pagekeeper.domain.ports import ArchiveRepositories

log = logging.getLogger(__name__)


def reconcile_sources(
    repositories: ArchiveRepositories,
    archive_id: int,
    incoming: Iterable[Source],
    *,
    rules: Sequence[SourceMappingRule] = (),
    merge: bool = False,
    verbose: bool = False,
) -> SourceReconcileResult:
    """Make the archive's stored sources equal the mapped ``incoming`` sources.

    With ``merge=True`` stored sources missing from ``incoming`` are kept.
    Sources that still have no name after mapping are never stored; with
    ``verbose=True`` each one is reported as a warning.
    """

    repository = repositories.sources
    result = SourceReconcileResult()

    normalized = normalize_sources(incoming, rules)
    current = repository.list_for_archive(archive_id)

    incoming_keys = {source.key for source in normalized}
    current_keys = {source.key for source in current}

    if not merge:
        for stale in current:
            if stale.key in incoming_keys:
                continue
            repository.delete(archive_id, stale)
            result.deleted += 1

    for source in normalized:
        if source.key in current_keys:
            continue
        if not source.name:
            result.skipped += 1
            if verbose:
                log.warning(
                    "[ID: %s] Couldn't get a name for the source with URL %s",
                    archive_id,
                    source.url,
                )
            continue
        repository.add(archive_id, source)
        result.inserted += 1

    log.debug(
        "Reconciled sources for archive %s: inserted=%s, deleted=%s, skipped=%s",
        archive_id,
        result.inserted,
        result.deleted,
        result.skipped,
    )
    return result
