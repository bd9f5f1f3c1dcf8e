"""Reconcile an archive's namespaced tags against the global tag table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pagekeeper.domain.mapping import normalize_tags

from .errors import UnresolvableTagReferenceError
from .results import TagReconcileResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from pagekeeper.domain.mapping import TagMappingRule
    from pagekeeper.domain.model import Tag, TagKey
    from pagekeeper.domain.ports import ArchiveRepositories

log = logging.getLogger(__name__)


def reconcile_tags(
    repositories: ArchiveRepositories,
    archive_id: int,
    incoming: Iterable[Tag],
    *,
    rules: Sequence[TagMappingRule] = (),
) -> TagReconcileResult:
    """Make the archive's tag associations equal the normalized ``incoming`` tags.

    Missing global tags are created through the repository's conflict-resolving
    upsert, so concurrent imports of the same new tag converge on one row.
    Global tags are never deleted here, even when no archive references them.
    """

    result = TagReconcileResult()
    normalized = normalize_tags(incoming, rules)

    known: dict[TagKey, int] = {}
    if normalized:
        known = {row.key: row.id for row in repositories.tags.find_by_keys(normalized)}

    missing = [tag for tag in normalized if tag.key not in known]
    if missing:
        for row in repositories.tags.upsert_many(missing):
            known[row.key] = row.id
        result.upserted_tags = len(missing)

    links = repositories.archive_tags.list_for_archive(archive_id)
    incoming_keys = {tag.key for tag in normalized}
    linked_keys = {link.key for link in links}

    for link in links:
        if link.key in incoming_keys:
            continue
        repositories.archive_tags.delete(archive_id, link.tag_id)
        result.deleted += 1

    tag_ids: list[int] = []
    for tag in normalized:
        if tag.key in linked_keys:
            continue
        tag_id = known.get(tag.key)
        if tag_id is None:
            raise UnresolvableTagReferenceError(archive_id, tag.key)
        tag_ids.append(tag_id)

    if tag_ids:
        repositories.archive_tags.add_many(archive_id, tag_ids)
        result.inserted = len(tag_ids)

    log.debug(
        "Reconciled tags for archive %s: upserted=%s, inserted=%s, deleted=%s",
        archive_id,
        result.upserted_tags,
        result.inserted,
        result.deleted,
    )
    return result
