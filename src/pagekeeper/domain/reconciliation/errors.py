"""Errors raised by the reconcilers.

Store failures (for example SQLAlchemy's ``IntegrityError``) are not wrapped; they
propagate to the unit of work, which rolls the whole archive diff back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pagekeeper.domain.model import TagKey


class UnresolvableTagReferenceError(RuntimeError):
    """A tag association was about to be inserted for a tag with no known id.

    Every incoming tag is looked up or upserted before associations are written,
    so this signals a broken repository contract rather than bad input.
    """

    def __init__(self, archive_id: int, key: TagKey) -> None:
        namespace, name = key
        super().__init__(
            f"Archive {archive_id}: no global tag row for {namespace}:{name} "
            "after lookup and upsert"
        )
        self.archive_id = archive_id
        self.key = key
