"""The archive aggregate root referenced by every reconciler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class Archive:
    """A cataloged multi-page item.

    ``id`` is assigned by the store on first flush and never changes afterwards.
    ``hash`` is the content hash used to scope the archive's image directory.
    """

    hash: str
    title: str
    id: int | None = None
    created_at: datetime | None = None

    @property
    def resolved_id(self) -> int:
        if self.id is None:
            raise ValueError(f"Archive {self.hash!r} has not been persisted yet")
        return self.id
