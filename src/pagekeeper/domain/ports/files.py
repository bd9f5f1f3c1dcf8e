"""Port for the on-disk image store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection
    from pathlib import Path


@runtime_checkable
class ImageFileStore(Protocol):
    """Locate and remove stored page files, including derived variants."""

    def find_pages_files(self, archive_hash: str, page_numbers: Collection[int]) -> list[Path]:
        """Every stored file of the given pages, found in one pass over the archive."""
        ...

    def remove(self, path: Path) -> bool:
        """Remove ``path``; return whether it was removed. Never raises for I/O failures."""
        ...
