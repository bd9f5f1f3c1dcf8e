"""On-disk image store rooted at the configured images directory.

Pages of an archive live under ``<root>/<archive hash>/``, with resized or
re-encoded variants in nested directories. Every variant of a page is named
after its page number, zero-padded to whatever width was used when it was
written, followed by one or more extensions (``7.webp``, ``007.webp``,
``thumbs/07.jpg`` and ``007.jpg.webp`` all belong to page 7).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection

log = logging.getLogger(__name__)


def page_number_of(path: Path) -> int | None:
    """The page number ``path`` is named after, or ``None`` for other files."""

    head, dot, _ = path.name.partition(".")
    if not dot or not head.isascii() or not head.isdigit():
        return None
    return int(head)


@dataclass(frozen=True, slots=True)
class LocalImageFileStore:
    root: Path

    def archive_dir(self, archive_hash: str) -> Path:
        return self.root / archive_hash

    def find_pages_files(self, archive_hash: str, page_numbers: Collection[int]) -> list[Path]:
        wanted = set(page_numbers)
        if not wanted:
            return []
        directory = self.archive_dir(archive_hash)
        try:
            return sorted(
                path
                for path in directory.glob("**/*.*")
                if page_number_of(path) in wanted and path.is_file()
            )
        except OSError:
            log.debug("Could not scan %s for %s pages", directory, len(wanted), exc_info=True)
            return []

    def remove(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError:
            log.debug("Could not remove %s", path, exc_info=True)
            return False
        return True


if TYPE_CHECKING:
    from pagekeeper.domain.ports import ImageFileStore

    _store_check: ImageFileStore = LocalImageFileStore(Path())
