"""Domain port definitions for adapters."""

from __future__ import annotations

from .files import ImageFileStore
from .persistence import (
    ArchiveImageRepository,
    ArchiveRepository,
    ArchiveSourceRepository,
    ArchiveTagRepository,
    TagRepository,
)
from .unit_of_work import (
    ArchiveRepositories,
    ArchiveUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "ArchiveImageRepository",
    "ArchiveRepositories",
    "ArchiveRepository",
    "ArchiveSourceRepository",
    "ArchiveTagRepository",
    "ArchiveUnitOfWork",
    "ImageFileStore",
    "RepositoryCollection",
    "TagRepository",
    "UnitOfWork",
]
