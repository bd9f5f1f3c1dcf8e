"""SQLAlchemy adapter package for pagekeeper."""

from __future__ import annotations

from .mappings import (
    archive_image_table,
    archive_source_table,
    archive_table,
    archive_tag_table,
    mapper_registry,
    start_mappers,
    tag_table,
)
from .repositories import (
    SqlAlchemyArchiveImageRepository,
    SqlAlchemyArchiveRepository,
    SqlAlchemyArchiveSourceRepository,
    SqlAlchemyArchiveTagRepository,
    SqlAlchemyTagRepository,
)

__all__ = [
    "SqlAlchemyArchiveImageRepository",
    "SqlAlchemyArchiveRepository",
    "SqlAlchemyArchiveSourceRepository",
    "SqlAlchemyArchiveTagRepository",
    "SqlAlchemyTagRepository",
    "archive_image_table",
    "archive_source_table",
    "archive_table",
    "archive_tag_table",
    "mapper_registry",
    "start_mappers",
    "tag_table",
]
