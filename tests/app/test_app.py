from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from pagekeeper import app
from pagekeeper.config import (
    DirectoriesConfig,
    ImageConfig,
    MetadataConfig,
    Settings,
)
from pagekeeper.domain.archive_metadata import ArchiveNotFoundError
from pagekeeper.domain.mapping import SourceMappingRule, TagMappingRule
from pagekeeper.domain.model import ArchiveMetadata, Image, Source, Tag

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from pagekeeper.adapters.sqlalchemy.unit_of_work import SqlAlchemyArchiveUnitOfWork


def _settings(images: Path, *, remove_on_update: bool = False) -> Settings:
    return Settings(
        directories=DirectoriesConfig(images=images),
        image=ImageConfig(remove_on_update=remove_on_update),
        metadata=MetadataConfig(
            source_mapping=(SourceMappingRule(match="example.com", name="Example"),),
            tag_mapping=(TagMappingRule(match=frozenset({"colour"}), name="color"),),
        ),
    )


def test_reconcile_metadata_end_to_end(
    sqlite_unit_of_work: Callable[[], SqlAlchemyArchiveUnitOfWork],
    tmp_path: Path,
) -> None:
    archive = app.create_archive(
        archive_hash="abc123",
        title="Example",
        unit_of_work_factory=sqlite_unit_of_work,
    )
    metadata = ArchiveMetadata(
        sources=[Source(url="https://example.com/g/1")],
        images=[Image("1.jpg", 1), Image("2.jpg", 2)],
        tags=[Tag(name="colour", namespace="")],
    )

    first = app.reconcile_metadata(
        archive.resolved_id,
        metadata,
        settings=_settings(tmp_path),
        unit_of_work_factory=sqlite_unit_of_work,
    )
    second = app.reconcile_metadata(
        archive.resolved_id,
        metadata,
        settings=_settings(tmp_path),
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert first.sources is not None
    assert first.sources.inserted == 1
    assert first.tags is not None
    assert first.tags.upserted_tags == 1
    for part in (second.sources, second.images, second.tags):
        assert part is not None
        assert not part.changed

    with sqlite_unit_of_work() as uow:
        repositories = uow.repositories
        assert repositories.sources.list_for_archive(archive.resolved_id) == [
            Source(name="Example", url="https://example.com/g/1"),
        ]
        links = repositories.archive_tags.list_for_archive(archive.resolved_id)
        assert [link.key for link in links] == [("tag", "color")]


def test_replaced_page_files_are_removed(
    sqlite_unit_of_work: Callable[[], SqlAlchemyArchiveUnitOfWork],
    tmp_path: Path,
) -> None:
    archive = app.create_archive(
        archive_hash="abc123",
        title="Example",
        unit_of_work_factory=sqlite_unit_of_work,
    )
    settings = _settings(tmp_path, remove_on_update=True)
    app.reconcile_metadata(
        archive.resolved_id,
        ArchiveMetadata(images=[Image("1.jpg", 1), Image("2.jpg", 2)]),
        settings=settings,
        unit_of_work_factory=sqlite_unit_of_work,
    )
    archive_dir = tmp_path / "abc123"
    archive_dir.mkdir()
    (archive_dir / "01.webp").write_bytes(b"")
    (archive_dir / "02.webp").write_bytes(b"")

    result = app.reconcile_metadata(
        archive.resolved_id,
        ArchiveMetadata(images=[Image("1-new.jpg", 1), Image("2.jpg", 2)]),
        settings=settings,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert result.images is not None
    assert result.images.removed_files == 1
    assert not (archive_dir / "01.webp").exists()
    assert (archive_dir / "02.webp").exists()


def test_import_metadata_file(
    sqlite_unit_of_work: Callable[[], SqlAlchemyArchiveUnitOfWork],
    tmp_path: Path,
) -> None:
    archive = app.create_archive(
        archive_hash="abc123",
        title="Example",
        unit_of_work_factory=sqlite_unit_of_work,
    )
    path = tmp_path / "metadata.json"
    path.write_text(
        json.dumps({"images": [{"filename": "1.jpg", "pageNumber": 1}], "tags": ["artist:alice"]}),
        encoding="utf-8",
    )

    result = app.import_metadata_file(archive.resolved_id, path, settings=_settings(tmp_path))

    assert result.images is not None
    assert result.images.inserted == 1
    assert result.sources is None


def test_standalone_reconcilers_commit_separately(
    sqlite_unit_of_work: Callable[[], SqlAlchemyArchiveUnitOfWork],
    tmp_path: Path,
) -> None:
    archive = app.create_archive(
        archive_hash="abc123",
        title="Example",
        unit_of_work_factory=sqlite_unit_of_work,
    )
    settings = _settings(tmp_path)

    sources = app.sync_archive_sources(
        archive.resolved_id,
        [Source(url="https://example.com/g/1")],
        settings=settings,
        unit_of_work_factory=sqlite_unit_of_work,
    )
    images = app.sync_archive_images(
        archive.resolved_id,
        [Image("1.jpg", 1)],
        settings=settings,
        unit_of_work_factory=sqlite_unit_of_work,
    )
    tags = app.sync_archive_tags(
        archive.resolved_id,
        [Tag(name="colour")],
        settings=settings,
        unit_of_work_factory=sqlite_unit_of_work,
    )

    assert (sources.inserted, images.inserted, tags.inserted) == (1, 1, 1)
    with sqlite_unit_of_work() as uow:
        repositories = uow.repositories
        assert repositories.sources.list_for_archive(archive.resolved_id) == [
            Source(name="Example", url="https://example.com/g/1"),
        ]
        assert repositories.images.list_for_archive(archive.resolved_id) == [Image("1.jpg", 1)]
        links = repositories.archive_tags.list_for_archive(archive.resolved_id)
        assert [link.key for link in links] == [("tag", "color")]


def test_unknown_archive_is_reported(
    sqlite_unit_of_work: Callable[[], SqlAlchemyArchiveUnitOfWork],
    tmp_path: Path,
) -> None:
    with pytest.raises(ArchiveNotFoundError):
        app.sync_archive_tags(
            99,
            [Tag(name="x")],
            settings=_settings(tmp_path),
            unit_of_work_factory=sqlite_unit_of_work,
        )
