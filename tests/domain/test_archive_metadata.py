from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, cast

import pytest

from pagekeeper.domain.archive_metadata import (
    ArchiveNotFoundError,
    DuplicateArchiveError,
    ReconcileOptions,
    reconcile_archive_metadata,
    register_archive,
)
from pagekeeper.domain.mapping import SourceMappingRule
from pagekeeper.domain.model import ArchiveMetadata, Image, Source, Tag
from pagekeeper.domain.reconciliation import UnresolvableTagReferenceError
from tests.helpers.archives import (
    FakeImageFileStore,
    FakeTagRepository,
    FakeUnitOfWork,
    add_archive,
    make_repositories,
)

if TYPE_CHECKING:
    from collections.abc import Callable


def _factory(uow: FakeUnitOfWork) -> Callable[[], FakeUnitOfWork]:
    return lambda: uow


def test_register_archive_commits() -> None:
    uow = FakeUnitOfWork()

    archive = register_archive(
        unit_of_work_factory=_factory(uow),
        archive_hash="abc",
        title="Example",
    )

    assert archive.id == 1
    assert uow.committed
    assert uow.repositories.archives.get_by_hash("abc") is archive


def test_register_archive_rejects_duplicate_hash() -> None:
    uow = FakeUnitOfWork()
    add_archive(uow.repositories, archive_hash="abc")

    with pytest.raises(DuplicateArchiveError):
        register_archive(unit_of_work_factory=_factory(uow), archive_hash="abc", title="Again")

    assert not uow.committed
    assert uow.rolled_back


def test_reconcile_applies_every_collection_and_commits() -> None:
    uow = FakeUnitOfWork()
    archive = add_archive(uow.repositories)
    metadata = ArchiveMetadata(
        sources=[Source(url="https://example.com/g/1")],
        images=[Image("1.jpg", 1)],
        tags=[Tag(name="alice", namespace="artist")],
    )
    options = ReconcileOptions(source_rules=(SourceMappingRule("example.com", name="Example"),))

    result = reconcile_archive_metadata(
        unit_of_work_factory=_factory(uow),
        archive_id=archive.resolved_id,
        metadata=metadata,
        options=options,
    )

    assert uow.committed
    assert result.archive_id == archive.id
    assert result.sources is not None
    assert result.sources.inserted == 1
    assert result.images is not None
    assert result.images.inserted == 1
    assert result.tags is not None
    assert result.tags.inserted == 1
    assert uow.repositories.sources.list_for_archive(archive.resolved_id) == [
        Source(name="Example", url="https://example.com/g/1"),
    ]


def test_omitted_collections_are_left_untouched() -> None:
    uow = FakeUnitOfWork()
    archive = add_archive(uow.repositories)
    uow.repositories.sources.add(archive.resolved_id, Source(name="Kept"))

    result = reconcile_archive_metadata(
        unit_of_work_factory=_factory(uow),
        archive_id=archive.resolved_id,
        metadata=ArchiveMetadata(tags=[]),
    )

    assert result.sources is None
    assert result.images is None
    assert result.tags is not None
    assert uow.repositories.sources.list_for_archive(archive.resolved_id) == [
        Source(name="Kept"),
    ]


def test_unknown_archive_raises_not_found() -> None:
    uow = FakeUnitOfWork()

    with pytest.raises(ArchiveNotFoundError) as excinfo:
        reconcile_archive_metadata(
            unit_of_work_factory=_factory(uow),
            archive_id=42,
            metadata=ArchiveMetadata(sources=[]),
        )

    assert excinfo.value.archive_id == 42
    assert uow.rolled_back


def test_failure_rolls_back_before_files_are_touched() -> None:
    repositories = make_repositories()
    uow = FakeUnitOfWork(repositories)
    archive = add_archive(repositories)
    repositories.images.upsert_many(archive.resolved_id, [Image("old.jpg", 1)])
    cast(FakeTagRepository, repositories.tags).drop_on_upsert.add(("tag", "ghost"))
    store = FakeImageFileStore(files={(archive.hash, 1): [Path("/images/abc123/1.jpg")]})

    with pytest.raises(UnresolvableTagReferenceError):
        reconcile_archive_metadata(
            unit_of_work_factory=_factory(uow),
            archive_id=archive.resolved_id,
            metadata=ArchiveMetadata(images=[Image("new.jpg", 1)], tags=[Tag(name="ghost")]),
            options=ReconcileOptions(remove_on_update=True),
            file_store=store,
        )

    assert uow.rolled_back
    assert not uow.committed
    assert store.removed == []
