from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from pagekeeper.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyArchiveUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from pagekeeper.domain.archive_metadata import reconcile_archive_metadata, register_archive
from pagekeeper.domain.model import ArchiveMetadata, Image, Source, Tag
from pagekeeper.domain.reconciliation import UnresolvableTagReferenceError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyArchiveUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_repositories_require_an_open_unit_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(StartupError):
        _ = SqlAlchemyArchiveUnitOfWork().repositories


def test_committed_metadata_is_visible_to_next_unit_of_work(
    sqlite_unit_of_work: Callable[[], SqlAlchemyArchiveUnitOfWork],
) -> None:
    archive = register_archive(
        unit_of_work_factory=sqlite_unit_of_work,
        archive_hash="abc123",
        title="Example",
    )

    reconcile_archive_metadata(
        unit_of_work_factory=sqlite_unit_of_work,
        archive_id=archive.resolved_id,
        metadata=ArchiveMetadata(
            sources=[Source(name="Example", url="https://example.com")],
            images=[Image("1.jpg", 1)],
            tags=[Tag(name="alice", namespace="artist")],
        ),
    )

    with sqlite_unit_of_work() as uow:
        repositories = uow.repositories
        assert repositories.sources.list_for_archive(archive.resolved_id) == [
            Source(name="Example", url="https://example.com"),
        ]
        assert repositories.images.list_for_archive(archive.resolved_id) == [Image("1.jpg", 1)]
        links = repositories.archive_tags.list_for_archive(archive.resolved_id)
        assert [link.key for link in links] == [("artist", "alice")]


def test_uncommitted_changes_are_discarded(
    sqlite_unit_of_work: Callable[[], SqlAlchemyArchiveUnitOfWork],
) -> None:
    archive = register_archive(
        unit_of_work_factory=sqlite_unit_of_work,
        archive_hash="abc123",
        title="Example",
    )

    with sqlite_unit_of_work() as uow:
        uow.repositories.sources.add(archive.resolved_id, Source(name="Dropped"))

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.sources.list_for_archive(archive.resolved_id) == []


def test_failed_reconcile_rolls_back_every_collection(
    sqlite_unit_of_work: Callable[[], SqlAlchemyArchiveUnitOfWork],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    archive = register_archive(
        unit_of_work_factory=sqlite_unit_of_work,
        archive_hash="abc123",
        title="Example",
    )
    monkeypatch.setattr(
        "pagekeeper.adapters.sqlalchemy.repositories.SqlAlchemyTagRepository.upsert_many",
        lambda _self, _tags: [],
    )

    with pytest.raises(UnresolvableTagReferenceError):
        reconcile_archive_metadata(
            unit_of_work_factory=sqlite_unit_of_work,
            archive_id=archive.resolved_id,
            metadata=ArchiveMetadata(sources=[Source(name="Example")], tags=[Tag(name="x")]),
        )

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.sources.list_for_archive(archive.resolved_id) == []
