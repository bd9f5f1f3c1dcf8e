from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select

from pagekeeper.adapters.sqlalchemy import (
    SqlAlchemyArchiveImageRepository,
    SqlAlchemyArchiveRepository,
    SqlAlchemyArchiveSourceRepository,
    SqlAlchemyArchiveTagRepository,
    SqlAlchemyTagRepository,
    archive_image_table,
    archive_tag_table,
    tag_table,
)
from pagekeeper.domain.model import Archive, Image, Source, Tag
from pagekeeper.domain.ports import ArchiveRepositories
from pagekeeper.domain.reconciliation import reconcile_tags

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _archive(session: Session, archive_hash: str = "abc123") -> int:
    archive = Archive(hash=archive_hash, title=f"Archive {archive_hash}")
    SqlAlchemyArchiveRepository(session).add(archive)
    return archive.resolved_id


def _repositories(session: Session) -> ArchiveRepositories:
    return ArchiveRepositories(
        archives=SqlAlchemyArchiveRepository(session),
        sources=SqlAlchemyArchiveSourceRepository(session),
        images=SqlAlchemyArchiveImageRepository(session),
        tags=SqlAlchemyTagRepository(session),
        archive_tags=SqlAlchemyArchiveTagRepository(session),
    )


def test_archive_repository_round_trip(sqlite_session: Session) -> None:
    repo = SqlAlchemyArchiveRepository(sqlite_session)
    archive = Archive(hash="abc123", title="Example")

    repo.add(archive)
    sqlite_session.commit()

    assert archive.id is not None
    assert archive.created_at is not None
    assert repo.get(archive.id) is archive
    assert repo.get_by_hash("abc123") is archive
    assert repo.get_by_hash("missing") is None


def test_source_delete_matches_null_url(sqlite_session: Session) -> None:
    archive_id = _archive(sqlite_session)
    repo = SqlAlchemyArchiveSourceRepository(sqlite_session)
    repo.add(archive_id, Source(name="Local"))
    repo.add(archive_id, Source(name="Local", url="https://example.com"))

    repo.delete(archive_id, Source(name="Local"))

    assert repo.list_for_archive(archive_id) == [Source(name="Local", url="https://example.com")]


def test_source_delete_is_scoped_to_archive(sqlite_session: Session) -> None:
    first = _archive(sqlite_session, "first")
    second = _archive(sqlite_session, "second")
    repo = SqlAlchemyArchiveSourceRepository(sqlite_session)
    repo.add(first, Source(name="Shared", url="https://example.com"))
    repo.add(second, Source(name="Shared", url="https://example.com"))

    repo.delete(first, Source(name="Shared", url="https://example.com"))

    assert repo.list_for_archive(first) == []
    assert repo.list_for_archive(second) == [Source(name="Shared", url="https://example.com")]


def test_image_upsert_keeps_row_identity_and_dimensions(sqlite_session: Session) -> None:
    archive_id = _archive(sqlite_session)
    repo = SqlAlchemyArchiveImageRepository(sqlite_session)
    repo.upsert_many(archive_id, [Image("1.jpg", 1, width=800, height=1200)])
    row_id = sqlite_session.execute(select(archive_image_table.c.id)).scalar_one()

    returned = repo.upsert_many(archive_id, [Image("1-new.jpg", 1)])

    assert returned == [Image("1-new.jpg", 1, width=800, height=1200)]
    assert sqlite_session.execute(select(archive_image_table.c.id)).scalar_one() == row_id
    assert repo.list_for_archive(archive_id) == [Image("1-new.jpg", 1, width=800, height=1200)]


def test_image_delete_pages(sqlite_session: Session) -> None:
    archive_id = _archive(sqlite_session)
    repo = SqlAlchemyArchiveImageRepository(sqlite_session)
    repo.upsert_many(archive_id, [Image(f"{page}.jpg", page) for page in (1, 2, 3)])

    repo.delete_pages(archive_id, [1, 3])

    assert repo.list_for_archive(archive_id) == [Image("2.jpg", 2)]


def test_tag_upsert_returns_existing_row_on_conflict(sqlite_session: Session) -> None:
    repo = SqlAlchemyTagRepository(sqlite_session)
    (first,) = repo.upsert_many([Tag(name="alice", namespace="artist")])

    (second,) = repo.upsert_many([Tag(name="alice", namespace="artist")])

    assert second.id == first.id
    assert sqlite_session.execute(select(func.count()).select_from(tag_table)).scalar_one() == 1


def test_tag_lookup_keeps_exact_pairs_only(sqlite_session: Session) -> None:
    repo = SqlAlchemyTagRepository(sqlite_session)
    repo.upsert_many([Tag(name="b:c", namespace="a"), Tag(name="c", namespace="a:b")])

    found = repo.find_by_keys([Tag(name="c", namespace="a:b")])

    assert [row.key for row in found] == [("a:b", "c")]


def test_archive_tag_links(sqlite_session: Session) -> None:
    archive_id = _archive(sqlite_session)
    tags = SqlAlchemyTagRepository(sqlite_session).upsert_many(
        [Tag(name="alice", namespace="artist"), Tag(name="color")]
    )
    repo = SqlAlchemyArchiveTagRepository(sqlite_session)
    repo.add_many(archive_id, [row.id for row in tags])

    repo.delete(archive_id, tags[0].id)

    assert [link.key for link in repo.list_for_archive(archive_id)] == [("tag", "color")]


def test_shared_tag_is_stored_once(sqlite_session: Session) -> None:
    repositories = _repositories(sqlite_session)
    first = _archive(sqlite_session, "first")
    second = _archive(sqlite_session, "second")

    reconcile_tags(repositories, first, [Tag(name="alice", namespace="artist")])
    reconcile_tags(repositories, second, [Tag(name="alice", namespace="artist")])
    sqlite_session.commit()

    tag_count = sqlite_session.execute(select(func.count()).select_from(tag_table)).scalar_one()
    link_count = sqlite_session.execute(
        select(func.count()).select_from(archive_tag_table)
    ).scalar_one()
    assert tag_count == 1
    assert link_count == 2
