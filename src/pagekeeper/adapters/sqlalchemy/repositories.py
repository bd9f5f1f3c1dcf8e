"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, cast

from sqlalchemy import and_, delete, func, insert, select
from sqlalchemy.dialects import postgresql, sqlite

from pagekeeper.adapters.sqlalchemy.mappings import (
    archive_image_table,
    archive_source_table,
    archive_tag_table,
    archive_table,
    tag_table,
)
from pagekeeper.domain.model import Archive, ArchiveTagLink, Image, Source, StoredTag

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from sqlalchemy import ColumnElement, Table
    from sqlalchemy.orm import Session

    from pagekeeper.domain.model import Tag

type ConflictInsert = postgresql.Insert | sqlite.Insert


def _upsert_insert(session: Session, table: Table) -> ConflictInsert:
    """Return a dialect ``INSERT`` that supports ``ON CONFLICT ... DO UPDATE``."""

    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"ON CONFLICT upserts are not supported for dialect {dialect!r}")


class SqlAlchemyArchiveRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, archive: Archive) -> None:
        if archive.created_at is None:
            archive.created_at = datetime.now(tz=UTC)
        self.session.add(archive)
        self.session.flush()

    def get(self, archive_id: int) -> Archive | None:
        return self.session.get(Archive, archive_id)

    def get_by_hash(self, archive_hash: str) -> Archive | None:
        stmt = select(Archive).where(archive_table.c.hash == archive_hash)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyArchiveSourceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_archive(self, archive_id: int) -> list[Source]:
        stmt = (
            select(archive_source_table.c.name, archive_source_table.c.url)
            .where(archive_source_table.c.archive_id == archive_id)
            .order_by(archive_source_table.c.id)
        )
        return [Source(name=name, url=url) for name, url in self.session.execute(stmt)]

    def add(self, archive_id: int, source: Source) -> None:
        stmt = insert(archive_source_table).values(
            archive_id=archive_id,
            name=source.name,
            url=source.url,
        )
        self.session.execute(stmt)

    def delete(self, archive_id: int, source: Source) -> None:
        stmt = delete(archive_source_table).where(
            archive_source_table.c.archive_id == archive_id,
            _matches_nullable(archive_source_table.c.name, source.name),
            _matches_nullable(archive_source_table.c.url, source.url),
        )
        self.session.execute(stmt)


def _matches_nullable(column: ColumnElement[str], value: str | None) -> ColumnElement[bool]:
    return column.is_(None) if value is None else column == value


class SqlAlchemyArchiveImageRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_archive(self, archive_id: int) -> list[Image]:
        stmt = (
            select(
                archive_image_table.c.filename,
                archive_image_table.c.page_number,
                archive_image_table.c.width,
                archive_image_table.c.height,
            )
            .where(archive_image_table.c.archive_id == archive_id)
            .order_by(archive_image_table.c.page_number)
        )
        return [
            Image(filename=filename, page_number=page_number, width=width, height=height)
            for filename, page_number, width, height in self.session.execute(stmt)
        ]

    def upsert_many(self, archive_id: int, images: Sequence[Image]) -> list[Image]:
        if not images:
            return []
        stmt = _upsert_insert(self.session, archive_image_table).values(
            [
                {
                    "archive_id": archive_id,
                    "filename": image.filename,
                    "page_number": image.page_number,
                    "width": image.width,
                    "height": image.height,
                }
                for image in images
            ]
        )
        # dimensions are computed after import; an omitted value keeps the stored one
        stmt = stmt.on_conflict_do_update(
            index_elements=[archive_image_table.c.archive_id, archive_image_table.c.page_number],
            set_={
                "filename": stmt.excluded.filename,
                "width": func.coalesce(stmt.excluded.width, archive_image_table.c.width),
                "height": func.coalesce(stmt.excluded.height, archive_image_table.c.height),
            },
        ).returning(
            archive_image_table.c.filename,
            archive_image_table.c.page_number,
            archive_image_table.c.width,
            archive_image_table.c.height,
        )
        return [
            Image(filename=filename, page_number=page_number, width=width, height=height)
            for filename, page_number, width, height in self.session.execute(stmt)
        ]

    def delete_pages(self, archive_id: int, page_numbers: Collection[int]) -> None:
        if not page_numbers:
            return
        stmt = delete(archive_image_table).where(
            archive_image_table.c.archive_id == archive_id,
            archive_image_table.c.page_number.in_(list(page_numbers)),
        )
        self.session.execute(stmt)


class SqlAlchemyTagRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_keys(self, tags: Sequence[Tag]) -> list[StoredTag]:
        if not tags:
            return []
        composite = tag_table.c.namespace.concat(":").concat(tag_table.c.name)
        stmt = select(tag_table.c.id, tag_table.c.namespace, tag_table.c.name).where(
            composite.in_(sorted({tag.composite for tag in tags}))
        )
        wanted = {tag.key for tag in tags}
        rows = [
            StoredTag(id=tag_id, namespace=namespace, name=name)
            for tag_id, namespace, name in self.session.execute(stmt)
        ]
        # "a:b:c" is ambiguous as a composite; keep exact pairs only
        return [row for row in rows if row.key in wanted]

    def upsert_many(self, tags: Sequence[Tag]) -> list[StoredTag]:
        if not tags:
            return []
        stmt = _upsert_insert(self.session, tag_table).values(
            [{"namespace": tag.namespace, "name": tag.name} for tag in tags]
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[tag_table.c.namespace, tag_table.c.name],
            set_={
                "name": stmt.excluded.name,
                "namespace": stmt.excluded.namespace,
            },
        ).returning(tag_table.c.id, tag_table.c.namespace, tag_table.c.name)
        return [
            StoredTag(id=tag_id, namespace=namespace, name=name)
            for tag_id, namespace, name in self.session.execute(stmt)
        ]


class SqlAlchemyArchiveTagRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_archive(self, archive_id: int) -> list[ArchiveTagLink]:
        stmt = (
            select(archive_tag_table.c.tag_id, tag_table.c.namespace, tag_table.c.name)
            .join(tag_table, tag_table.c.id == archive_tag_table.c.tag_id)
            .where(archive_tag_table.c.archive_id == archive_id)
            .order_by(archive_tag_table.c.tag_id)
        )
        return [
            ArchiveTagLink(tag_id=tag_id, namespace=namespace, name=name)
            for tag_id, namespace, name in self.session.execute(stmt)
        ]

    def delete(self, archive_id: int, tag_id: int) -> None:
        stmt = delete(archive_tag_table).where(
            and_(
                archive_tag_table.c.archive_id == archive_id,
                archive_tag_table.c.tag_id == tag_id,
            )
        )
        self.session.execute(stmt)

    def add_many(self, archive_id: int, tag_ids: Sequence[int]) -> None:
        if not tag_ids:
            return
        self.session.execute(
            insert(archive_tag_table),
            [{"archive_id": archive_id, "tag_id": tag_id} for tag_id in tag_ids],
        )


if TYPE_CHECKING:
    from pagekeeper.domain.ports.persistence import (
        ArchiveImageRepository,
        ArchiveRepository,
        ArchiveSourceRepository,
        ArchiveTagRepository,
        TagRepository,
    )

    _session_stub = cast("Session", object())
    _archive_repo: ArchiveRepository = SqlAlchemyArchiveRepository(_session_stub)
    _source_repo: ArchiveSourceRepository = SqlAlchemyArchiveSourceRepository(_session_stub)
    _image_repo: ArchiveImageRepository = SqlAlchemyArchiveImageRepository(_session_stub)
    _tag_repo: TagRepository = SqlAlchemyTagRepository(_session_stub)
    _archive_tag_repo: ArchiveTagRepository = SqlAlchemyArchiveTagRepository(_session_stub)
