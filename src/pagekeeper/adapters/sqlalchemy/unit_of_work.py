"""SQLAlchemy-backed unit of work for archive metadata reconciliation.

The adapter holds one process-wide engine. ``startup()`` binds it, maps the
domain model and migrates the schema to head; every unit of work then opens a
fresh session on that engine and closes it on exit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from pagekeeper.adapters.sqlalchemy.mappings import start_mappers
from pagekeeper.adapters.sqlalchemy.migrations import upgrade_head
from pagekeeper.adapters.sqlalchemy.repositories import (
    SqlAlchemyArchiveImageRepository,
    SqlAlchemyArchiveRepository,
    SqlAlchemyArchiveSourceRepository,
    SqlAlchemyArchiveTagRepository,
    SqlAlchemyTagRepository,
)
from pagekeeper.config.storage import get_database_uri
from pagekeeper.domain.ports.unit_of_work import ArchiveRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used outside its started lifecycle."""


@dataclass(slots=True)
class _Binding:
    engine: Engine
    sessions: sessionmaker[Session] = field(init=False)

    def __post_init__(self) -> None:
        self.sessions = sessionmaker(bind=self.engine, expire_on_commit=False)


_binding: _Binding | None = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to ``engine`` (or one built from the configured URI).

    Raises ``StartupError`` when already started unless ``force`` is set, in
    which case the previous engine is replaced without being disposed.
    """

    global _binding  # noqa: PLW0603
    if _binding is not None and not force:
        raise StartupError("SQLAlchemy adapter already started; pass force=True to rebind")

    bound = engine or create_engine(database_uri or get_database_uri(), future=True)
    start_mappers()
    upgrade_head(engine=bound)
    _binding = _Binding(engine=bound)
    log.debug("SQLAlchemy adapter bound to %s", bound.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return None if _binding is None else _binding.engine


def is_started() -> bool:
    return _binding is not None


def shutdown() -> None:
    """Dispose the bound engine and forget it (mainly for tests)."""

    global _binding  # noqa: PLW0603
    if _binding is not None:
        _binding.engine.dispose()
    _binding = None


def _session_factory() -> sessionmaker[Session]:
    if _binding is None:
        raise StartupError(
            "SQLAlchemy adapter not started. Call pagekeeper.adapters.sqlalchemy."
            "unit_of_work.startup() before opening a unit of work."
        )
    return _binding.sessions


class SqlAlchemyArchiveUnitOfWork:
    """One session-scoped transaction over every archive repository.

    Leaving the context without ``commit()`` discards all changes; an exception
    rolls back explicitly and is re-raised.
    """

    def __init__(self) -> None:
        self._sessions = _session_factory()
        self._session: Session | None = None
        self._repositories: ArchiveRepositories | None = None

    def __enter__(self) -> SqlAlchemyArchiveUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        session = self._sessions()
        self._session = session
        self._repositories = ArchiveRepositories(
            archives=SqlAlchemyArchiveRepository(session),
            sources=SqlAlchemyArchiveSourceRepository(session),
            images=SqlAlchemyArchiveImageRepository(session),
            tags=SqlAlchemyTagRepository(session),
            archive_tags=SqlAlchemyArchiveTagRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> ArchiveRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from pagekeeper.domain.ports.unit_of_work import ArchiveUnitOfWork

    _uow_check: ArchiveUnitOfWork = SqlAlchemyArchiveUnitOfWork()
