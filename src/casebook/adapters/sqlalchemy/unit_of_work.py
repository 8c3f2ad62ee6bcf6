"""SQLAlchemy-backed unit of work for request editing."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from casebook.adapters.sqlalchemy.blob_store import SqlAlchemyBlobStore
from casebook.adapters.sqlalchemy.errors import translate_errors
from casebook.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from casebook.adapters.sqlalchemy.repositories import (
    SqlAlchemyAttributeDefinitionRepository,
    SqlAlchemyAttributeValueRepository,
    SqlAlchemyBenevolenceRequestRepository,
    SqlAlchemyBenevolenceResultRepository,
    SqlAlchemyRequestDocumentRepository,
)
from casebook.config.storage import get_database_uri
from casebook.domain.ports.unit_of_work import RepositoryCollection, RequestRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from casebook.domain.model import AttributeDefinition, Classifier


class StartupError(RuntimeError):
    """Raised when storage is used before startup() or started twice."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        self.engine = engine
        self.sessions = (
            None if engine is None else sessionmaker(bind=engine, expire_on_commit=False)
        )

    def session_factory(self) -> sessionmaker[Session]:
        if self.sessions is None:
            raise StartupError(
                "Storage not started; call casebook.app.initialise_storage() "
                "before opening a unit of work"
            )
        return self.sessions


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to an engine, map the domain classes and create the schema."""

    if _STATE.engine is not None and not force:
        raise StartupError("Storage already started; pass force=True to swap the engine")

    bound = engine or create_engine(database_uri or get_database_uri(), future=True)
    start_mappers()
    create_all_tables(bound)
    _STATE.bind(bound)


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the engine and unbind the adapter."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.bind(None)


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """One session per ``with`` block; rolled back when the block raises.

    Flush and commit failures surface as domain errors (see ``translate_errors``).
    Leaving the block without ``commit`` discards pending work.
    """

    def __init__(self) -> None:
        self.session_factory = _STATE.session_factory()
        self._session: Session | None = None
        self._repositories: TRepositories | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self.session_factory()
        self._repositories = self._build_repositories(self._session)
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
            raise StartupError("Unit of work is not open; enter it with a with-statement")
        return self._session

    @property
    def repositories(self) -> TRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open; enter it with a with-statement")
        return self._repositories

    def flush(self) -> None:
        with translate_errors("flush"):
            self.session.flush()

    def commit(self) -> None:
        with translate_errors("commit"):
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SqlAlchemyRequestUnitOfWork(BaseSqlAlchemyUnitOfWork[RequestRepositories]):
    """Repositories, attribute sidecars and blob metadata for one edit round."""

    def _build_repositories(self, session: Session) -> RequestRepositories:
        return RequestRepositories(
            requests=SqlAlchemyBenevolenceRequestRepository(session),
            results=SqlAlchemyBenevolenceResultRepository(session),
            attribute_definitions=SqlAlchemyAttributeDefinitionRepository(session),
            attribute_values=SqlAlchemyAttributeValueRepository(session),
            documents=SqlAlchemyRequestDocumentRepository(session),
            blobs=SqlAlchemyBlobStore(session),
        )


class SqlAlchemyAttributeDefinitionSource:
    """Definition source for the schema registry; each lookup uses a short-lived session."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory

    def load_definitions(self, classifier: Classifier) -> tuple[AttributeDefinition, ...]:
        session_factory = self._session_factory or _STATE.session_factory()
        with session_factory() as session:
            return SqlAlchemyAttributeDefinitionRepository(session).load_definitions(classifier)


if TYPE_CHECKING:
    from casebook.domain.ports import AttributeDefinitionSource, RequestUnitOfWork

    _uow_check: RequestUnitOfWork = SqlAlchemyRequestUnitOfWork()
    _source_check: AttributeDefinitionSource = SqlAlchemyAttributeDefinitionSource()
