from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from casebook.adapters.sqlalchemy import create_all_tables, start_mappers
from casebook.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyAttributeDefinitionSource,
    SqlAlchemyRequestUnitOfWork,
    shutdown,
    startup,
)
from casebook.domain.schema import AttributeSchemaRegistry

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # file backed so that the schema registry's own sessions get their own connection
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'casebook.db'}", future=True)
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyRequestUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyRequestUnitOfWork:
        return SqlAlchemyRequestUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def sqlite_registry(
    sqlite_unit_of_work: Callable[[], SqlAlchemyRequestUnitOfWork],
) -> AttributeSchemaRegistry:
    _ = sqlite_unit_of_work
    return AttributeSchemaRegistry(SqlAlchemyAttributeDefinitionSource())
