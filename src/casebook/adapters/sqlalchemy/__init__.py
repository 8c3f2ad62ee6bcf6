"""SQLAlchemy adapter package for casebook."""

from __future__ import annotations

from .blob_store import SqlAlchemyBlobStore
from .errors import translate_errors
from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAttributeDefinitionRepository,
    SqlAlchemyAttributeValueRepository,
    SqlAlchemyBenevolenceRequestRepository,
    SqlAlchemyBenevolenceResultRepository,
    SqlAlchemyRequestDocumentRepository,
)
from .unit_of_work import (
    SqlAlchemyAttributeDefinitionSource,
    SqlAlchemyRequestUnitOfWork,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyAttributeDefinitionRepository",
    "SqlAlchemyAttributeDefinitionSource",
    "SqlAlchemyAttributeValueRepository",
    "SqlAlchemyBenevolenceRequestRepository",
    "SqlAlchemyBenevolenceResultRepository",
    "SqlAlchemyBlobStore",
    "SqlAlchemyRequestDocumentRepository",
    "SqlAlchemyRequestUnitOfWork",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
