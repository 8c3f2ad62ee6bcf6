"""Domain port definitions for adapters."""

from __future__ import annotations

from .blob_store import BlobMeta, BlobStore
from .persistence import (
    AttributeDefinitionRepository,
    AttributeDefinitionSource,
    AttributeValueRepository,
    BenevolenceRequestRepository,
    BenevolenceResultRepository,
    Repository,
    RequestDocumentRepository,
)
from .unit_of_work import (
    RepositoryCollection,
    RequestRepositories,
    RequestUnitOfWork,
    UnitOfWork,
)

__all__ = [
    "AttributeDefinitionRepository",
    "AttributeDefinitionSource",
    "AttributeValueRepository",
    "BenevolenceRequestRepository",
    "BenevolenceResultRepository",
    "BlobMeta",
    "BlobStore",
    "Repository",
    "RepositoryCollection",
    "RequestDocumentRepository",
    "RequestRepositories",
    "RequestUnitOfWork",
    "UnitOfWork",
]
