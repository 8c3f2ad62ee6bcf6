"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from casebook.domain.ports.blob_store import BlobStore
    from casebook.domain.ports.persistence import (
        AttributeDefinitionRepository,
        AttributeValueRepository,
        BenevolenceRequestRepository,
        BenevolenceResultRepository,
        RequestDocumentRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection.

    ``flush`` pushes pending changes (assigning durable ids) without ending the
    transaction; ``commit`` makes them visible to other readers.
    """

    @property
    def repositories(self) -> TRepositories: ...  # the repo list itself should be immutable

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def flush(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class RequestRepositories(RepositoryCollection):
    """Repositories required to edit and persist benevolence requests."""

    requests: BenevolenceRequestRepository
    results: BenevolenceResultRepository
    attribute_definitions: AttributeDefinitionRepository
    attribute_values: AttributeValueRepository
    documents: RequestDocumentRepository
    blobs: BlobStore


type RequestUnitOfWork = UnitOfWork[RequestRepositories]
