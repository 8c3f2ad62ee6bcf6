"""Ports for persisting requests, results, attribute rows and document links."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from casebook.domain.model import (
    AttributeDefinition,
    BenevolenceRequest,
    BenevolenceResult,
    Classifier,
    EntityType,
    RequestDocument,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class BenevolenceRequestRepository(Repository[BenevolenceRequest], Protocol):
    """Persistence contract for requests (the aggregate root)."""

    def get(self, request_id: int) -> BenevolenceRequest | None: ...


@runtime_checkable
class BenevolenceResultRepository(Protocol):
    """Read access to the persisted results of one request."""

    def for_request(self, request_id: int) -> tuple[BenevolenceResult, ...]: ...


@runtime_checkable
class AttributeDefinitionSource(Protocol):
    """Where attribute schemas come from. Raises ``SchemaResolutionFailure`` for unknown types."""

    def load_definitions(self, classifier: Classifier) -> Sequence[AttributeDefinition]: ...


@runtime_checkable
class AttributeDefinitionRepository(AttributeDefinitionSource, Protocol):
    """Attribute schema storage."""

    def define(self, entity_type: EntityType, definition: AttributeDefinition) -> int: ...


@runtime_checkable
class AttributeValueRepository(Protocol):
    """Sidecar ``(record, key) -> value`` rows."""

    def load(self, entity_type: EntityType, entity_id: int) -> dict[str, str | None]: ...

    def save(
        self,
        entity_type: EntityType,
        entity_id: int,
        definitions: Iterable[AttributeDefinition],
        values: Mapping[str, str | None],
    ) -> None: ...

    def delete_for(self, entity_type: EntityType, entity_ids: Iterable[int]) -> int: ...


@runtime_checkable
class RequestDocumentRepository(Protocol):
    """Document links of one request, ordered by ordinal."""

    def for_request(self, request_id: int) -> tuple[RequestDocument, ...]: ...

    def add(self, document: RequestDocument, *, request_id: int) -> None: ...

    def remove(self, document: RequestDocument) -> None: ...
