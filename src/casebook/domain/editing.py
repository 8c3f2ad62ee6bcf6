"""Edit session for one benevolence request.

A session loads the request (or a blank one), seeds the staging stores from
storage on the first load only, applies user edits to the staging stores and
finally saves everything in one commit followed by document reconciliation.
Nothing touches storage between ``load`` and ``save``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from casebook.config.documents import DocumentConfig
from casebook.domain.commit import TransactionCoordinator
from casebook.domain.documents import DocumentLifecycleManager
from casebook.domain.errors import (
    ConflictError,
    DocumentLimitError,
    ValidationError,
)
from casebook.domain.model import (
    REQUEST_FIELDS,
    RESULT_FIELDS,
    BenevolenceRequest,
    Classifier,
    EntityType,
    StagedResult,
)
from casebook.domain.reconciliation import reconcile
from casebook.domain.staging import StagedDocumentList, StagingStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from decimal import Decimal
    from uuid import UUID

    from casebook.domain.commit import CommitResult
    from casebook.domain.documents import DocumentReconciliation
    from casebook.domain.model import AttributeDefinition, BenevolenceResult
    from casebook.domain.ports import RequestRepositories, RequestUnitOfWork
    from casebook.domain.schema import AttributeSchemaRegistry


log = getLogger(__name__)

_EDITABLE_RESULT_FIELDS = (*RESULT_FIELDS, "result_type_name")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Outcome of ``RequestEditSession.save``."""

    commit: CommitResult
    documents: DocumentReconciliation

    @property
    def request_id(self) -> int:
        return self.commit.request_id


class RequestEditSession:
    """Working set for editing one request across several edit rounds."""

    def __init__(  # noqa: PLR0913
        self,
        request_id: int | None,
        *,
        unit_of_work_factory: Callable[[], RequestUnitOfWork],
        registry: AttributeSchemaRegistry,
        coordinator: TransactionCoordinator | None = None,
        document_manager: DocumentLifecycleManager | None = None,
        document_config: DocumentConfig | None = None,
        results: StagingStore[StagedResult] | None = None,
        documents: StagedDocumentList | None = None,
        loaded_version: int | None = None,
        seen_result_ids: Iterable[int] | None = None,
        now_provider: Callable[[], datetime] = _utcnow,
    ) -> None:
        # 0 is how callers outside the engine spell "not yet persisted"
        self._request_id = request_id or None
        self._unit_of_work_factory = unit_of_work_factory
        self._registry = registry
        self._coordinator = coordinator or TransactionCoordinator()
        self._document_manager = document_manager or DocumentLifecycleManager(
            unit_of_work_factory
        )
        self._document_config = document_config or DocumentConfig()
        self._results: StagingStore[StagedResult] = (
            results if results is not None else StagingStore()
        )
        self._documents = documents if documents is not None else StagedDocumentList()
        self._loaded_version = loaded_version
        self._seen_result_ids = None if seen_result_ids is None else frozenset(seen_result_ids)
        self._now = now_provider
        self._request: BenevolenceRequest | None = None

    # Queries

    @property
    def request_id(self) -> int | None:
        return self._request_id

    @property
    def is_new(self) -> bool:
        return self._request_id is None

    @property
    def loaded_version(self) -> int | None:
        return self._loaded_version

    @property
    def seen_result_ids(self) -> frozenset[int] | None:
        """Durable ids of the results the staging store was seeded from."""
        return self._seen_result_ids

    @property
    def request(self) -> BenevolenceRequest:
        if self._request is None:
            raise RuntimeError("Edit session has not been loaded")
        return self._request

    @property
    def staged_results(self) -> StagingStore[StagedResult]:
        return self._results

    @property
    def staged_documents(self) -> StagedDocumentList:
        return self._documents

    @property
    def results(self) -> tuple[StagedResult, ...]:
        return self._results.list()

    @property
    def document_ids(self) -> tuple[int, ...]:
        return self._documents.ids()

    def grid_columns(self) -> tuple[AttributeDefinition, ...]:
        """Result attributes shown as columns in result listings."""
        return self._registry.grid_columns(Classifier(EntityType.BENEVOLENCE_RESULT))

    # Lifecycle

    def load(self) -> BenevolenceRequest:
        """Load the request for display; seeds the staging stores on first load only."""

        with self._unit_of_work_factory() as uow:
            repositories = uow.repositories
            request = self._load_request(repositories)
            if request is None:
                if self._request_id is not None:
                    log.info("Request %s not found; starting a new one", self._request_id)
                    self._request_id = None
                request = BenevolenceRequest(request_date=self._now())
                self._registry.attach(request)
                if self._results.seed(()):
                    self._seen_result_ids = frozenset()
                self._documents.seed(())
            else:
                persisted = self._load_results(repositories, request.id)
                if self._results.seed(StagedResult.from_result(result) for result in persisted):
                    self._loaded_version = request.version
                    self._seen_result_ids = frozenset(
                        _require_id(result.id) for result in persisted
                    )
                self._documents.seed(
                    document.binary_file_id
                    for document in repositories.documents.for_request(_require_id(request.id))
                )

        self._request = request
        return request

    # Staging commands

    def new_result(
        self,
        result_type_value_id: int,
        *,
        amount: Decimal | None = None,
        result_summary: str | None = None,
        result_type_name: str | None = None,
        attributes: Mapping[str, str | None] | None = None,
    ) -> StagedResult:
        staged = StagedResult(
            result_type_value_id=result_type_value_id,
            amount=amount,
            result_summary=result_summary,
            result_type_name=result_type_name,
        )
        self._registry.attach(staged)
        if attributes:
            staged.set_attribute_values(attributes)
        staged.validate()
        self._results.upsert(staged)
        log.debug("Staged new result %s", staged.guid)
        return staged

    def update_result(
        self,
        guid: UUID,
        changes: Mapping[str, object] | None = None,
        *,
        attributes: Mapping[str, str | None] | None = None,
    ) -> StagedResult:
        """Edit a staged result; a new result type re-resolves its attribute schema."""

        current = self._results.get(guid)
        if current is None:
            raise LookupError(f"No staged result {guid}")
        changes = dict(changes or {})
        unknown = sorted(name for name in changes if name not in _EDITABLE_RESULT_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown result fields: {', '.join(unknown)}", fields=unknown, record=current
            )

        updated = replace(current, **changes)  # pyright: ignore[reportArgumentType]
        self._registry.attach(updated, dict(current.explicit_attribute_values))
        if attributes:
            updated.set_attribute_values(attributes)
        updated.validate()
        self._results.upsert(updated)
        return updated

    def remove_result(self, guid: UUID) -> StagedResult | None:
        return self._results.remove(guid)

    def attach_document(self, binary_file_id: int) -> None:
        limit = self._document_config.max_documents
        if binary_file_id not in self._documents and len(self._documents) >= limit:
            raise DocumentLimitError(limit)
        self._documents.add(binary_file_id)

    def detach_document(self, binary_file_id: int) -> bool:
        return self._documents.remove(binary_file_id)

    def move_document(self, binary_file_id: int, position: int) -> None:
        self._documents.move(binary_file_id, position)

    # Commit

    def save(
        self,
        changes: Mapping[str, object] | None = None,
        attribute_writes: Mapping[str, str | None] | None = None,
    ) -> SaveResult:
        """Commit parent fields, staged results and attribute values, then documents."""

        if self._request is None:
            raise RuntimeError("Edit session has not been loaded")

        with self._unit_of_work_factory() as uow:
            repositories = uow.repositories
            request = self._current_request(repositories)
            self._check_documents(repositories)
            persisted = (
                () if request.id is None else self._load_results(repositories, request.id)
            )
            # all reads come first: an autoflushed parent UPDATE would bump its version
            request.apply_changes(changes or {})

            diff = reconcile(
                self._results.list(),
                persisted,
                differs=lambda staged, result: staged.differs_from(result),
            )
            committed = self._coordinator.commit(
                uow,
                request,
                diff,
                attribute_writes,
                expected_version=self._loaded_version,
                known_result_ids=self._seen_result_ids,
            )

        # the commit stands from here on; the next edit round starts from storage
        self._request_id = committed.request_id
        self._results = StagingStore()
        self._loaded_version = None
        self._seen_result_ids = None
        try:
            documents = self._document_manager.reconcile_documents(
                committed.request_id, self._documents.ids()
            )
        except Exception as exc:
            exc.add_note(
                f"Request {committed.request_id} was committed; its documents were not updated"
            )
            # staged document ids survive the reload so the caller can fix and retry
            self.load()
            raise

        self._documents = StagedDocumentList()
        self.load()
        return SaveResult(commit=committed, documents=documents)

    # Helpers

    def _load_request(self, repositories: RequestRepositories) -> BenevolenceRequest | None:
        if self._request_id is None:
            return None
        request = repositories.requests.get(self._request_id)
        if request is not None:
            self._registry.attach(
                request,
                repositories.attribute_values.load(
                    EntityType.BENEVOLENCE_REQUEST, self._request_id
                ),
            )
        return request

    def _load_results(
        self, repositories: RequestRepositories, request_id: int | None
    ) -> tuple[BenevolenceResult, ...]:
        results = repositories.results.for_request(_require_id(request_id))
        for result in results:
            self._registry.attach(
                result,
                repositories.attribute_values.load(
                    EntityType.BENEVOLENCE_RESULT, _require_id(result.id)
                ),
            )
        return results

    def _current_request(self, repositories: RequestRepositories) -> BenevolenceRequest:
        if self._request_id is None:
            # a failed save must not leave storage state on the displayed draft
            draft = self.request
            request = BenevolenceRequest(
                guid=draft.guid, **{name: getattr(draft, name) for name in REQUEST_FIELDS}
            )
            self._registry.attach(request, dict(draft.explicit_attribute_values))
            return request
        request = self._load_request(repositories)
        if request is None:
            raise ConflictError(f"Request {self._request_id} was deleted by another session")
        return request

    def _check_documents(self, repositories: RequestRepositories) -> None:
        missing = [
            binary_file_id
            for binary_file_id in self._documents.ids()
            if repositories.blobs.fetch_blob_meta(binary_file_id) is None
        ]
        if missing:
            raise ValidationError(
                f"Unknown binary files: {', '.join(str(file_id) for file_id in missing)}",
                fields=("documents",),
            )


def _require_id(value: int | None) -> int:
    if value is None:
        raise RuntimeError("Record has no durable id")
    return value
