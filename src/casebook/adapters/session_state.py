"""Pydantic models for carrying an edit session's working set between requests.

The presentation layer stores the JSON produced by ``dump_session`` (view
state, a cookie, a cache entry) and hands it back to ``restore_session`` on
the next edit round. Only the staged working set, the observed request
version and the result ids it was seeded from travel; the request itself
is reloaded from storage.
"""

from __future__ import annotations

from decimal import Decimal  # noqa: TC003
from typing import TYPE_CHECKING, Any, Literal
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from casebook.domain.editing import RequestEditSession
from casebook.domain.model import StagedResult
from casebook.domain.staging import StagedDocumentList, StagingStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from casebook.domain.ports import RequestUnitOfWork
    from casebook.domain.schema import AttributeSchemaRegistry


class SessionStateModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class StagedResultState(SessionStateModel):
    guid: UUID
    result_type_value_id: int
    amount: Decimal | None = None
    result_summary: str | None = None
    result_type_name: str | None = None
    result_id: int | None = None
    version: int | None = None
    attributes: dict[str, str | None] = Field(default_factory=dict)

    @classmethod
    def from_staged(cls, staged: StagedResult) -> StagedResultState:
        return cls(
            guid=staged.guid,
            result_type_value_id=staged.result_type_value_id,
            amount=staged.amount,
            result_summary=staged.result_summary,
            result_type_name=staged.result_type_name,
            result_id=staged.result_id,
            version=staged.version,
            attributes=dict(staged.explicit_attribute_values),
        )

    def to_staged(self, registry: AttributeSchemaRegistry) -> StagedResult:
        staged = StagedResult(
            guid=self.guid,
            result_type_value_id=self.result_type_value_id,
            amount=self.amount,
            result_summary=self.result_summary,
            result_type_name=self.result_type_name,
            result_id=self.result_id,
            version=self.version,
        )
        registry.attach(staged, self.attributes)
        return staged


class EditSessionState(SessionStateModel):
    format: Literal[1] = 1
    request_id: int | None = None
    loaded_version: int | None = None
    seen_result_ids: list[int] | None = None
    results: list[StagedResultState] = Field(default_factory=list)
    document_ids: list[int] = Field(default_factory=list)


def dump_session(session: RequestEditSession) -> str:
    """Serialize the staged working set of ``session`` to JSON."""

    state = EditSessionState(
        request_id=session.request_id,
        loaded_version=session.loaded_version,
        seen_result_ids=(
            None if session.seen_result_ids is None else sorted(session.seen_result_ids)
        ),
        results=[StagedResultState.from_staged(staged) for staged in session.results],
        document_ids=list(session.document_ids),
    )
    return state.model_dump_json()


def restore_session(
    payload: str | bytes,
    *,
    unit_of_work_factory: Callable[[], RequestUnitOfWork],
    registry: AttributeSchemaRegistry,
    **session_options: Any,
) -> RequestEditSession:
    """Rebuild an edit session whose staging stores are already seeded.

    Attribute values are re-attached against the current schema, so keys no
    longer defined for a result's type are dropped.
    """

    state = EditSessionState.model_validate_json(payload)

    results: StagingStore[StagedResult] = StagingStore()
    results.seed(item.to_staged(registry) for item in state.results)
    documents = StagedDocumentList()
    documents.seed(state.document_ids)

    return RequestEditSession(
        state.request_id,
        unit_of_work_factory=unit_of_work_factory,
        registry=registry,
        results=results,
        documents=documents,
        loaded_version=state.loaded_version,
        seen_result_ids=state.seen_result_ids,
        **session_options,
    )
