"""Benevolence requests and their owned results and document links.

Aggregate root: BenevolenceRequest owns BenevolenceResult rows (1:n) and
RequestDocument links (1:n, ordered).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Final

from casebook.domain.errors import ValidationError
from casebook.domain.model.attributes import AttributedMixin, Classifier
from casebook.domain.model.entity import Entity, new_guid
from casebook.domain.model.enums import EntityType

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID


REQUEST_FIELDS: Final[tuple[str, ...]] = (
    "first_name",
    "last_name",
    "email",
    "government_id",
    "request_text",
    "result_summary",
    "provided_next_steps",
    "request_date",
    "campus_id",
    "location_id",
    "requested_by_person_alias_id",
    "case_worker_person_alias_id",
    "request_status_value_id",
    "connection_status_value_id",
    "home_phone_number",
    "cell_phone_number",
    "work_phone_number",
)
REQUIRED_REQUEST_FIELDS: Final[tuple[str, ...]] = (
    "first_name",
    "last_name",
    "request_text",
    "request_date",
)
RESULT_FIELDS: Final[tuple[str, ...]] = ("amount", "result_summary", "result_type_value_id")


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(eq=False, kw_only=True)
class BenevolenceRequest(Entity, AttributedMixin):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.BENEVOLENCE_REQUEST

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    government_id: str | None = None
    request_text: str | None = None
    result_summary: str | None = None
    provided_next_steps: str | None = None
    request_date: datetime | None = None

    campus_id: int | None = None
    location_id: int | None = None
    requested_by_person_alias_id: int | None = None
    case_worker_person_alias_id: int | None = None
    request_status_value_id: int | None = None
    connection_status_value_id: int | None = None

    home_phone_number: str | None = None
    cell_phone_number: str | None = None
    work_phone_number: str | None = None

    version: int | None = None

    # Owned children
    _results: list[BenevolenceResult] = field(
        default_factory=list["BenevolenceResult"], repr=False
    )
    _documents: list[RequestDocument] = field(default_factory=list["RequestDocument"], repr=False)

    @property
    def classifier(self) -> Classifier:
        return Classifier(self.ENTITY_TYPE)

    @property
    def results(self) -> tuple[BenevolenceResult, ...]:
        return tuple(self._results)

    @property
    def documents(self) -> tuple[RequestDocument, ...]:
        return tuple(sorted(self._documents, key=lambda document: document.order))

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def apply_changes(self, changes: Mapping[str, object]) -> None:
        unknown = sorted(name for name in changes if name not in REQUEST_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown request fields: {', '.join(unknown)}", fields=unknown, record=self
            )
        for name, value in changes.items():
            setattr(self, name, value)

    def validate(self) -> None:
        missing = [name for name in REQUIRED_REQUEST_FIELDS if _is_blank(getattr(self, name))]
        if missing:
            raise ValidationError(
                f"Request is missing required fields: {', '.join(missing)}",
                fields=missing,
                record=self,
            )

    # Commands (ownership here)
    def add_result(self, result: BenevolenceResult) -> None:
        if result.request is not None and result.request is not self:
            raise ValueError("result already owned by another request")
        result._request = self  # pyright: ignore[reportPrivateUsage] # noqa: SLF001
        if result not in self._results:
            self._results.append(result)

    def remove_result(self, result: BenevolenceResult) -> None:
        if result not in self._results:
            raise ValueError("result not owned by this request")
        self._results.remove(result)
        result._request = None  # pyright: ignore[reportPrivateUsage] # noqa: SLF001

    def link_document(self, binary_file_id: int, *, order: int) -> RequestDocument:
        if any(document.binary_file_id == binary_file_id for document in self._documents):
            raise ValueError(f"document {binary_file_id} already linked")
        document = RequestDocument(binary_file_id=binary_file_id, order=order)
        document._request = self  # pyright: ignore[reportPrivateUsage] # noqa: SLF001
        if document not in self._documents:
            self._documents.append(document)
        return document

    def unlink_document(self, document: RequestDocument) -> None:
        if document not in self._documents:
            raise ValueError("document not linked to this request")
        self._documents.remove(document)
        document._request = None  # pyright: ignore[reportPrivateUsage] # noqa: SLF001


@dataclass(eq=False, kw_only=True)
class BenevolenceResult(Entity, AttributedMixin):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.BENEVOLENCE_RESULT

    result_type_value_id: int
    amount: Decimal | None = None
    result_summary: str | None = None

    version: int | None = None

    _request: BenevolenceRequest | None = field(default=None, repr=False)

    @property
    def request(self) -> BenevolenceRequest | None:
        return self._request

    @property
    def classifier(self) -> Classifier:
        return result_classifier(self.result_type_value_id)


@dataclass(eq=False, kw_only=True)
class RequestDocument:
    """Ordered link from a request to an externally stored binary file."""

    binary_file_id: int
    order: int = 0
    id: int | None = None

    _request: BenevolenceRequest | None = field(default=None, repr=False)

    @property
    def request(self) -> BenevolenceRequest | None:
        return self._request


@dataclass(eq=False, kw_only=True)
class StagedResult(AttributedMixin):
    """Editable copy of a result held in the staging store between edit rounds.

    ``result_id`` and ``version`` record the persisted row this copy was seeded
    from (both ``None`` for results added during the session). Matching against
    storage only ever uses ``guid``.
    """

    result_type_value_id: int
    guid: UUID = field(default_factory=new_guid)
    amount: Decimal | None = None
    result_summary: str | None = None
    result_type_name: str | None = None

    result_id: int | None = None
    version: int | None = None

    @classmethod
    def from_result(
        cls, result: BenevolenceResult, *, result_type_name: str | None = None
    ) -> StagedResult:
        staged = cls(
            guid=result.guid,
            result_type_value_id=result.result_type_value_id,
            amount=result.amount,
            result_summary=result.result_summary,
            result_type_name=result_type_name,
            result_id=result.id,
            version=result.version,
        )
        staged.attach_attributes(
            result.attributes.values(), dict(result.explicit_attribute_values)
        )
        return staged

    @property
    def classifier(self) -> Classifier:
        return result_classifier(self.result_type_value_id)

    def validate(self) -> None:
        if not self.result_type_value_id or self.result_type_value_id <= 0:
            raise ValidationError(
                "Result type is required",
                fields=("result_type_value_id",),
                record=self,
            )
        if self.amount is not None and self.amount < 0:
            raise ValidationError(
                "Result amount cannot be negative", fields=("amount",), record=self
            )

    def to_result(self) -> BenevolenceResult:
        """Build a new (unpersisted) result carrying this copy's correlation key."""
        result = BenevolenceResult(guid=self.guid, result_type_value_id=self.result_type_value_id)
        self.apply_to(result)
        return result

    def apply_to(self, result: BenevolenceResult) -> None:
        """Copy scalar fields, classifier and attribute values forward onto ``result``."""
        if result.guid != self.guid:
            raise ValueError("cannot apply a staged result to a different record")
        for name in RESULT_FIELDS:
            setattr(result, name, getattr(self, name))
        result.attach_attributes(self.attributes.values())
        result.set_attribute_values(self.attribute_values)

    def differs_from(self, result: BenevolenceResult) -> bool:
        if any(getattr(self, name) != getattr(result, name) for name in RESULT_FIELDS):
            return True
        return self.attribute_values != result.attribute_values


def result_classifier(result_type_value_id: int) -> Classifier:
    return Classifier(EntityType.BENEVOLENCE_RESULT, qualifier=str(result_type_value_id))
