"""Builders and fakes for request editing tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from casebook.domain.errors import SchemaResolutionFailure
from casebook.domain.model import (
    AttributeDefinition,
    BenevolenceRequest,
    BenevolenceResult,
    Classifier,
    EntityType,
    StagedResult,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from uuid import UUID

    from casebook.domain.ports import RequestUnitOfWork

REQUEST_DATE = datetime(2024, 3, 1, 9, 30, tzinfo=UTC)
RENT_ASSISTANCE = 7
FOOD_VOUCHER = 8


def make_request(**overrides: object) -> BenevolenceRequest:
    fields: dict[str, object] = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "request_text": "Help with March rent",
        "request_date": REQUEST_DATE,
    }
    fields.update(overrides)
    return BenevolenceRequest(**fields)  # pyright: ignore[reportArgumentType]


def make_result(
    amount: str | None = "50",
    *,
    guid: UUID | None = None,
    result_id: int | None = None,
    result_type_value_id: int = RENT_ASSISTANCE,
) -> BenevolenceResult:
    result = BenevolenceResult(
        id=result_id,
        result_type_value_id=result_type_value_id,
        amount=Decimal(amount) if amount is not None else None,
    )
    if guid is not None:
        result.guid = guid
    return result


def make_staged(
    amount: str | None = "50",
    *,
    guid: UUID | None = None,
    result_type_value_id: int = RENT_ASSISTANCE,
) -> StagedResult:
    staged = StagedResult(
        result_type_value_id=result_type_value_id,
        amount=Decimal(amount) if amount is not None else None,
    )
    if guid is not None:
        staged.guid = guid
    return staged


@dataclass
class FakeDefinitionSource:
    """In-memory attribute schemas; unknown entity types fail to resolve."""

    definitions: dict[str, list[AttributeDefinition]] = field(
        default_factory=dict["str", "list[AttributeDefinition]"]
    )
    calls: list[Classifier] = field(default_factory=list["Classifier"])

    def define(self, entity_type: EntityType, definition: AttributeDefinition) -> None:
        self.definitions.setdefault(entity_type.value, []).append(definition)

    def load_definitions(self, classifier: Classifier) -> Sequence[AttributeDefinition]:
        self.calls.append(classifier)
        if classifier.entity_type not in self.definitions:
            raise SchemaResolutionFailure(classifier)
        return tuple(self.definitions[classifier.entity_type])


def define_default_attributes(
    unit_of_work_factory: Callable[[], RequestUnitOfWork],
) -> None:
    """Store a small schema: one request attribute and two rent-assistance result attributes."""

    with unit_of_work_factory() as uow:
        definitions = uow.repositories.attribute_definitions
        definitions.define(
            EntityType.BENEVOLENCE_REQUEST,
            AttributeDefinition(
                key="referral_source", name="Referral Source", default_value="walk-in"
            ),
        )
        definitions.define(
            EntityType.BENEVOLENCE_RESULT,
            AttributeDefinition(
                key="check_number",
                name="Check Number",
                is_grid_column=True,
                qualifier=str(RENT_ASSISTANCE),
            ),
        )
        definitions.define(
            EntityType.BENEVOLENCE_RESULT,
            AttributeDefinition(key="notes", name="Notes", order=1),
        )
        uow.commit()


def register_files(
    unit_of_work_factory: Callable[[], RequestUnitOfWork], *names: str
) -> list[int]:
    with unit_of_work_factory() as uow:
        blobs = uow.repositories.blobs
        ids = [blobs.register(name) for name in names]  # pyright: ignore[reportAttributeAccessIssue]
        uow.commit()
    return ids
