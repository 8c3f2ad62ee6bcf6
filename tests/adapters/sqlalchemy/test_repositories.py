from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from casebook.adapters.sqlalchemy.blob_store import SqlAlchemyBlobStore
from casebook.adapters.sqlalchemy.repositories import (
    SqlAlchemyAttributeDefinitionRepository,
    SqlAlchemyAttributeValueRepository,
    SqlAlchemyBenevolenceResultRepository,
)
from casebook.domain.errors import SchemaResolutionFailure
from casebook.domain.model import AttributeDefinition, Classifier, EntityType, result_classifier
from tests.helpers.requests import RENT_ASSISTANCE, make_request, make_result

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def test_define_replaces_existing_definition(sqlite_session: Session) -> None:
    repository = SqlAlchemyAttributeDefinitionRepository(sqlite_session)

    first = repository.define(
        EntityType.BENEVOLENCE_REQUEST, AttributeDefinition(key="referral", name="Referral")
    )
    second = repository.define(
        EntityType.BENEVOLENCE_REQUEST,
        AttributeDefinition(key="referral", name="Referred By", default_value="walk-in"),
    )

    assert first == second
    (definition,) = repository.load_definitions(Classifier(EntityType.BENEVOLENCE_REQUEST))
    assert definition.name == "Referred By"
    assert definition.default_value == "walk-in"
    assert definition.id == first


def test_load_definitions_includes_shared_and_matching_qualified(sqlite_session: Session) -> None:
    repository = SqlAlchemyAttributeDefinitionRepository(sqlite_session)
    repository.define(
        EntityType.BENEVOLENCE_RESULT, AttributeDefinition(key="notes", name="Notes", order=2)
    )
    repository.define(
        EntityType.BENEVOLENCE_RESULT,
        AttributeDefinition(key="check_number", name="Check", qualifier=str(RENT_ASSISTANCE)),
    )
    repository.define(
        EntityType.BENEVOLENCE_RESULT, AttributeDefinition(key="store", name="Store", qualifier="8")
    )

    keys = [d.key for d in repository.load_definitions(result_classifier(RENT_ASSISTANCE))]

    assert keys == ["check_number", "notes"]


def test_unknown_entity_type_fails_to_resolve(sqlite_session: Session) -> None:
    repository = SqlAlchemyAttributeDefinitionRepository(sqlite_session)

    with pytest.raises(SchemaResolutionFailure):
        repository.load_definitions(Classifier("pledge"))


def test_attribute_values_save_replaces_and_delete_for_scopes_by_type(
    sqlite_session: Session,
) -> None:
    definitions = SqlAlchemyAttributeDefinitionRepository(sqlite_session)
    note_id = definitions.define(
        EntityType.BENEVOLENCE_RESULT, AttributeDefinition(key="notes", name="Notes")
    )
    referral_id = definitions.define(
        EntityType.BENEVOLENCE_REQUEST, AttributeDefinition(key="referral", name="Referral")
    )
    note = AttributeDefinition(key="notes", name="Notes", id=note_id)
    referral = AttributeDefinition(key="referral", name="Referral", id=referral_id)
    values = SqlAlchemyAttributeValueRepository(sqlite_session)

    values.save(EntityType.BENEVOLENCE_RESULT, 5, [note], {"notes": "first"})
    values.save(EntityType.BENEVOLENCE_RESULT, 5, [note], {"notes": "second"})
    values.save(EntityType.BENEVOLENCE_REQUEST, 5, [referral], {"referral": "church"})

    assert values.load(EntityType.BENEVOLENCE_RESULT, 5) == {"notes": "second"}

    assert values.delete_for(EntityType.BENEVOLENCE_RESULT, [5]) == 1
    assert values.delete_for(EntityType.BENEVOLENCE_RESULT, []) == 0
    assert values.load(EntityType.BENEVOLENCE_RESULT, 5) == {}
    assert values.load(EntityType.BENEVOLENCE_REQUEST, 5) == {"referral": "church"}


def test_results_are_listed_per_request(sqlite_session: Session) -> None:
    first, second = make_request(), make_request(first_name="Grace")
    first.add_result(make_result("10"))
    first.add_result(make_result("20"))
    second.add_result(make_result("30"))
    sqlite_session.add_all([first, second])
    sqlite_session.flush()
    assert first.id is not None

    results = SqlAlchemyBenevolenceResultRepository(sqlite_session).for_request(first.id)

    assert [result.amount for result in results] == [Decimal("10"), Decimal("20")]


def test_blob_store_flags(sqlite_session: Session) -> None:
    blobs = SqlAlchemyBlobStore(sqlite_session)
    file_id = blobs.register("scan.pdf")

    meta = blobs.fetch_blob_meta(file_id)
    assert meta is not None
    assert meta.is_temporary
    assert meta.file_name == "scan.pdf"

    blobs.set_blob_temporary(file_id, False)  # noqa: FBT003
    meta = blobs.fetch_blob_meta(file_id)
    assert meta is not None
    assert not meta.is_temporary
    assert blobs.fetch_blob_meta(file_id + 1) is None
