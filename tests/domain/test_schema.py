from __future__ import annotations

import logging

import pytest

from casebook.domain.cache import ReadThroughCache
from casebook.domain.model import (
    AttributeDefinition,
    BenevolenceRequest,
    Classifier,
    EntityType,
    result_classifier,
)
from casebook.domain.schema import AttributeSchemaRegistry
from tests.helpers.requests import (
    FOOD_VOUCHER,
    RENT_ASSISTANCE,
    FakeDefinitionSource,
    make_request,
    make_staged,
)


@pytest.fixture
def source() -> FakeDefinitionSource:
    source = FakeDefinitionSource()
    source.define(
        EntityType.BENEVOLENCE_REQUEST,
        AttributeDefinition(key="referral_source", name="Referral", default_value="walk-in"),
    )
    source.define(
        EntityType.BENEVOLENCE_RESULT,
        AttributeDefinition(key="notes", name="Notes", order=2),
    )
    source.define(
        EntityType.BENEVOLENCE_RESULT,
        AttributeDefinition(
            key="check_number",
            name="Check Number",
            order=1,
            is_grid_column=True,
            qualifier=str(RENT_ASSISTANCE),
        ),
    )
    source.define(
        EntityType.BENEVOLENCE_RESULT,
        AttributeDefinition(
            key="store", name="Store", order=1, qualifier=str(FOOD_VOUCHER)
        ),
    )
    return source


def test_resolve_filters_by_qualifier_and_orders(source: FakeDefinitionSource) -> None:
    registry = AttributeSchemaRegistry(source)

    keys = [definition.key for definition in registry.resolve(result_classifier(RENT_ASSISTANCE))]

    assert keys == ["check_number", "notes"]


def test_unqualified_classifier_sees_only_shared_definitions(
    source: FakeDefinitionSource,
) -> None:
    registry = AttributeSchemaRegistry(source)

    definitions = registry.resolve(Classifier(EntityType.BENEVOLENCE_RESULT))

    assert [definition.key for definition in definitions] == ["notes"]


def test_qualified_definition_overrides_shared_key() -> None:
    source = FakeDefinitionSource()
    source.define(
        EntityType.BENEVOLENCE_RESULT,
        AttributeDefinition(key="notes", name="Notes", default_value="shared"),
    )
    source.define(
        EntityType.BENEVOLENCE_RESULT,
        AttributeDefinition(
            key="notes", name="Notes", default_value="rent", qualifier=str(RENT_ASSISTANCE)
        ),
    )
    registry = AttributeSchemaRegistry(source)

    (definition,) = registry.resolve(result_classifier(RENT_ASSISTANCE))

    assert definition.default_value == "rent"


def test_definitions_are_resolved_once_per_classifier(source: FakeDefinitionSource) -> None:
    registry = AttributeSchemaRegistry(source)

    registry.attach(make_request())
    registry.attach(make_request())
    registry.invalidate(Classifier(EntityType.BENEVOLENCE_REQUEST))
    registry.attach(make_request())

    assert source.calls.count(Classifier(EntityType.BENEVOLENCE_REQUEST)) == 2


def test_shared_cache_can_be_injected(source: FakeDefinitionSource) -> None:
    cache: ReadThroughCache[Classifier, tuple[AttributeDefinition, ...]] = ReadThroughCache()
    AttributeSchemaRegistry(source, cache=cache).resolve(result_classifier(RENT_ASSISTANCE))

    other = AttributeSchemaRegistry(source, cache=cache)
    other.resolve(result_classifier(RENT_ASSISTANCE))

    assert len(source.calls) == 1


def test_unknown_classifier_degrades_to_no_attributes(
    caplog: pytest.LogCaptureFixture,
) -> None:
    registry = AttributeSchemaRegistry(FakeDefinitionSource())
    request = make_request()

    with caplog.at_level(logging.WARNING, logger="casebook.domain.schema"):
        registry.attach(request)

    assert dict(request.attributes) == {}
    assert "No attribute schema" in caplog.text


def test_attach_materializes_defaults(source: FakeDefinitionSource) -> None:
    registry = AttributeSchemaRegistry(source)
    request = BenevolenceRequest()

    registry.attach(request)

    assert request.attribute_values == {"referral_source": "walk-in"}
    assert dict(request.explicit_attribute_values) == {}


def test_attach_keeps_explicit_values_for_defined_keys_only(
    source: FakeDefinitionSource,
) -> None:
    registry = AttributeSchemaRegistry(source)
    staged = make_staged(result_type_value_id=RENT_ASSISTANCE)
    registry.attach(staged, {"check_number": "1001", "notes": "paid", "store": "ignored"})

    staged.result_type_value_id = FOOD_VOUCHER
    registry.attach(staged)

    assert staged.attribute_values == {"store": None, "notes": "paid"}


def test_grid_columns(source: FakeDefinitionSource) -> None:
    registry = AttributeSchemaRegistry(source)

    columns = registry.grid_columns(result_classifier(RENT_ASSISTANCE))

    assert [column.key for column in columns] == ["check_number"]
