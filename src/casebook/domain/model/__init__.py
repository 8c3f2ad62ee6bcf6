"""Public domain model surface."""

from __future__ import annotations

from casebook.domain.model.attributes import (
    AttributedMixin,
    AttributeDefinition,
    AttributeState,
    Classifier,
)
from casebook.domain.model.entity import Correlated, Entity, new_guid
from casebook.domain.model.enums import EntityType
from casebook.domain.model.requests import (
    REQUEST_FIELDS,
    REQUIRED_REQUEST_FIELDS,
    RESULT_FIELDS,
    BenevolenceRequest,
    BenevolenceResult,
    RequestDocument,
    StagedResult,
    result_classifier,
)

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "Correlated",
    "new_guid",
    # attributes
    "AttributeDefinition",
    "AttributeState",
    "AttributedMixin",
    "Classifier",
    # requests
    "BenevolenceRequest",
    "BenevolenceResult",
    "RequestDocument",
    "StagedResult",
    "result_classifier",
    "REQUEST_FIELDS",
    "REQUIRED_REQUEST_FIELDS",
    "RESULT_FIELDS",
    # enums
    "EntityType",
]
