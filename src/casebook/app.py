"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from casebook.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyAttributeDefinitionSource,
    SqlAlchemyRequestUnitOfWork,
    is_started,
    startup,
)
from casebook.config import get_document_config
from casebook.domain.editing import RequestEditSession
from casebook.domain.ports.unit_of_work import RequestUnitOfWork
from casebook.domain.schema import AttributeSchemaRegistry

if TYPE_CHECKING:
    from casebook.domain.model import AttributeDefinition, EntityType
    from casebook.domain.ports import AttributeDefinitionSource

UnitOfWorkFactory = Callable[[], RequestUnitOfWork]


log = getLogger(__name__)


def initialise_storage(*, database_uri: str | None = None) -> None:
    """Start the SQLAlchemy adapter once and create the schema."""

    if is_started():
        return
    startup(database_uri=database_uri)
    log.info("Storage initialised")


def build_registry(source: AttributeDefinitionSource | None = None) -> AttributeSchemaRegistry:
    return AttributeSchemaRegistry(source or SqlAlchemyAttributeDefinitionSource())


def open_edit_session(
    request_id: int | None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    registry: AttributeSchemaRegistry | None = None,
) -> RequestEditSession:
    """Load a request (``None`` or ``0`` for a new one) into a fresh edit session."""

    if unit_of_work_factory is None:
        initialise_storage()
    session = RequestEditSession(
        request_id,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyRequestUnitOfWork,
        registry=registry or build_registry(),
        document_config=get_document_config(),
    )
    session.load()
    return session


def define_attribute(
    entity_type: EntityType,
    definition: AttributeDefinition,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> int:
    """Create or replace an attribute definition."""

    if unit_of_work_factory is None:
        initialise_storage()
    effective_uow = unit_of_work_factory or SqlAlchemyRequestUnitOfWork
    with effective_uow() as uow:
        attribute_id = uow.repositories.attribute_definitions.define(entity_type, definition)
        uow.commit()
    log.info("Defined attribute %s for %s (id=%s)", definition.key, entity_type, attribute_id)
    return attribute_id
