"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import delete, insert, or_, select, update

from casebook.adapters.sqlalchemy.errors import translate_errors
from casebook.adapters.sqlalchemy.mappings import (
    attribute_table,
    attribute_value_table,
    benevolence_result_table,
    request_document_table,
)
from casebook.domain.errors import SchemaResolutionFailure
from casebook.domain.model import (
    AttributeDefinition,
    BenevolenceRequest,
    BenevolenceResult,
    Classifier,
    EntityType,
    RequestDocument,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from sqlalchemy.orm import Session


class SqlAlchemyBenevolenceRequestRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: BenevolenceRequest) -> None:
        self.session.add(entity)

    def get(self, request_id: int) -> BenevolenceRequest | None:
        with translate_errors("load request"):
            return self.session.get(BenevolenceRequest, request_id)


class SqlAlchemyBenevolenceResultRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def for_request(self, request_id: int) -> tuple[BenevolenceResult, ...]:
        stmt = (
            select(BenevolenceResult)
            .where(benevolence_result_table.c._request_id == request_id)  # noqa: SLF001
            .order_by(benevolence_result_table.c.id)
        )
        with translate_errors("load results"):
            return tuple(self.session.execute(stmt).scalars())


class SqlAlchemyAttributeDefinitionRepository:
    """Attribute schema rows, one per ``(entity type, qualifier, key)``."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def load_definitions(self, classifier: Classifier) -> tuple[AttributeDefinition, ...]:
        try:
            entity_type = EntityType(classifier.entity_type)
        except ValueError as exc:
            raise SchemaResolutionFailure(classifier) from exc

        qualifier_clause = attribute_table.c.qualifier.is_(None)
        if classifier.qualifier is not None:
            qualifier_clause = or_(
                qualifier_clause, attribute_table.c.qualifier == classifier.qualifier
            )
        stmt = (
            select(attribute_table)
            .where(attribute_table.c.entity_type == entity_type)
            .where(qualifier_clause)
            .order_by(attribute_table.c["order"], attribute_table.c.key)
        )
        with translate_errors("load attribute definitions"):
            rows = self.session.execute(stmt).mappings().all()
        return tuple(
            AttributeDefinition(
                id=row["id"],
                key=row["key"],
                name=row["name"],
                default_value=row["default_value"],
                is_grid_column=row["is_grid_column"],
                order=row["order"],
                qualifier=row["qualifier"],
            )
            for row in rows
        )

    def define(self, entity_type: EntityType, definition: AttributeDefinition) -> int:
        """Create or replace a definition, returning its id."""

        qualifier_clause = (
            attribute_table.c.qualifier.is_(None)
            if definition.qualifier is None
            else attribute_table.c.qualifier == definition.qualifier
        )
        values = {
            "name": definition.name,
            "default_value": definition.default_value,
            "is_grid_column": definition.is_grid_column,
            "order": definition.order,
        }
        with translate_errors("define attribute"):
            existing = self.session.execute(
                select(attribute_table.c.id)
                .where(attribute_table.c.entity_type == entity_type)
                .where(attribute_table.c.key == definition.key)
                .where(qualifier_clause)
            ).scalar_one_or_none()
            if existing is not None:
                self.session.execute(
                    update(attribute_table).where(attribute_table.c.id == existing).values(values)
                )
                return cast(int, existing)
            result = self.session.execute(
                insert(attribute_table).values(
                    entity_type=entity_type,
                    qualifier=definition.qualifier,
                    key=definition.key,
                    **values,
                )
            )
            return cast(int, result.inserted_primary_key[0])


class SqlAlchemyAttributeValueRepository:
    """Sidecar attribute values keyed by ``(attribute id, entity id)``."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def load(self, entity_type: EntityType, entity_id: int) -> dict[str, str | None]:
        stmt = (
            select(attribute_table.c.key, attribute_value_table.c.value)
            .join(attribute_table, attribute_table.c.id == attribute_value_table.c.attribute_id)
            .where(attribute_table.c.entity_type == entity_type)
            .where(attribute_value_table.c.entity_id == entity_id)
        )
        with translate_errors("load attribute values"):
            rows = self.session.execute(stmt).all()
        return {key: value for key, value in rows}

    def save(
        self,
        entity_type: EntityType,
        entity_id: int,
        definitions: Iterable[AttributeDefinition],
        values: Mapping[str, str | None],
    ) -> None:
        """Replace the stored values of ``entity_id`` for the given definitions."""

        _ = entity_type
        attribute_ids = {
            definition.key: definition.id for definition in definitions if definition.id is not None
        }
        if not attribute_ids:
            return
        rows = [
            {"attribute_id": attribute_id, "entity_id": entity_id, "value": values[key]}
            for key, attribute_id in attribute_ids.items()
            if key in values
        ]
        with translate_errors("save attribute values"):
            self.session.execute(
                delete(attribute_value_table)
                .where(attribute_value_table.c.entity_id == entity_id)
                .where(attribute_value_table.c.attribute_id.in_(attribute_ids.values()))
            )
            if rows:
                self.session.execute(insert(attribute_value_table), rows)

    def delete_for(self, entity_type: EntityType, entity_ids: Iterable[int]) -> int:
        ids = list(entity_ids)
        if not ids:
            return 0
        attribute_ids = select(attribute_table.c.id).where(
            attribute_table.c.entity_type == entity_type
        )
        stmt = (
            delete(attribute_value_table)
            .where(attribute_value_table.c.entity_id.in_(ids))
            .where(attribute_value_table.c.attribute_id.in_(attribute_ids))
        )
        with translate_errors("delete attribute values"):
            result = self.session.execute(stmt)
        return result.rowcount


class SqlAlchemyRequestDocumentRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def for_request(self, request_id: int) -> tuple[RequestDocument, ...]:
        stmt = (
            select(RequestDocument)
            .where(request_document_table.c._request_id == request_id)  # noqa: SLF001
            .order_by(request_document_table.c["order"])
        )
        with translate_errors("load documents"):
            return tuple(self.session.execute(stmt).scalars())

    def add(self, document: RequestDocument, *, request_id: int) -> None:
        with translate_errors("link document"):
            request = self.session.get(BenevolenceRequest, request_id)
        if request is None:
            raise LookupError(f"Request {request_id} does not exist")
        document._request = request  # noqa: SLF001
        self.session.add(document)

    def remove(self, document: RequestDocument) -> None:
        request = document.request
        if request is not None:
            request.unlink_document(document)
        else:
            self.session.delete(document)


if TYPE_CHECKING:
    from casebook.domain.ports.persistence import (
        AttributeDefinitionRepository,
        AttributeValueRepository,
        BenevolenceRequestRepository,
        BenevolenceResultRepository,
        RequestDocumentRepository,
    )

    _session_stub = cast("Session", object())
    _request_repo: BenevolenceRequestRepository = SqlAlchemyBenevolenceRequestRepository(
        _session_stub
    )
    _result_repo: BenevolenceResultRepository = SqlAlchemyBenevolenceResultRepository(
        _session_stub
    )
    _definition_repo: AttributeDefinitionRepository = SqlAlchemyAttributeDefinitionRepository(
        _session_stub
    )
    _value_repo: AttributeValueRepository = SqlAlchemyAttributeValueRepository(_session_stub)
    _document_repo: RequestDocumentRepository = SqlAlchemyRequestDocumentRepository(
        _session_stub
    )
