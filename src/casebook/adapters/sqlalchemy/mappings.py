"""SQLAlchemy mapping metadata for the casebook domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    event,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from casebook.domain.model import (
    AttributedMixin,
    BenevolenceRequest,
    BenevolenceResult,
    EntityType,
    RequestDocument,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------

benevolence_request_table = Table(
    "benevolence_request",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("guid", UUIDColumnType, nullable=False, unique=True, default=uuid.uuid4),
    Column("first_name", String(50), nullable=False),
    Column("last_name", String(50), nullable=False),
    Column("email", String(254), nullable=True),
    Column("government_id", String(100), nullable=True),
    Column("request_text", Text, nullable=False),
    Column("result_summary", Text, nullable=True),
    Column("provided_next_steps", Text, nullable=True),
    Column("request_date", UTCDateTime(), nullable=False),
    Column("campus_id", Integer, nullable=True),
    Column("location_id", Integer, nullable=True),
    Column("requested_by_person_alias_id", Integer, nullable=True),
    Column("case_worker_person_alias_id", Integer, nullable=True),
    Column("request_status_value_id", Integer, nullable=True),
    Column("connection_status_value_id", Integer, nullable=True),
    Column("home_phone_number", String(50), nullable=True),
    Column("cell_phone_number", String(50), nullable=True),
    Column("work_phone_number", String(50), nullable=True),
    Column("version", Integer, nullable=False),
)

benevolence_result_table = Table(
    "benevolence_result",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("guid", UUIDColumnType, nullable=False, unique=True),
    Column(
        "request_id",
        Integer,
        ForeignKey("benevolence_request.id", ondelete="CASCADE"),
        key="_request_id",
        nullable=False,
    ),
    Column("result_type_value_id", Integer, nullable=False),
    Column("amount", Numeric(12, 2, asdecimal=True), nullable=True),
    Column("result_summary", Text, nullable=True),
    Column("version", Integer, nullable=False),
    Index("ix_benevolence_result_request", "_request_id"),
)

binary_file_table = Table(
    "binary_file",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("file_name", String(255), nullable=True),
    Column("is_temporary", Boolean, nullable=False, default=True),
)

request_document_table = Table(
    "request_document",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "request_id",
        Integer,
        ForeignKey("benevolence_request.id", ondelete="CASCADE"),
        key="_request_id",
        nullable=False,
    ),
    Column("binary_file_id", Integer, ForeignKey("binary_file.id"), nullable=False),
    Column("order", Integer, nullable=False, default=0),
    UniqueConstraint("_request_id", "binary_file_id"),
)

# Attribute sidecars ------------------------------------------------------------

attribute_table = Table(
    "attribute",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("entity_type", Enum(EntityType, native_enum=False), nullable=False),
    Column("qualifier", String(100), nullable=True),
    Column("key", String(100), nullable=False),
    Column("name", String(255), nullable=False),
    Column("default_value", Text, nullable=True),
    Column("is_grid_column", Boolean, nullable=False, default=False),
    Column("order", Integer, nullable=False, default=0),
    UniqueConstraint("entity_type", "qualifier", "key"),
    Index("ix_attribute_entity_type", "entity_type"),
)

attribute_value_table = Table(
    "attribute_value",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "attribute_id",
        Integer,
        ForeignKey("attribute.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("entity_id", Integer, nullable=False),
    Column("value", Text, nullable=True),
    UniqueConstraint("attribute_id", "entity_id"),
    Index("ix_attribute_value_entity", "entity_id"),
)


def _reset_attribute_state(target: AttributedMixin, context: object) -> None:
    # loading bypasses __init__, so the dataclass default never ran
    _ = context
    target.reset_attribute_state()


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        BenevolenceRequest,
        benevolence_request_table,
        version_id_col=benevolence_request_table.c.version,
        properties={
            "_results": relationship(
                BenevolenceResult,
                back_populates="_request",
                cascade="all, delete-orphan",
                order_by=benevolence_result_table.c.id,
            ),
            "_documents": relationship(
                RequestDocument,
                back_populates="_request",
                cascade="all, delete-orphan",
                order_by=request_document_table.c["order"],
            ),
        },
    )

    mapper_registry.map_imperatively(
        BenevolenceResult,
        benevolence_result_table,
        version_id_col=benevolence_result_table.c.version,
        properties={
            "_request": relationship(
                BenevolenceRequest,
                back_populates="_results",
            ),
        },
    )

    mapper_registry.map_imperatively(
        RequestDocument,
        request_document_table,
        properties={
            "_request": relationship(
                BenevolenceRequest,
                back_populates="_documents",
            ),
        },
    )

    for entity_cls in (BenevolenceRequest, BenevolenceResult):
        event.listen(entity_cls, "load", _reset_attribute_state)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
