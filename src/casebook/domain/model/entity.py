"""
Base building blocks:
durable identity and the correlation key that survives edit rounds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from casebook.domain.model.enums import EntityType


def new_guid() -> UUID:
    return uuid4()


@runtime_checkable
class Correlated(Protocol):
    """Anything that can be matched across staged and persisted representations."""

    @property
    def guid(self) -> UUID: ...


@dataclass(eq=False, kw_only=True)
class Entity:
    """Durable identity is assigned by storage; the correlation key exists immediately."""

    id: int | None = None
    guid: UUID = field(default_factory=new_guid)

    # class-level discriminator; subclasses must override
    ENTITY_TYPE: ClassVar[EntityType]

    @property
    def entity_type(self) -> EntityType:
        return self.ENTITY_TYPE

    @property
    def is_new(self) -> bool:
        return self.id is None
