"""Dynamic, per-type attributes attached to records at load time.

Definitions are immutable configuration resolved once per classifier. Values
are a string-encoded ``key -> value`` map per record; keys without an explicit
value materialize to the definition default.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from casebook.domain.errors import UnknownAttributeError

if TYPE_CHECKING:
    from collections.abc import Iterable

_DELIMITERS = re.compile(r"[\s|,;]+")


@dataclass(frozen=True, slots=True)
class Classifier:
    """Entity type plus an optional sub-type qualifier selecting attribute definitions."""

    entity_type: str
    qualifier: str | None = None

    def __str__(self) -> str:
        if self.qualifier is None:
            return self.entity_type
        return f"{self.entity_type}[{self.qualifier}]"


@dataclass(frozen=True, slots=True, kw_only=True)
class AttributeDefinition:
    key: str
    name: str
    default_value: str | None = None
    is_grid_column: bool = False
    order: int = 0
    qualifier: str | None = None
    id: int | None = None


@dataclass(slots=True)
class AttributeState:
    """Definitions and explicit values carried by one record instance."""

    definitions: dict[str, AttributeDefinition] = field(
        default_factory=dict["str", "AttributeDefinition"]
    )
    values: dict[str, str | None] = field(default_factory=dict["str", "str | None"])


@dataclass(eq=False, kw_only=True)
class AttributedMixin:
    """Capability: carries a dynamic attribute map."""

    _attribute_state: AttributeState = field(
        default_factory=AttributeState, init=False, repr=False
    )

    def reset_attribute_state(self) -> None:
        """Give a freshly loaded instance an empty attribute map."""
        self._attribute_state = AttributeState()

    def attach_attributes(
        self,
        definitions: Iterable[AttributeDefinition],
        values: Mapping[str, str | None] | None = None,
    ) -> None:
        """Replace the schema, keeping explicit values for keys that remain defined."""

        state = self._attribute_state
        state.definitions = {definition.key: definition for definition in definitions}
        kept = {key: value for key, value in state.values.items() if key in state.definitions}
        if values is not None:
            kept.update(
                (key, value) for key, value in values.items() if key in state.definitions
            )
        state.values = kept

    @property
    def attributes(self) -> Mapping[str, AttributeDefinition]:
        return MappingProxyType(self._attribute_state.definitions)

    @property
    def explicit_attribute_values(self) -> Mapping[str, str | None]:
        return MappingProxyType(self._attribute_state.values)

    @property
    def attribute_values(self) -> dict[str, str | None]:
        """Materialized values for every defined key, in definition order."""
        return {key: self.get_attribute_value(key) for key in self._attribute_state.definitions}

    def get_attribute_value(self, key: str) -> str | None:
        state = self._attribute_state
        if key in state.values:
            return state.values[key]
        definition = state.definitions.get(key)
        if definition is not None:
            return definition.default_value
        return None

    def get_attribute_values(self, key: str) -> list[str]:
        """Split a multi-valued attribute on the usual delimiters."""
        value = self.get_attribute_value(key)
        if value is None or not value.strip():
            return []
        return [part for part in _DELIMITERS.split(value) if part]

    def set_attribute_value(self, key: str, value: str | None) -> None:
        state = self._attribute_state
        if key not in state.definitions:
            raise UnknownAttributeError(key)
        state.values[key] = value

    def set_attribute_values(self, values: Mapping[str, str | None]) -> None:
        for key, value in values.items():
            self.set_attribute_value(key, value)
