"""Attribute schema registry.

Resolves which attribute definitions apply to a classifier and attaches them,
together with a record's explicit values, to record instances. Read-only: it
never writes definitions or values.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from casebook.domain.cache import ReadThroughCache
from casebook.domain.errors import SchemaResolutionFailure
from casebook.domain.model import AttributeDefinition, Classifier

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from casebook.domain.ports import AttributeDefinitionSource


log = getLogger(__name__)


class Classified(Protocol):
    """A record whose attribute schema is selected by a classifier."""

    @property
    def classifier(self) -> Classifier: ...

    def attach_attributes(
        self,
        definitions: Iterable[AttributeDefinition],
        values: Mapping[str, str | None] | None = None,
    ) -> None: ...


class AttributeSchemaRegistry:
    """Resolve attribute definitions once per classifier."""

    def __init__(
        self,
        source: AttributeDefinitionSource,
        *,
        cache: ReadThroughCache[Classifier, tuple[AttributeDefinition, ...]] | None = None,
    ) -> None:
        self._source = source
        self._cache = cache if cache is not None else ReadThroughCache()

    def resolve(self, classifier: Classifier) -> tuple[AttributeDefinition, ...]:
        """Return the ordered definitions for ``classifier`` (empty when unknown)."""
        try:
            return self._cache.get(classifier, self._load)
        except SchemaResolutionFailure:
            log.warning(
                "No attribute schema for %s; continuing without dynamic fields", classifier
            )
            return ()

    def grid_columns(self, classifier: Classifier) -> tuple[AttributeDefinition, ...]:
        return tuple(
            definition for definition in self.resolve(classifier) if definition.is_grid_column
        )

    def attach(
        self,
        record: Classified,
        values: Mapping[str, str | None] | None = None,
    ) -> None:
        """Attach the record's schema and (optionally) its explicit persisted values."""
        record.attach_attributes(self.resolve(record.classifier), values)

    def invalidate(self, classifier: Classifier | None = None) -> None:
        self._cache.invalidate(classifier)

    def _load(self, classifier: Classifier) -> tuple[AttributeDefinition, ...]:
        definitions = self._source.load_definitions(classifier)
        return _applicable(definitions, classifier)


def _applicable(
    definitions: Iterable[AttributeDefinition], classifier: Classifier
) -> tuple[AttributeDefinition, ...]:
    selected: dict[str, AttributeDefinition] = {}
    for definition in definitions:
        if definition.qualifier is not None and definition.qualifier != classifier.qualifier:
            continue
        existing = selected.get(definition.key)
        # a qualified definition overrides an unqualified one with the same key
        if existing is not None and existing.qualifier is not None:
            continue
        selected[definition.key] = definition
    return tuple(
        sorted(selected.values(), key=lambda definition: (definition.order, definition.key))
    )
