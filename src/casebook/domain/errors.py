"""Error taxonomy for the request editing engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from casebook.domain.model.attributes import Classifier


class CasebookError(Exception):
    """Base class for all engine errors."""


class ValidationError(CasebookError):
    """A record failed domain validity checks; raised before any transaction starts."""

    def __init__(self, message: str, *, fields: Sequence[str] = (), record: object = None) -> None:
        self.fields = tuple(fields)
        self.record = record
        super().__init__(message)


class ConflictError(CasebookError):
    """The persisted snapshot changed between load and commit.

    Retryable by the caller (for example by reloading and re-presenting the edit form).
    """

    retryable = True

    def __init__(self, message: str, *, record: object = None) -> None:
        self.record = record
        super().__init__(message)


class PersistenceError(CasebookError):
    """The underlying store failed while committing."""

    def __init__(self, message: str, *, step: str | None = None, record: object = None) -> None:
        self.step = step
        self.record = record
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.step is None:
            return base
        return f"{base} (step={self.step}, record={self.record!r})"


class SchemaResolutionFailure(CasebookError):  # noqa: N818
    """No attribute schema exists for a classifier. Treated as "no dynamic attributes"."""

    def __init__(self, classifier: Classifier) -> None:
        self.classifier = classifier
        super().__init__(f"Unknown attribute classifier: {classifier}")


class UnknownAttributeError(CasebookError, KeyError):
    """Raised when setting an attribute key the record's schema does not define."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"Attribute {self.key!r} is not defined for this record"


class DuplicateCorrelationKeyError(CasebookError, ValueError):
    """Two records in one reconciliation input share a correlation key."""

    def __init__(self, guid: UUID, *, side: str) -> None:
        self.guid = guid
        self.side = side
        super().__init__(f"Duplicate correlation key in {side} records: {guid}")


class DuplicateDocumentError(CasebookError, ValueError):
    """A binary file id appears twice in one ordered document list."""

    def __init__(self, binary_file_id: int) -> None:
        self.binary_file_id = binary_file_id
        super().__init__(f"Document {binary_file_id} is already attached")


class DocumentLimitError(ValidationError):
    """Attaching another document would exceed the configured cap."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"At most {limit} documents can be attached", fields=("documents",))
