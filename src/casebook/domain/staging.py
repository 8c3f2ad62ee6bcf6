"""Transient, caller-owned working sets for one edit session.

Nothing here touches storage. The surrounding system keeps these objects
alive (or serializes them) between edit rounds; abandoning them discards the
edits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from casebook.domain.errors import DuplicateCorrelationKeyError, DuplicateDocumentError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from uuid import UUID

    from casebook.domain.model import Correlated


@dataclass
class StagingStore[TRecord: Correlated]:
    """Insertion-ordered mapping from correlation key to staged record."""

    _records: dict[UUID, TRecord] = field(default_factory=dict, repr=False)
    _seeded: bool = False

    @property
    def seeded(self) -> bool:
        return self._seeded

    def seed(self, records: Iterable[TRecord]) -> bool:
        """Populate from persisted records once; later calls keep accumulated edits."""
        if self._seeded:
            return False
        seeded: dict[UUID, TRecord] = {}
        for record in records:
            if record.guid in seeded:
                raise DuplicateCorrelationKeyError(record.guid, side="seeded")
            seeded[record.guid] = record
        seeded.update(self._records)
        self._records = seeded
        self._seeded = True
        return True

    def upsert(self, record: TRecord) -> None:
        """Insert a new record or replace the one with the same key, keeping its position."""
        self._records[record.guid] = record

    def get(self, guid: UUID) -> TRecord | None:
        return self._records.get(guid)

    def remove(self, guid: UUID) -> TRecord | None:
        return self._records.pop(guid, None)

    def list(self) -> tuple[TRecord, ...]:
        return tuple(self._records.values())

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, guid: object) -> bool:
        return guid in self._records

    def __iter__(self) -> Iterator[TRecord]:
        return iter(tuple(self._records.values()))


@dataclass(slots=True)
class StagedDocumentList:
    """Ordered binary-file ids attached during an edit session."""

    _ids: list[int] = field(default_factory=list["int"], repr=False)
    _seeded: bool = False

    @property
    def seeded(self) -> bool:
        return self._seeded

    def seed(self, binary_file_ids: Iterable[int]) -> bool:
        if self._seeded:
            return False
        ids: list[int] = []
        for binary_file_id in (*binary_file_ids, *self._ids):
            if binary_file_id in ids:
                raise DuplicateDocumentError(binary_file_id)
            ids.append(binary_file_id)
        self._ids = ids
        self._seeded = True
        return True

    def add(self, binary_file_id: int) -> None:
        if binary_file_id in self._ids:
            raise DuplicateDocumentError(binary_file_id)
        self._ids.append(binary_file_id)

    def remove(self, binary_file_id: int) -> bool:
        if binary_file_id not in self._ids:
            return False
        self._ids.remove(binary_file_id)
        return True

    def move(self, binary_file_id: int, position: int) -> None:
        if binary_file_id not in self._ids:
            raise ValueError(f"document {binary_file_id} is not attached")
        self._ids.remove(binary_file_id)
        position = max(0, min(position, len(self._ids)))
        self._ids.insert(position, binary_file_id)

    def ids(self) -> tuple[int, ...]:
        return tuple(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, binary_file_id: object) -> bool:
        return binary_file_id in self._ids
