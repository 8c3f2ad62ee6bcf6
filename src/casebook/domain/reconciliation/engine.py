"""Match staged records against persisted records by correlation key.

Matching policy:
- correlation key equality is the only criterion; durable ids and field
  values are never used to pair records
- staged key with no persisted counterpart -> insert
- persisted key with no staged counterpart -> delete
- matched keys -> update when ``differs`` reports a change, else unchanged
- a key appearing twice on one side is a programming error
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from casebook.domain.errors import DuplicateCorrelationKeyError

from .contracts import ChildDiff, KeysByClass, MatchedPair

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from uuid import UUID

    from casebook.domain.model import Correlated


log = getLogger(__name__)


def _always_differs(_staged: object, _persisted: object) -> bool:
    return True


def reconcile[TStaged: Correlated, TPersisted: Correlated](
    staged: Iterable[TStaged],
    persisted: Iterable[TPersisted],
    *,
    differs: Callable[[TStaged, TPersisted], bool] = _always_differs,
) -> ChildDiff[TStaged, TPersisted]:
    """Diff the staged working set against the persisted snapshot."""

    unmatched = _index(persisted, side="persisted")
    staged_index = _index(staged, side="staged")

    to_insert: list[TStaged] = []
    to_update: list[MatchedPair[TStaged, TPersisted]] = []
    unchanged: list[MatchedPair[TStaged, TPersisted]] = []
    for guid, staged_record in staged_index.items():
        persisted_record = unmatched.pop(guid, None)
        if persisted_record is None:
            to_insert.append(staged_record)
            continue
        pair = MatchedPair(staged=staged_record, persisted=persisted_record)
        if differs(staged_record, persisted_record):
            to_update.append(pair)
        else:
            unchanged.append(pair)

    diff = ChildDiff(
        to_insert=tuple(to_insert),
        to_update=tuple(to_update),
        to_delete=tuple(unmatched.values()),
        unchanged=tuple(unchanged),
    )
    log.debug("Reconciled child records: %s", diff.summary())
    return diff


def keys_by_class(diff: ChildDiff[Correlated, Correlated]) -> KeysByClass:
    """Correlation keys per diff class; handy for auditing and assertions."""

    return {
        "insert": frozenset(record.guid for record in diff.to_insert),
        "update": frozenset(pair.staged.guid for pair in diff.to_update),
        "delete": frozenset(record.guid for record in diff.to_delete),
        "unchanged": frozenset(pair.staged.guid for pair in diff.unchanged),
    }


def _index[TRecord: Correlated](records: Iterable[TRecord], *, side: str) -> dict[UUID, TRecord]:
    index: dict[UUID, TRecord] = {}
    for record in records:
        if record.guid in index:
            raise DuplicateCorrelationKeyError(record.guid, side=side)
        index[record.guid] = record
    return index
