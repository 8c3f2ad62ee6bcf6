"""Diff types produced by reconciliation and consumed by the commit stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class MatchedPair[TStaged, TPersisted]:
    """A staged record and the persisted record sharing its correlation key."""

    staged: TStaged
    persisted: TPersisted


@dataclass(frozen=True, slots=True, kw_only=True)
class ChildDiff[TStaged, TPersisted]:
    """Classification of every correlation key seen on either side.

    Matched keys are split into ``to_update`` (something changed) and
    ``unchanged``; together with ``to_insert`` and ``to_delete`` they cover
    ``keys(staged) | keys(persisted)`` exactly once.
    """

    to_insert: tuple[TStaged, ...] = ()
    to_update: tuple[MatchedPair[TStaged, TPersisted], ...] = ()
    to_delete: tuple[TPersisted, ...] = ()
    unchanged: tuple[MatchedPair[TStaged, TPersisted], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.to_insert or self.to_update or self.to_delete)

    @property
    def matched(self) -> tuple[MatchedPair[TStaged, TPersisted], ...]:
        return self.to_update + self.unchanged

    def summary(self) -> dict[str, int]:
        return {
            "insert": len(self.to_insert),
            "update": len(self.to_update),
            "delete": len(self.to_delete),
            "unchanged": len(self.unchanged),
        }


type KeysByClass = dict[str, frozenset[UUID]]
