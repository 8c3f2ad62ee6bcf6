"""Reconciliation of staged child records against persisted ones.

Flow:
1) index both sides by correlation key (duplicates fail fast)
2) classify every key as insert / update / unchanged / delete
3) hand the resulting ``ChildDiff`` to the transaction coordinator
"""

from __future__ import annotations

from .contracts import ChildDiff, MatchedPair
from .engine import keys_by_class, reconcile

__all__ = [
    "ChildDiff",
    "MatchedPair",
    "keys_by_class",
    "reconcile",
]
