"""Translate SQLAlchemy failures into domain errors."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from casebook.domain.errors import ConflictError, PersistenceError

if TYPE_CHECKING:
    from collections.abc import Iterator

log = getLogger(__name__)


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise adapter errors raised inside the block as domain errors.

    A stale version counter means another session committed first; anything
    else SQLAlchemy raises is a storage failure.
    """

    try:
        yield
    except StaleDataError as exc:
        log.debug("Stale data during %s: %s", operation, exc)
        raise ConflictError(f"Concurrent modification detected during {operation}") from exc
    except SQLAlchemyError as exc:
        log.debug("Storage failure during %s: %s", operation, exc)
        raise PersistenceError(f"Storage failure during {operation}: {exc}") from exc
