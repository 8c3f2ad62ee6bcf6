"""Atomic commit of a request, its child diff and attribute values.

Responsibilities of this stage:
- validate everything before the first write
- detect stale snapshots (optimistic concurrency)
- apply parent insert, child deletes, inserts, updates and attribute rows in
  one unit of work, flushing between steps so failures carry step context
- roll back on any failure

Document links are reconciled separately, after this stage has committed.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from casebook.domain.errors import ConflictError, PersistenceError, UnknownAttributeError
from casebook.domain.model import EntityType

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator, Mapping

    from casebook.domain.model import BenevolenceRequest, BenevolenceResult, StagedResult
    from casebook.domain.ports import RequestUnitOfWork
    from casebook.domain.reconciliation import ChildDiff

    type ResultDiff = ChildDiff[StagedResult, BenevolenceResult]


log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class CommitResult:
    """Summary of one committed edit round."""

    request_id: int
    created: bool
    inserted: tuple[int, ...] = ()
    updated: tuple[int, ...] = ()
    deleted: tuple[int, ...] = ()
    unchanged: int = 0


class TransactionCoordinator:
    """Apply a classified child diff plus parent writes as one unit of work."""

    def commit(
        self,
        uow: RequestUnitOfWork,
        request: BenevolenceRequest,
        diff: ResultDiff,
        attribute_writes: Mapping[str, str | None] | None = None,
        *,
        expected_version: int | None = None,
        known_result_ids: Collection[int] | None = None,
    ) -> CommitResult:
        """Persist ``request`` and ``diff`` inside ``uow`` and commit.

        ``expected_version`` is the request version observed when the edit
        session loaded it; a mismatch means another session committed first.
        ``known_result_ids`` are the result ids that session was seeded from; a
        persisted result outside that set was added by another session and is
        never deleted silently.
        """

        self._validate(request, diff, attribute_writes)
        self._check_snapshot(
            request, diff, expected_version=expected_version, known_result_ids=known_result_ids
        )

        try:
            result = self._apply(uow, request, diff, attribute_writes or {})
            with _step("commit", request):
                uow.commit()
        except (ConflictError, PersistenceError):
            uow.rollback()
            raise

        log.info(
            "Committed request %s: created=%s inserted=%s updated=%s deleted=%s unchanged=%s",
            result.request_id,
            result.created,
            len(result.inserted),
            len(result.updated),
            len(result.deleted),
            result.unchanged,
        )
        return result

    def _validate(
        self,
        request: BenevolenceRequest,
        diff: ResultDiff,
        attribute_writes: Mapping[str, str | None] | None,
    ) -> None:
        request.validate()
        for staged in diff.to_insert:
            staged.validate()
        for pair in diff.to_update:
            pair.staged.validate()
        unknown = [key for key in attribute_writes or () if key not in request.attributes]
        if unknown:
            raise UnknownAttributeError(unknown[0])

    def _check_snapshot(
        self,
        request: BenevolenceRequest,
        diff: ResultDiff,
        *,
        expected_version: int | None,
        known_result_ids: Collection[int] | None,
    ) -> None:
        if expected_version is not None and request.version != expected_version:
            raise ConflictError(
                f"Request {request.id} changed since it was loaded "
                f"(expected version {expected_version}, found {request.version})",
                record=request,
            )
        for staged in diff.to_insert:
            if staged.result_id is not None:
                raise ConflictError(
                    f"Result {staged.result_id} ({staged.guid}) was removed by another session",
                    record=staged,
                )
        if known_result_ids is not None:
            for persisted in diff.to_delete:
                if persisted.id not in known_result_ids:
                    raise ConflictError(
                        f"Result {persisted.id} ({persisted.guid}) was added by another session",
                        record=persisted,
                    )
        for pair in diff.matched:
            if pair.staged.version is not None and pair.staged.version != pair.persisted.version:
                raise ConflictError(
                    f"Result {pair.persisted.id} ({pair.staged.guid}) changed since it was staged",
                    record=pair.staged,
                )

    def _apply(
        self,
        uow: RequestUnitOfWork,
        request: BenevolenceRequest,
        diff: ResultDiff,
        attribute_writes: Mapping[str, str | None],
    ) -> CommitResult:
        repositories = uow.repositories
        created = request.id is None

        with _step("insert_parent", request):
            if created:
                repositories.requests.add(request)
                uow.flush()
        request_id = _durable_id(request.id, request)

        deleted: list[int] = []
        with _step("delete_children", request):
            for persisted in diff.to_delete:
                result_id = _durable_id(persisted.id, persisted)
                request.remove_result(persisted)
                deleted.append(result_id)
            repositories.attribute_values.delete_for(EntityType.BENEVOLENCE_RESULT, deleted)
            uow.flush()

        inserted: list[int] = []
        for staged in diff.to_insert:
            with _step("insert_child", staged):
                result = staged.to_result()
                request.add_result(result)
                uow.flush()
                result_id = _durable_id(result.id, result)
                repositories.attribute_values.save(
                    EntityType.BENEVOLENCE_RESULT,
                    result_id,
                    result.attributes.values(),
                    result.attribute_values,
                )
                inserted.append(result_id)

        updated: list[int] = []
        for pair in diff.to_update:
            with _step("update_child", pair.persisted):
                persisted = pair.persisted
                staged = pair.staged
                result_id = _durable_id(persisted.id, persisted)
                staged.apply_to(persisted)
                uow.flush()
                if persisted.id != result_id:
                    raise PersistenceError(f"Durable id of result {staged.guid} changed")
                repositories.attribute_values.save(
                    EntityType.BENEVOLENCE_RESULT,
                    result_id,
                    persisted.attributes.values(),
                    persisted.attribute_values,
                )
                updated.append(result_id)

        with _step("update_parent", request):
            if attribute_writes:
                request.set_attribute_values(attribute_writes)
            uow.flush()
            repositories.attribute_values.save(
                EntityType.BENEVOLENCE_REQUEST,
                request_id,
                request.attributes.values(),
                request.attribute_values,
            )

        return CommitResult(
            request_id=request_id,
            created=created,
            inserted=tuple(inserted),
            updated=tuple(updated),
            deleted=tuple(deleted),
            unchanged=len(diff.unchanged),
        )


def _durable_id(value: int | None, record: object) -> int:
    if value is None:
        raise PersistenceError("Storage did not assign a durable id", record=record)
    return value


@contextmanager
def _step(name: str, record: object) -> Iterator[None]:
    """Attach step context to persistence errors raised inside the block."""
    try:
        yield
    except PersistenceError as exc:
        if exc.step is not None:
            raise
        raise PersistenceError(str(exc), step=name, record=record) from exc
    except ConflictError:
        log.debug("Conflict during commit step %s for %r", name, record)
        raise
