"""Reconcile a request's ordered document ids against its persisted links."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from casebook.domain.errors import DuplicateDocumentError, ValidationError
from casebook.domain.model import RequestDocument

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from casebook.domain.ports import RequestUnitOfWork


log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class DocumentReconciliation:
    """Outcome of one document reconciliation run."""

    request_id: int
    linked: tuple[int, ...] = ()
    added: tuple[int, ...] = ()
    removed: tuple[int, ...] = ()
    reordered: tuple[int, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.reordered)


class DocumentLifecycleManager:
    """Keeps document links and blob temporary flags in line with an ordered id list.

    Runs in its own unit of work, after the request itself has been committed.
    Orphaned blobs are only flagged temporary, never deleted.
    """

    def __init__(self, unit_of_work_factory: Callable[[], RequestUnitOfWork]) -> None:
        self._unit_of_work_factory = unit_of_work_factory

    def reconcile_documents(
        self, request_id: int, ordered_ids: Sequence[int]
    ) -> DocumentReconciliation:
        ordered = _unique(ordered_ids)

        with self._unit_of_work_factory() as uow:
            documents = uow.repositories.documents
            blobs = uow.repositories.blobs

            missing = [file_id for file_id in ordered if blobs.fetch_blob_meta(file_id) is None]
            if missing:
                raise ValidationError(
                    f"Unknown binary files: {', '.join(str(file_id) for file_id in missing)}",
                    fields=("documents",),
                )

            existing = {
                document.binary_file_id: document
                for document in documents.for_request(request_id)
            }

            removed: list[int] = []
            for file_id, document in existing.items():
                if file_id not in ordered:
                    documents.remove(document)
                    removed.append(file_id)

            added: list[int] = []
            reordered: list[int] = []
            for position, file_id in enumerate(ordered):
                document = existing.get(file_id)
                if document is None:
                    documents.add(
                        RequestDocument(binary_file_id=file_id, order=position),
                        request_id=request_id,
                    )
                    added.append(file_id)
                elif document.order != position:
                    document.order = position
                    reordered.append(file_id)

            for file_id in ordered:
                blobs.set_blob_temporary(file_id, False)  # noqa: FBT003
            for file_id in removed:
                blobs.set_blob_temporary(file_id, True)  # noqa: FBT003

            uow.commit()

        outcome = DocumentReconciliation(
            request_id=request_id,
            linked=ordered,
            added=tuple(added),
            removed=tuple(removed),
            reordered=tuple(reordered),
        )
        if outcome.changed:
            log.info(
                "Reconciled documents of request %s: added=%s removed=%s reordered=%s",
                request_id,
                outcome.added,
                outcome.removed,
                outcome.reordered,
            )
        return outcome


def _unique(ordered_ids: Sequence[int]) -> tuple[int, ...]:
    seen: set[int] = set()
    for file_id in ordered_ids:
        if file_id in seen:
            raise DuplicateDocumentError(file_id)
        seen.add(file_id)
    return tuple(ordered_ids)
