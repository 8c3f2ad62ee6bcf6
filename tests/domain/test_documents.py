from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from casebook.domain.documents import DocumentLifecycleManager
from casebook.domain.errors import DuplicateDocumentError, ValidationError
from tests.helpers.requests import make_request, register_files

if TYPE_CHECKING:
    from collections.abc import Callable

    from casebook.adapters.sqlalchemy.unit_of_work import SqlAlchemyRequestUnitOfWork

    UowFactory = Callable[[], SqlAlchemyRequestUnitOfWork]


def _persisted_request(uow_factory: UowFactory) -> int:
    with uow_factory() as uow:
        request = make_request()
        uow.repositories.requests.add(request)
        uow.commit()
    assert request.id is not None
    return request.id


def _links(uow_factory: UowFactory, request_id: int) -> list[tuple[int, int]]:
    with uow_factory() as uow:
        return [
            (document.binary_file_id, document.order)
            for document in uow.repositories.documents.for_request(request_id)
        ]


def _temporary(uow_factory: UowFactory, *file_ids: int) -> list[bool]:
    with uow_factory() as uow:
        flags: list[bool] = []
        for file_id in file_ids:
            meta = uow.repositories.blobs.fetch_blob_meta(file_id)
            assert meta is not None
            flags.append(meta.is_temporary)
        return flags


def test_reordering_removes_orphans_and_flags_blobs(sqlite_unit_of_work: UowFactory) -> None:
    request_id = _persisted_request(sqlite_unit_of_work)
    r1, r2, r3 = register_files(sqlite_unit_of_work, "r1.pdf", "r2.pdf", "r3.pdf")
    manager = DocumentLifecycleManager(sqlite_unit_of_work)

    first = manager.reconcile_documents(request_id, [r1, r2, r3])
    assert first.added == (r1, r2, r3)
    assert _links(sqlite_unit_of_work, request_id) == [(r1, 0), (r2, 1), (r3, 2)]
    assert _temporary(sqlite_unit_of_work, r1, r2, r3) == [False, False, False]

    second = manager.reconcile_documents(request_id, [r3, r1])

    assert second.removed == (r2,)
    assert second.added == ()
    assert set(second.reordered) == {r1, r3}
    assert _links(sqlite_unit_of_work, request_id) == [(r3, 0), (r1, 1)]
    assert _temporary(sqlite_unit_of_work, r1, r2, r3) == [False, True, False]


def test_reconciling_twice_is_idempotent(sqlite_unit_of_work: UowFactory) -> None:
    request_id = _persisted_request(sqlite_unit_of_work)
    r1, r2 = register_files(sqlite_unit_of_work, "a.png", "b.png")
    manager = DocumentLifecycleManager(sqlite_unit_of_work)

    manager.reconcile_documents(request_id, [r2, r1])
    links = _links(sqlite_unit_of_work, request_id)
    again = manager.reconcile_documents(request_id, [r2, r1])

    assert not again.changed
    assert again.linked == (r2, r1)
    assert _links(sqlite_unit_of_work, request_id) == links
    assert _temporary(sqlite_unit_of_work, r1, r2) == [False, False]


def test_empty_list_orphans_every_link(sqlite_unit_of_work: UowFactory) -> None:
    request_id = _persisted_request(sqlite_unit_of_work)
    (r1,) = register_files(sqlite_unit_of_work, "only.pdf")
    manager = DocumentLifecycleManager(sqlite_unit_of_work)
    manager.reconcile_documents(request_id, [r1])

    outcome = manager.reconcile_documents(request_id, [])

    assert outcome.removed == (r1,)
    assert _links(sqlite_unit_of_work, request_id) == []
    assert _temporary(sqlite_unit_of_work, r1) == [True]


def test_duplicate_ids_are_rejected(sqlite_unit_of_work: UowFactory) -> None:
    request_id = _persisted_request(sqlite_unit_of_work)
    (r1,) = register_files(sqlite_unit_of_work, "dup.pdf")

    with pytest.raises(DuplicateDocumentError):
        DocumentLifecycleManager(sqlite_unit_of_work).reconcile_documents(request_id, [r1, r1])

    assert _links(sqlite_unit_of_work, request_id) == []


def test_unknown_binary_file_is_rejected(sqlite_unit_of_work: UowFactory) -> None:
    request_id = _persisted_request(sqlite_unit_of_work)

    with pytest.raises(ValidationError, match="Unknown binary files: 999"):
        DocumentLifecycleManager(sqlite_unit_of_work).reconcile_documents(request_id, [999])
