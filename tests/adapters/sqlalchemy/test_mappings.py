from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import inspect

from casebook.adapters.sqlalchemy import create_all_tables, start_mappers
from casebook.domain.model import BenevolenceResult
from tests.helpers.requests import make_request, make_result

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_start_mappers_is_idempotent() -> None:
    # First invocation happens in the sqlite_engine fixture; calling again should be harmless.
    start_mappers()
    start_mappers()


def test_create_all_tables_registers_core_tables(sqlite_engine: Engine) -> None:
    create_all_tables(sqlite_engine)

    tables = set(inspect(sqlite_engine).get_table_names())

    assert {
        "benevolence_request",
        "benevolence_result",
        "request_document",
        "binary_file",
        "attribute",
        "attribute_value",
    } <= tables


def test_loaded_records_start_with_an_empty_attribute_map(sqlite_session: Session) -> None:
    request = make_request()
    result = make_result("12.50")
    request.add_result(result)
    request_guid = request.guid
    sqlite_session.add(request)
    sqlite_session.commit()
    result_id = result.id
    sqlite_session.expunge_all()

    loaded = sqlite_session.get(BenevolenceResult, result_id)

    assert loaded is not None
    assert dict(loaded.attributes) == {}
    assert loaded.attribute_values == {}
    assert loaded.request is not None
    assert loaded.request.guid == request_guid


def test_version_counter_increments_on_update(sqlite_session: Session) -> None:
    request = make_request()
    sqlite_session.add(request)
    sqlite_session.commit()
    assert request.version == 1

    request.email = "ada@example.org"
    sqlite_session.commit()

    assert request.version == 2
