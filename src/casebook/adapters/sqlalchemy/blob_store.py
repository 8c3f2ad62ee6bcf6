"""Binary-file metadata store over the ``binary_file`` table.

Payloads live elsewhere; only the temporary flag is managed here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import insert, select, update

from casebook.adapters.sqlalchemy.errors import translate_errors
from casebook.adapters.sqlalchemy.mappings import binary_file_table
from casebook.domain.ports import BlobMeta

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class SqlAlchemyBlobStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def register(self, file_name: str | None = None, *, is_temporary: bool = True) -> int:
        """Record metadata for an uploaded file; new uploads start out temporary."""
        with translate_errors("register binary file"):
            result = self.session.execute(
                insert(binary_file_table).values(file_name=file_name, is_temporary=is_temporary)
            )
        return cast(int, result.inserted_primary_key[0])

    def fetch_blob_meta(self, binary_file_id: int) -> BlobMeta | None:
        stmt = select(binary_file_table).where(binary_file_table.c.id == binary_file_id)
        with translate_errors("fetch binary file"):
            row = self.session.execute(stmt).mappings().one_or_none()
        if row is None:
            return None
        return BlobMeta(id=row["id"], is_temporary=row["is_temporary"], file_name=row["file_name"])

    def set_blob_temporary(self, binary_file_id: int, is_temporary: bool) -> None:  # noqa: FBT001
        stmt = (
            update(binary_file_table)
            .where(binary_file_table.c.id == binary_file_id)
            .values(is_temporary=is_temporary)
        )
        with translate_errors("flag binary file"):
            self.session.execute(stmt)


if TYPE_CHECKING:
    from casebook.domain.ports import BlobStore

    _blob_store_check: BlobStore = SqlAlchemyBlobStore(cast("Session", object()))
