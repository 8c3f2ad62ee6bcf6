"""Port for the external binary-file store.

Only metadata flows through here; payloads are never read or deleted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class BlobMeta:
    id: int
    is_temporary: bool
    file_name: str | None = None


@runtime_checkable
class BlobStore(Protocol):
    def fetch_blob_meta(self, binary_file_id: int) -> BlobMeta | None: ...

    def set_blob_temporary(self, binary_file_id: int, is_temporary: bool) -> None: ...  # noqa: FBT001
