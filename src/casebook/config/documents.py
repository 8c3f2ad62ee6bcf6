"""Attachment defaults for request edit sessions."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_int_env_var

DEFAULT_MAX_DOCUMENTS = 6


@dataclass(frozen=True, slots=True)
class DocumentConfig:
    max_documents: int = DEFAULT_MAX_DOCUMENTS


def get_document_config() -> DocumentConfig:
    return DocumentConfig(
        max_documents=optional_int_env_var(
            "CASEBOOK_MAX_DOCUMENTS",
            default=DEFAULT_MAX_DOCUMENTS,
            minimum=1,
        )
    )
