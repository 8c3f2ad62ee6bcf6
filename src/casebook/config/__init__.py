"""Application configuration helpers."""

from __future__ import annotations

from .documents import DEFAULT_MAX_DOCUMENTS, DocumentConfig, get_document_config
from .env import optional_int_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "DEFAULT_MAX_DOCUMENTS",
    "ConfigurationError",
    "DatabaseConfig",
    "DocumentConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_database_uri",
    "get_document_config",
    "get_storage_config",
    "optional_int_env_var",
    "require_env_var",
    "require_env_vars",
]
