from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003

import pytest

from casebook.config import (
    DEFAULT_MAX_DOCUMENTS,
    ConfigurationError,
    MissingConfigurationError,
    configure_logging,
    get_database_uri,
    get_document_config,
    get_storage_config,
    optional_int_env_var,
    require_env_var,
    require_env_vars,
)
from casebook.config.storage import DEFAULT_DB_FILENAME


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.delenv("MISSING_A", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_optional_int_env_var_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_INT", raising=False)

    assert optional_int_env_var("EXAMPLE_INT", default=4) == 4


@pytest.mark.parametrize("raw", ["many", "1.5"])
def test_optional_int_env_var_rejects_non_integers(
    monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    monkeypatch.setenv("EXAMPLE_INT", raw)

    with pytest.raises(ConfigurationError, match="must be an integer"):
        optional_int_env_var("EXAMPLE_INT", default=4)


def test_optional_int_env_var_enforces_minimum(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_INT", "0")

    with pytest.raises(ConfigurationError, match=">= 1"):
        optional_int_env_var("EXAMPLE_INT", default=4, minimum=1)


def test_document_config_defaults_to_six(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CASEBOOK_MAX_DOCUMENTS", raising=False)

    assert get_document_config().max_documents == DEFAULT_MAX_DOCUMENTS == 6


def test_document_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CASEBOOK_MAX_DOCUMENTS", "10")

    assert get_document_config().max_documents == 10


def test_storage_config_prefers_explicit_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("CASEBOOK_DATA_DIR", str(custom))

    assert get_storage_config().resolve_data_dir() == custom.resolve()


def test_get_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert get_database_uri() == "sqlite:///override.db"


def test_get_database_uri_creates_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("CASEBOOK_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_uri()

    expected_path = (tmp_path / "data-dir" / DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_configure_logging_keeps_sql_statements_quiet() -> None:
    configure_logging(level=logging.DEBUG, force=True)
    try:
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        configure_logging(force=True)
