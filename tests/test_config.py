from __future__ import annotations

import logging

import pytest

from sqlconnector.config import (
    Settings,
    StaticCredential,
    TokenAuth,
    configure_logging,
    load_config,
    log_extra,
)
from sqlconnector.errors import ConfigError

TOKEN_ENV = {
    "SQL_SERVER": "sql.example.net",
    "SQL_DATABASE": "reports",
    "AZURE_TENANT_ID": "tenant-1",
    "AZURE_CLIENT_ID": "app-id",
    "AZURE_CLIENT_SECRET": "secret",
}


def test_token_auth_from_env() -> None:
    settings = load_config(TOKEN_ENV)

    assert isinstance(settings, Settings)
    assert settings.connection == TokenAuth("sql.example.net", "reports", "tenant-1", "app-id", "secret")
    assert settings.backend == "pyodbc"
    assert settings.token_refresh_buffer_secs == 0.0
    assert settings.authority_host == "https://login.microsoftonline.com"


def test_connection_string_takes_precedence() -> None:
    env = dict(TOKEN_ENV, SQL_CONNECTION_STRING="Server=s;UID=u;PWD=p", SQL_BACKEND="mssql_python")

    settings = load_config(env)

    assert settings.connection == StaticCredential("Server=s;UID=u;PWD=p")
    assert settings.backend == "mssql_python"


def test_missing_vars_are_all_reported() -> None:
    env = {"SQL_SERVER": "sql.example.net"}

    with pytest.raises(ConfigError) as excinfo:
        load_config(env)

    message = str(excinfo.value)
    for key in ("SQL_DATABASE", "AZURE_TENANT_ID", "AZURE_CLIENT_ID", "AZURE_CLIENT_SECRET"):
        assert key in message
    assert "SQL_SERVER" not in message


def test_invalid_backend() -> None:
    with pytest.raises(ConfigError):
        load_config(dict(TOKEN_ENV, SQL_BACKEND="sqlite"))


@pytest.mark.parametrize("value", ["soon", "-5"])
def test_invalid_refresh_buffer(value: str) -> None:
    with pytest.raises(ConfigError):
        load_config(dict(TOKEN_ENV, SQL_TOKEN_REFRESH_BUFFER_SECS=value))


def test_refresh_buffer_and_authority_host() -> None:
    env = dict(
        TOKEN_ENV,
        SQL_TOKEN_REFRESH_BUFFER_SECS="300",
        AZURE_AUTHORITY_HOST="https://login.microsoftonline.us/",
        LOG_LEVEL="debug",
    )

    settings = load_config(env)

    assert settings.token_refresh_buffer_secs == 300.0
    assert settings.authority_host == "https://login.microsoftonline.us"
    assert settings.log_level == "debug"


def test_load_config_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sqlconnector.config.load_dotenv", lambda: False)
    monkeypatch.setenv("SQL_CONNECTION_STRING", "Server=s;UID=u;PWD=p")

    settings = load_config()

    assert isinstance(settings.connection, StaticCredential)


def test_token_auth_connection_string_and_repr() -> None:
    config = TokenAuth("sql.example.net", "reports", "tenant-1", "app-id", "super-secret")

    assert config.connection_string == "Data Source=sql.example.net;Initial Catalog=reports"
    assert "super-secret" not in repr(config)


def test_empty_fields_rejected() -> None:
    with pytest.raises(ConfigError):
        TokenAuth("sql.example.net", "", "tenant-1", "app-id", "secret")
    with pytest.raises(ConfigError):
        StaticCredential("")


# ─── Logging ─────────────────────────────────────────────────────────────────

def test_log_extra_drops_unset_fields() -> None:
    assert log_extra(procedure="dbo.Report", stage=None, rowcount=0) == {
        "procedure": "dbo.Report",
        "rowcount": 0,
    }


def test_configure_logging_level_names(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr("sqlconnector.config.logging.basicConfig", lambda **kw: calls.append(kw))

    configure_logging("debug")
    configure_logging("chatty")

    assert [c["level"] for c in calls] == [logging.DEBUG, logging.INFO]
