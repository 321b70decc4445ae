# config.py
# ─────────────────────────────────────────────────────────────────────────────
# Central configuration.
#
# • ConnectionConfig is a tagged union: StaticCredential | TokenAuth.  The
#   variant is chosen once and never inferred from empty strings later on.
# • load_config() reads the environment (plus a local .env file) and picks
#   the variant: SQL_CONNECTION_STRING wins, otherwise the Azure AD vars.
# • SQL_BACKEND selects the driver – one setting swaps it for the whole app.
# • configure_logging() / log_extra() set up and feed the stdlib logger.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"
DEFAULT_BACKEND = "pyodbc"


# ─── Connection variants ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class StaticCredential:
    """A complete connection string carrying its own credentials."""

    connection_string: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.connection_string:
            raise ConfigError("connection_string is required")


@dataclass(frozen=True)
class TokenAuth:
    """Server/database plus an Azure AD app registration used to get tokens."""

    server: str
    database: str
    tenant_id: str
    app_id: str
    app_secret: str = field(repr=False)

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("server", "database", "tenant_id", "app_id", "app_secret")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(f"TokenAuth is missing: {', '.join(missing)}")

    @property
    def connection_string(self) -> str:
        return f"Data Source={self.server};Initial Catalog={self.database}"


ConnectionConfig = Union[StaticCredential, TokenAuth]


# ─── Settings ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    connection: ConnectionConfig
    backend: str = DEFAULT_BACKEND
    authority_host: str = DEFAULT_AUTHORITY_HOST
    token_refresh_buffer_secs: float = 0.0
    log_level: str = "INFO"


_TOKEN_VARS = {
    "SQL_SERVER": "server",
    "SQL_DATABASE": "database",
    "AZURE_TENANT_ID": "tenant_id",
    "AZURE_CLIENT_ID": "app_id",
    "AZURE_CLIENT_SECRET": "app_secret",
}


def _float_var(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key, "")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"{key} must not be negative")
    return value


def load_config(env: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from *env* (defaults to os.environ after loading .env).

    Static mode:  SQL_CONNECTION_STRING
    Token mode:   SQL_SERVER, SQL_DATABASE, AZURE_TENANT_ID,
                  AZURE_CLIENT_ID, AZURE_CLIENT_SECRET
    """
    if env is None:
        load_dotenv()
        env = os.environ

    connection_string = env.get("SQL_CONNECTION_STRING", "")
    connection: ConnectionConfig
    if connection_string:
        connection = StaticCredential(connection_string)
    else:
        missing = [k for k in _TOKEN_VARS if not env.get(k)]
        if missing:
            raise ConfigError(
                f"Missing environment variables: {', '.join(missing)} "
                "(or set SQL_CONNECTION_STRING)"
            )
        connection = TokenAuth(**{attr: env[key] for key, attr in _TOKEN_VARS.items()})

    backend = env.get("SQL_BACKEND", "") or DEFAULT_BACKEND
    if backend not in ("pyodbc", "mssql_python"):
        raise ConfigError(f"Unsupported SQL_BACKEND: {backend}")

    return Settings(
        connection=connection,
        backend=backend,
        authority_host=(env.get("AZURE_AUTHORITY_HOST", "") or DEFAULT_AUTHORITY_HOST).rstrip("/"),
        token_refresh_buffer_secs=_float_var(env, "SQL_TOKEN_REFRESH_BUFFER_SECS", 0.0),
        log_level=env.get("LOG_LEVEL", "") or "INFO",
    )


# ─── Logging ─────────────────────────────────────────────────────────────────

def configure_logging(level: str) -> None:
    """Root handler for LOG_LEVEL; unknown level names fall back to INFO."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def log_extra(**fields: Any) -> dict[str, Any]:
    """``extra=`` payload for structured log records, without unset fields."""
    return {k: v for k, v in fields.items() if v is not None}
