# connector.py
# ─────────────────────────────────────────────────────────────────────────────
# SqlConnector: the public entry point.
#
# This file is intentionally thin: it wires config → auth → db → executor
# together.  All token logic lives in auth/, all driver logic in db/.
#
#   connector = SqlConnector.from_env()
#   table = connector.fetch_table("dbo.GetOrders", [ProcedureParameter("CustomerId", 42)])
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Iterable, Mapping

from .auth import TokenCache, get_token_provider
from .config import (
    DEFAULT_AUTHORITY_HOST,
    ConnectionConfig,
    Settings,
    StaticCredential,
    TokenAuth,
    configure_logging,
    load_config,
)
from .db import ConnectionFactory, SqlDriver, get_driver
from .executor import ProcedureExecutor
from .models import AccessToken, ProcedureParameter, ResultSet, Table, utc_now


class SqlConnector:
    """
    Runs stored procedures against SQL Server with either a static connection
    string or an Azure AD app registration.  Safe to share between threads.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        driver: SqlDriver | None = None,
        token_provider: Callable[[], AccessToken] | None = None,
        clock: Callable[[], datetime] | None = None,
        refresh_buffer: timedelta = timedelta(0),
        authority_host: str = DEFAULT_AUTHORITY_HOST,
    ):
        self.config = config
        self.driver = driver or get_driver("pyodbc")
        self.token_cache: TokenCache | None = None

        if isinstance(config, TokenAuth):
            clock = clock or utc_now
            provider = token_provider or get_token_provider(
                config.app_id,
                config.app_secret,
                config.tenant_id,
                authority_host=authority_host,
                clock=clock,
            )
            self.token_cache = TokenCache(provider, clock=clock, refresh_buffer=refresh_buffer)

        self.factory = ConnectionFactory(config, self.driver, self.token_cache)
        self._executor = ProcedureExecutor(self.factory)

    # ─── Constructors ────────────────────────────────────────────────────────

    @classmethod
    def from_connection_string(cls, connection_string: str, **kwargs) -> "SqlConnector":
        return cls(StaticCredential(connection_string), **kwargs)

    @classmethod
    def from_token_auth(
        cls,
        server: str,
        database: str,
        tenant_id: str,
        app_id: str,
        app_secret: str,
        **kwargs,
    ) -> "SqlConnector":
        return cls(TokenAuth(server, database, tenant_id, app_id, app_secret), **kwargs)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "SqlConnector":
        kwargs.setdefault("driver", get_driver(settings.backend))
        kwargs.setdefault("refresh_buffer", timedelta(seconds=settings.token_refresh_buffer_secs))
        kwargs.setdefault("authority_host", settings.authority_host)
        return cls(settings.connection, **kwargs)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **kwargs) -> "SqlConnector":
        settings = load_config(env)
        configure_logging(settings.log_level)
        return cls.from_settings(settings, **kwargs)

    # ─── Public API ──────────────────────────────────────────────────────────

    def fetch_table(self, procedure: str, parameters: Iterable[ProcedureParameter] | None = None) -> Table:
        """Run *procedure* and return its first result table (empty if none)."""
        return self._executor.fetch_table(procedure, parameters)

    def fetch_all(self, procedure: str, parameters: Iterable[ProcedureParameter] | None = None) -> ResultSet:
        """Run *procedure* and return every result table plus output values."""
        return self._executor.fetch_all(procedure, parameters)

    def execute(self, procedure: str, parameters: Iterable[ProcedureParameter] | None = None) -> int:
        """Run *procedure* as a non-query; return affected rows or -1."""
        return self._executor.execute(procedure, parameters)
