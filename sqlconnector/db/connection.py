# db/connection.py
# ─────────────────────────────────────────────────────────────────────────────
# ConnectionHandle + ConnectionFactory.
#
# The factory builds one handle per call.  In token mode it asks TokenCache
# for a valid token and attaches it before the handle leaves the factory.
# The handle is logical until first use: nothing touches the network until
# open()/cursor() is called, and close() releases it exactly once.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import logging
from typing import Any

from ..auth.token_cache import TokenCache
from ..config import ConnectionConfig, TokenAuth
from ..errors import ConfigError, DatabaseConnectionError
from .base import SqlDriver

log = logging.getLogger(__name__)


class ConnectionHandle:
    def __init__(self, driver: SqlDriver, connection_string: str):
        self.driver = driver
        self.connection_string = connection_string
        self.access_token: str | None = None
        self._conn: Any = None
        self._released = False

    @property
    def is_open(self) -> bool:
        return self._conn is not None and not self._released

    @property
    def released(self) -> bool:
        return self._released

    def open(self) -> Any:
        """Connect on the wire if not connected yet; return the DB-API connection."""
        if self._released:
            raise DatabaseConnectionError("Connection handle has already been released")
        if self._conn is None:
            try:
                self._conn = self.driver.connect(self.connection_string, self.access_token)
            except self.driver.errors as exc:
                log.warning("Failed to open %s connection: %s", self.driver.name, exc)
                raise DatabaseConnectionError(f"Could not open connection: {exc}") from exc
        return self._conn

    def cursor(self) -> Any:
        return self.open().cursor()

    def close(self) -> None:
        if self._released:
            return
        self._released = True
        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()

    def __enter__(self) -> "ConnectionHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ConnectionFactory:
    def __init__(
        self,
        config: ConnectionConfig,
        driver: SqlDriver,
        token_cache: TokenCache | None = None,
    ):
        if isinstance(config, TokenAuth) and token_cache is None:
            raise ConfigError("TokenAuth configuration needs a TokenCache")
        self.config = config
        self.driver = driver
        self._token_cache = token_cache

    def open(self) -> ConnectionHandle:
        """Return a fresh, not-yet-connected handle with credentials attached."""
        handle = ConnectionHandle(self.driver, self.config.connection_string)
        if isinstance(self.config, TokenAuth):
            handle.access_token = self._token_cache.get_valid_token().value
        return handle
